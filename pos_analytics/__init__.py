"""Sales analytics for the POS admin console: windowed aggregation over entity snapshots."""

__version__ = "0.3.0"
