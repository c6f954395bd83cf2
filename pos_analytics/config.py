"""Analytics configuration and environment setup."""

from dataclasses import dataclass, replace
from pathlib import Path

from pos_analytics.utils.io import load_toml_config

type ConfigDict = dict[str, str | int | bool | list[str]]

FULL_DAY_HOURS = tuple(range(24))
BUSINESS_HOURS = tuple(range(10, 23))


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    timeout: float
    cache_dir: str | None = None


@dataclass(frozen=True)
class AnalyticsConfig:
    api: ApiConfig
    data_dir: str
    timezone: str
    top_products_limit: int
    hourly_hours: tuple[int, ...]
    default_alert_at: int
    currency_symbol: str
    default_range: str = "30d"


def load_analytics_config(env: str = "production") -> AnalyticsConfig:
    match env:
        case "production":
            api = ApiConfig(base_url="https://pos-api.internal", timeout=15.0, cache_dir=".cache/pos")
            data_dir = "data/mock"
        case "staging":
            api = ApiConfig(base_url="https://staging-pos-api.internal", timeout=15.0, cache_dir=".cache/pos")
            data_dir = "data/mock"
        case "development":
            api = ApiConfig(base_url="http://localhost:5000", timeout=5.0)
            data_dir = "data/mock"
        case other:
            raise ValueError(f"Unknown environment: {other}")

    config = AnalyticsConfig(
        api=api,
        data_dir=data_dir,
        timezone="Asia/Manila",
        top_products_limit=8,
        hourly_hours=BUSINESS_HOURS,
        default_alert_at=5,
        currency_symbol="₱",
    )
    return apply_overrides(config, get_env_config())


def apply_overrides(config: AnalyticsConfig, overrides: ConfigDict) -> AnalyticsConfig:
    """Apply ``[tool.pos_analytics]`` values on top of an environment config."""
    changes = {}
    for key, value in overrides.items():
        match key:
            case "api_base_url":
                changes["api"] = replace(changes.get("api", config.api), base_url=str(value))
            case "api_timeout":
                changes["api"] = replace(changes.get("api", config.api), timeout=float(value))
            case "data_dir" | "timezone" | "currency_symbol" | "default_range":
                changes[key] = str(value)
            case "top_products_limit" | "default_alert_at":
                changes[key] = int(value)
            case "hourly_hours":
                match value:
                    case "business":
                        changes[key] = BUSINESS_HOURS
                    case "full":
                        changes[key] = FULL_DAY_HOURS
                    case other:
                        raise ValueError(f"hourly_hours must be 'business' or 'full', got {other!r}")
            case _:
                raise ValueError(f"Unknown config key: {key}")
    return replace(config, **changes) if changes else config


def get_env_config() -> ConfigDict:
    """Read analytics overrides from pyproject.toml, if present."""
    pyproject = Path(__file__).parent.parent / "pyproject.toml"
    if not pyproject.exists():
        return {}
    data = load_toml_config(pyproject)
    return data.get("tool", {}).get("pos_analytics", {})
