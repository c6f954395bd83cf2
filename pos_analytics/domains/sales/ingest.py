"""Fetch entity collections from the static mock JSON files or the POS REST API."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path

import httpx

from pos_analytics.domains.sales.transform import build_snapshot
from pos_analytics.utils.io import read_json_records
from pos_analytics.utils.store import KeyValueStore
from pos_analytics.utils.types import EntitySnapshot, RawCollections

logger = logging.getLogger(__name__)

# collection -> file name in the mock data directory
MOCK_FILES = {
    "branches": "branches.json",
    "brands": "brands.json",
    "branch_brands": "branch_brands.json",
    "products": "products.json",
    "transactions": "transactions.json",
    "line_items": "transaction_products.json",
}

# collection -> REST endpoint
ENDPOINTS = {
    "branches": "/branches",
    "brands": "/brands",
    "branch_brands": "/branch-brand",
    "products": "/products",
    "transactions": "/transactions",
    "line_items": "/transaction-products",
}

# Collections an older mock export may omit
OPTIONAL_COLLECTIONS = {"branch_brands"}

CACHE_KEY_PREFIX = "snapshot:"


class SnapshotFetchError(RuntimeError):
    """The entity source could not supply a complete snapshot."""


class LocalJsonSource:
    """Reads the static mock collections from a directory of JSON files."""

    def __init__(self, directory: str | Path, timezone: str = "Asia/Manila", default_alert_at: int = 5):
        self.directory = Path(directory)
        self.timezone = timezone
        self.default_alert_at = default_alert_at

    def read_raw(self) -> RawCollections:
        raw: RawCollections = {}
        for collection, filename in MOCK_FILES.items():
            path = self.directory / filename
            if not path.exists():
                if collection in OPTIONAL_COLLECTIONS:
                    logger.info("No %s in %s, links will come from products", filename, self.directory)
                    continue
                raise SnapshotFetchError(f"Missing mock collection: {path}")
            try:
                raw[collection] = read_json_records(path)
            except (json.JSONDecodeError, ValueError) as exc:
                raise SnapshotFetchError(f"Could not read {path}: {exc}") from exc
            logger.info("Read %d %s from %s", len(raw[collection]), collection, path.name)
        return raw

    def load(self) -> EntitySnapshot:
        return build_snapshot(self.read_raw(), timezone=self.timezone, default_alert_at=self.default_alert_at)

    async def fetch(self) -> EntitySnapshot:
        return self.load()


class RestEntitySource:
    """Fetches every collection from the POS backend in one round of requests.

    A successful fetch is written to ``cache`` (when given); if a later fetch
    fails and the cache holds every collection, the cached copy is used.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        cache: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timezone: str = "Asia/Manila",
        default_alert_at: int = 5,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache
        self.transport = transport
        self.timezone = timezone
        self.default_alert_at = default_alert_at

    async def _get_collection(self, client: httpx.AsyncClient, collection: str) -> list[dict]:
        resp = await client.get(ENDPOINTS[collection])
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, list):
            raise SnapshotFetchError(f"{ENDPOINTS[collection]} returned {type(data).__name__}, expected a list")
        return data

    async def fetch_raw(self) -> RawCollections:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport,
        ) as client:
            names = list(ENDPOINTS)
            results = await asyncio.gather(*(self._get_collection(client, name) for name in names))
        return dict(zip(names, results))

    def _cache_raw(self, raw: RawCollections) -> None:
        if self.cache is None:
            return
        for collection, records in raw.items():
            self.cache.set(CACHE_KEY_PREFIX + collection, records)

    def _cached_raw(self) -> RawCollections | None:
        if self.cache is None:
            return None
        raw = {name: self.cache.get(CACHE_KEY_PREFIX + name) for name in ENDPOINTS}
        if any(records is None for records in raw.values()):
            return None
        return raw

    async def fetch(self) -> EntitySnapshot:
        try:
            raw = await self.fetch_raw()
        except (httpx.HTTPError, ValueError, SnapshotFetchError) as exc:
            cached = self._cached_raw()
            if cached is None:
                raise SnapshotFetchError(f"Could not fetch entities from {self.base_url}: {exc}") from exc
            logger.warning("Fetch from %s failed (%s), using cached snapshot", self.base_url, exc)
            raw = cached
        else:
            self._cache_raw(raw)
            logger.info("Fetched %d transactions from %s", len(raw["transactions"]), self.base_url)

        return build_snapshot(raw, timezone=self.timezone, default_alert_at=self.default_alert_at)


class SnapshotStore:
    """Holds the latest snapshot, discarding results of superseded fetches.

    Each refresh takes a ticket before it awaits the source. Only the holder
    of the newest ticket may commit, so a slow, older fetch that completes
    after a newer one is dropped rather than merged.
    """

    def __init__(self) -> None:
        self._ticket = 0
        self._current: EntitySnapshot | None = None
        self.committed_at: datetime | None = None

    @property
    def current(self) -> EntitySnapshot | None:
        return self._current

    def begin(self) -> int:
        self._ticket += 1
        return self._ticket

    def commit(self, ticket: int, snapshot: EntitySnapshot) -> bool:
        if ticket != self._ticket:
            logger.info("Discarding stale snapshot (ticket %d, latest %d)", ticket, self._ticket)
            return False
        self._current = snapshot
        self.committed_at = datetime.now()
        return True

    async def refresh(self, source) -> EntitySnapshot | None:
        """Fetch from ``source`` and commit if no newer refresh started meanwhile.

        Returns the committed snapshot, or None when the result was stale.
        """
        ticket = self.begin()
        snapshot = await source.fetch()
        return snapshot if self.commit(ticket, snapshot) else None
