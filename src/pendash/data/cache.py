"""Merge-on-read, upsert-on-write cache for market yield histories.

Entries are keyed ``history:{chain_id}:{address}`` (address lowercased). A
cached series younger than the freshness window is served as is. Otherwise
the API is queried, the fresh days are merged over the cached ones and the
result is written back. When the API is unavailable the cached series is
served instead.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pendash.config import HistoricalDataSettings
from pendash.data.history import merge_history, parse_history, serialize_history
from pendash.data.kv import KeyValueStore
from pendash.exceptions import ApiUnavailableError, MarketDataError
from pendash.logging import get_logger
from pendash.market_data.client import PendleApiClient
from pendash.market_data.normalize import parse_timestamp
from pendash.models import YieldPoint

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CachedHistory:
    """A market's yield history plus where it came from."""

    points: list[YieldPoint]
    cached: bool  # cached data existed before this request
    last_updated: datetime


class HistoryCache:
    """History access through a KeyValueStore.

    Args:
        client: Pendle API client used on a cache miss or stale entry.
        store: Backing key/value store.
        settings: Retention, TTL and freshness configuration.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        client: PendleApiClient,
        store: KeyValueStore,
        settings: HistoricalDataSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings
        self._clock = clock

    @staticmethod
    def key(chain_id: int, address: str) -> str:
        return f"history:{chain_id}:{address.lower()}"

    async def get_history(self, chain_id: int, address: str) -> CachedHistory:
        """Return the merged history of one market.

        Raises:
            ApiUnavailableError: If the API is unavailable and nothing is cached.
        """
        key = self.key(chain_id, address)
        now = self._clock()
        entry = await self._store.get(key)
        cached_points = parse_history(entry.get("results", [])) if entry else []
        updated_at = self._updated_at(entry)

        if (
            cached_points
            and updated_at is not None
            and now - updated_at < timedelta(minutes=self._settings.freshness_minutes)
        ):
            logger.debug("history_cache_hit", key=key, points=len(cached_points))
            return CachedHistory(points=cached_points, cached=True, last_updated=updated_at)

        try:
            fresh = parse_history(await self._client.fetch_history(chain_id, address))
        except ApiUnavailableError:
            if not cached_points:
                raise
            logger.warning(
                "history_api_unavailable_serving_cache", key=key, points=len(cached_points)
            )
            return CachedHistory(
                points=cached_points, cached=True, last_updated=updated_at or now
            )

        merged = merge_history(cached_points, fresh, self._settings.max_history_days)
        last_updated = updated_at or now

        if fresh and merged:
            last_updated = now
            await self._store.set(
                key,
                {
                    "results": serialize_history(merged),
                    "lastTimestamp": merged[-1].timestamp.isoformat(),
                    "updatedAt": now.isoformat(),
                },
                ttl_seconds=self._settings.cache_ttl_seconds,
            )
            logger.info(
                "history_cache_updated",
                key=key,
                cached_points=len(cached_points),
                fresh_points=len(fresh),
                merged_points=len(merged),
            )

        return CachedHistory(
            points=merged,
            cached=bool(cached_points),
            last_updated=last_updated,
        )

    @staticmethod
    def _updated_at(entry: dict | None) -> datetime | None:
        if not entry or not entry.get("updatedAt"):
            return None
        try:
            return parse_timestamp(entry["updatedAt"])
        except MarketDataError:
            return None
