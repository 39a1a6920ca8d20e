"""Async Pendle API client with proxy fallback and retry.

Each request is tried against the direct URL first and then through each
configured CORS-proxy URL template. Every candidate is retried with
exponential backoff before moving on to the next one. Only when all
candidates fail is ApiUnavailableError raised.

JSON numbers are decoded straight to Decimal so floats never enter the core.
"""

import asyncio
import functools
import json
from decimal import Decimal
from typing import Any, Self
from urllib.parse import quote

import aiohttp

from pendash.config import ApiSettings
from pendash.exceptions import ApiUnavailableError
from pendash.logging import get_logger

logger = get_logger(__name__)

_decode_json = functools.partial(json.loads, parse_float=Decimal, parse_constant=Decimal)


def extract_results(payload: Any) -> list[dict]:
    """Pull the record list out of a response shaped as markets, results or a bare list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("markets", "results"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


class PendleApiClient:
    """HTTP access to the Pendle v1/v2 core API.

    Usage:
        async with PendleApiClient(settings) as client:
            markets = await client.fetch_markets(1)
    """

    def __init__(
        self,
        settings: ApiSettings,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> None:
        """Open the HTTP session if one was not injected."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._settings.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    # ──────────────────────────────────────────────
    # Pendle endpoints
    # ──────────────────────────────────────────────

    def markets_url(self, chain_id: int) -> str:
        return f"{self._settings.base_url}/v1/markets/all?isActive=true&chainId={chain_id}"

    def history_url(self, chain_id: int, address: str) -> str:
        return (
            f"{self._settings.base_url}/v2/{chain_id}/markets/{address}"
            "/historical-data?time_frame=day"
        )

    async def fetch_markets(self, chain_id: int) -> list[dict]:
        """Fetch raw snapshots of every active market on a chain."""
        markets = extract_results(await self.get_json(self.markets_url(chain_id)))
        logger.info("markets_fetched", chain_id=chain_id, count=len(markets))
        return markets

    async def fetch_history(self, chain_id: int, address: str) -> list[dict]:
        """Fetch the raw daily yield history of one market."""
        results = extract_results(await self.get_json(self.history_url(chain_id, address)))
        logger.debug("history_fetched", chain_id=chain_id, market=address, points=len(results))
        return results

    # ──────────────────────────────────────────────
    # Transport
    # ──────────────────────────────────────────────

    def candidate_urls(self, url: str) -> list[str]:
        """Direct URL followed by each proxy-wrapped variant."""
        encoded = quote(url, safe="")
        return [url, *(template.format(url=encoded) for template in self._settings.cors_proxies)]

    async def get_json(self, url: str) -> Any:
        """GET a JSON document, falling back through the proxies.

        Raises:
            ApiUnavailableError: When the direct URL and every proxy failed.
        """
        for candidate in self.candidate_urls(url):
            try:
                return await self._fetch_with_retry(candidate)
            except (aiohttp.ClientError, TimeoutError, ValueError) as e:
                logger.warning("request_candidate_failed", url=candidate, error=str(e))
        raise ApiUnavailableError(f"All request attempts failed for {url}")

    async def _fetch_with_retry(self, url: str) -> Any:
        """GET with exponential backoff retry.

        Retries up to max_retries times with delays base, 2*base, 4*base, ...
        Re-raises on final failure.
        """
        max_retries = max(1, self._settings.max_retries)
        base_delay = self._settings.retry_base_delay

        for attempt in range(max_retries):
            try:
                return await self._get_json(url)
            except (aiohttp.ClientError, TimeoutError, ValueError) as e:
                if attempt == max_retries - 1:
                    raise
                delay = base_delay * (2**attempt)
                logger.warning(
                    "fetch_retry",
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

        raise ApiUnavailableError(url)  # Unreachable, but satisfies type checker

    async def _get_json(self, url: str) -> Any:
        await self.start()
        assert self._session is not None
        async with self._session.get(url) as response:
            response.raise_for_status()
            return await response.json(content_type=None, loads=_decode_json)
