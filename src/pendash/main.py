"""Entry point for the pendash yield dashboard.

Wires all components together and serves the JSON API with uvicorn. The
service and its I/O resources share a single asyncio event loop; FastAPI's
lifespan context manager opens and closes them.

Component wiring order (in _build_components):
1. PendleApiClient (HTTP with proxy fallback and retry)
2. KeyValueStore (SQLite or in-memory)
3. HistoryCache (history access through the store)
4. SignalEngine (per-market evaluation and history analytics)
5. ProtocolApyClient (underlying APY verification)
6. DashboardService (ties it all together)

With the server disabled (SERVER_ENABLED=false) the default chain is
evaluated once and the signal summary is logged.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from pendash.config import AppSettings
from pendash.data.cache import HistoryCache
from pendash.data.kv import MemoryKeyValueStore, SqliteKeyValueStore
from pendash.logging import get_logger, setup_logging
from pendash.market_data.client import PendleApiClient
from pendash.service import DashboardService
from pendash.signals.engine import SignalEngine
from pendash.verification import ProtocolApyClient


async def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Note: Does NOT open the HTTP session or the database -- that happens in
    _start_components, called from the lifespan or run().
    """
    client = PendleApiClient(settings.api)

    if settings.historical.use_sqlite:
        store: SqliteKeyValueStore | MemoryKeyValueStore = SqliteKeyValueStore(
            settings.historical.db_path
        )
    else:
        store = MemoryKeyValueStore()

    history_cache = HistoryCache(client, store, settings.historical)
    engine = SignalEngine(
        settings.signal,
        settings.loop,
        settings.watermark,
        stats_windows=tuple(settings.historical.stats_windows),
    )
    protocol_client = ProtocolApyClient(client)
    service = DashboardService(settings, client, history_cache, engine, protocol_client)

    return {
        "client": client,
        "store": store,
        "history_cache": history_cache,
        "engine": engine,
        "protocol_client": protocol_client,
        "service": service,
    }


async def _start_components(components: dict[str, Any]) -> None:
    await components["client"].start()
    if isinstance(components["store"], SqliteKeyValueStore):
        await components["store"].connect()


async def _stop_components(components: dict[str, Any]) -> None:
    await components["client"].close()
    if isinstance(components["store"], SqliteKeyValueStore):
        await components["store"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open I/O resources on startup and release them on shutdown."""
    logger = get_logger("pendash.main")
    settings = app.state.settings
    components = app.state.components

    app.state.service = components["service"]

    await _start_components(components)
    logger.info("lifespan_started", chain_id=settings.api.default_chain_id)

    yield

    await _stop_components(components)
    logger.info("pendash_stopped")


async def run() -> None:
    """Run the dashboard API, or a one-shot evaluation when the server is disabled."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("pendash.main")

    # 3. Build all components
    components = await _build_components(settings)

    if settings.server.enabled:
        from pendash.api.app import create_app

        app = create_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_server",
            host=settings.server.host,
            port=settings.server.port,
        )

        config = uvicorn.Config(
            app,
            host=settings.server.host,
            port=settings.server.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        chain_id = settings.api.default_chain_id
        try:
            await _start_components(components)
            evaluations = await components["service"].load_markets(chain_id)
            logger.info("one_shot_complete", chain_id=chain_id, markets=len(evaluations))
        finally:
            await _stop_components(components)
            logger.info("pendash_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
