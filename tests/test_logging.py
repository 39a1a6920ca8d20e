"""Tests for logging helpers."""

import logging
from decimal import Decimal

import structlog

from pendash.logging import (
    _stringify_decimals,
    bind_market_context,
    clear_market_context,
    setup_logging,
)


class TestLogging:
    """Tests for the structlog setup and context helpers."""

    def test_decimals_rendered_as_strings(self) -> None:
        """Decimal values keep their exact digits."""
        event = _stringify_decimals(None, "info", {"event": "x", "apy": Decimal("5.10")})
        assert event == {"event": "x", "apy": "5.10"}

    def test_market_context_bound_and_cleared(self) -> None:
        """Market context is added lowercased and removed again."""
        bind_market_context(1, "0xABC")
        assert structlog.contextvars.get_contextvars() == {"chain_id": 1, "market": "0xabc"}
        clear_market_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_setup_sets_levels(self) -> None:
        """Root level follows the argument; access logs are quieted."""
        setup_logging("DEBUG", log_format="json")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
