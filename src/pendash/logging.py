"""Structured logging for pendash on top of structlog and stdlib logging."""

import logging
import os
from decimal import Decimal

import structlog
from structlog.types import EventDict, Processor

_QUIET_LOGGERS = ("aiohttp.access", "uvicorn.access")


def _stringify_decimals(_logger: object, _method: str, event_dict: EventDict) -> EventDict:
    """Render Decimal values exactly instead of as Decimal('...') reprs."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def _pick_renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route structlog events through a single stdlib handler.

    Args:
        log_level: Root level name, e.g. "DEBUG". Unknown names fall back to INFO.
        log_format: "json" or "console". Defaults to the LOG_FORMAT environment
            variable, then "console".

    Access loggers of aiohttp and uvicorn are held at WARNING.
    """
    log_format = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stringify_decimals,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _pick_renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_market_context(chain_id: int, address: str) -> None:
    """Attach the market being processed to every log line in this context."""
    structlog.contextvars.bind_contextvars(chain_id=chain_id, market=address.lower())


def clear_market_context() -> None:
    """Drop market context bound by bind_market_context."""
    structlog.contextvars.unbind_contextvars("chain_id", "market")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
