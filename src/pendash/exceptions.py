"""Custom exceptions for pendash.

Only the I/O-facing layers raise these. The calculation core never raises for
bad numeric input; it returns Decimal("0") or None instead.
"""


class PendashError(Exception):
    """Base exception for all pendash errors."""


class MarketDataError(PendashError):
    """Raised when a raw market snapshot cannot be normalized into a MarketQuote."""


class ApiUnavailableError(PendashError):
    """Raised when the direct request and every proxy fallback have failed."""


class MarketNotFoundError(PendashError):
    """Raised when a market address is not present in the current market list."""
