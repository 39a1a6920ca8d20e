"""Current position of a market relative to its watermark.

The YT contract stores the PY index (the highest SY exchange rate seen); the
SY contract reports the current exchange rate. While the exchange rate is
below the stored index, YT accrues nothing. Reading both values on-chain is
the caller's job; this module only evaluates them.
"""

from dataclasses import dataclass
from decimal import Decimal

_WAD = Decimal(10) ** 18


@dataclass(frozen=True)
class WatermarkStatus:
    py_index_stored: Decimal
    exchange_rate: Decimal
    ratio: Decimal
    below_watermark: bool
    percent_from_watermark: Decimal


def watermark_status(py_index_stored: Decimal, exchange_rate: Decimal) -> WatermarkStatus:
    """Compare the SY exchange rate to the stored PY index.

    ratio is exchange_rate / py_index_stored, or 1 when the index is zero.
    """
    ratio = exchange_rate / py_index_stored if py_index_stored > 0 else Decimal("1")
    return WatermarkStatus(
        py_index_stored=py_index_stored,
        exchange_rate=exchange_rate,
        ratio=ratio,
        below_watermark=exchange_rate < py_index_stored,
        percent_from_watermark=(ratio - Decimal("1")) * Decimal("100"),
    )


def watermark_status_from_raw(py_index_stored: int, exchange_rate: int) -> WatermarkStatus:
    """Same as watermark_status for raw 18-decimal contract integers."""
    return watermark_status(Decimal(py_index_stored) / _WAD, Decimal(exchange_rate) / _WAD)
