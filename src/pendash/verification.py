"""Cross-check the API's underlying APY against the protocol's own figure.

Each curated source names the protocol endpoint, the JSON field holding its
APY and the assets it covers. A market is matched to a source by asset
substring; the protocol APY is then compared to the Pendle-reported
underlying APY. A relative difference below 10% counts as a match.

"Cannot verify" (no source, or the source could not be fetched) is a distinct
outcome, never conflated with a match or a divergence.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from pendash.assets import name_matches
from pendash.config import VERIFICATION_MATCH_PCT
from pendash.exceptions import ApiUnavailableError
from pendash.logging import get_logger
from pendash.market_data.client import PendleApiClient
from pendash.market_data.normalize import to_decimal

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ProtocolSource:
    """A protocol endpoint that publishes the APY of one or more assets."""

    key: str
    name: str
    url: str
    field_paths: tuple[str, ...]  # dotted paths, first non-empty wins
    assets: tuple[str, ...]
    percent_scale: Decimal = Decimal("1")  # multiplier turning the raw value into percent


PROTOCOL_APY_SOURCES: dict[str, ProtocolSource] = {
    "stETH": ProtocolSource(
        key="stETH",
        name="Lido",
        url="https://eth-api.lido.fi/v1/protocol/steth/apr/sma",
        field_paths=("data.smaApr",),
        assets=("stETH", "wstETH"),
    ),
    "rETH": ProtocolSource(
        key="rETH",
        name="Rocket Pool",
        url="https://api.rocketpool.net/api/mainnet/payload",
        field_paths=("rethAPR",),
        assets=("rETH",),
    ),
    "sUSDe": ProtocolSource(
        key="sUSDe",
        name="Ethena",
        url="https://ethena.fi/api/yields/protocol-and-staking-yield",
        field_paths=("stakingYield.value",),
        assets=("sUSDe", "USDe"),
    ),
    "weETH": ProtocolSource(
        key="weETH",
        name="EtherFi",
        url="https://www.etherfi.bid/api/etherfi/apr",
        field_paths=("latest_aprs.staking_apr", "apr"),
        assets=("weETH", "eETH", "weETHs"),
    ),
    "sfrxETH": ProtocolSource(
        key="sfrxETH",
        name="Frax",
        url="https://api.frax.finance/v2/frxeth/summary/latest",
        field_paths=("sfrxethApr",),
        assets=("sfrxETH", "frxETH"),
    ),
    "cbETH": ProtocolSource(
        key="cbETH",
        name="Coinbase",
        url="https://api.exchange.coinbase.com/wrapped-assets/CBETH/",
        field_paths=("apy",),
        assets=("cbETH",),
        percent_scale=Decimal("100"),  # reported as a fraction
    ),
}


class VerificationStatus(str, Enum):
    MATCHES = "matches"
    DIVERGES = "diverges"
    UNVERIFIABLE = "unverifiable"


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    reason: str = ""
    source: str | None = None
    protocol_apy: Decimal | None = None  # percent
    pendle_apy: Decimal | None = None  # percent
    difference: Decimal | None = None  # absolute, pp
    percent_diff: Decimal | None = None  # relative to protocol APY, percent


def find_protocol_source(
    market_name: str | None,
    sources: Mapping[str, ProtocolSource] = PROTOCOL_APY_SOURCES,
) -> ProtocolSource | None:
    """First source with an asset contained in the market name."""
    for source in sources.values():
        if any(name_matches(market_name, asset) for asset in source.assets):
            return source
    return None


def _lookup(payload: Any, path: str) -> Any:
    node = payload
    for part in path.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def parse_protocol_apy(source: ProtocolSource, payload: Any) -> Decimal:
    """Extract the protocol APY in percent from its response payload.

    Missing fields read as 0, as in a protocol reporting no yield.
    """
    for path in source.field_paths:
        value = _lookup(payload, path)
        if value:
            return to_decimal(value) * source.percent_scale
    return _ZERO


def compare_apys(
    source_name: str,
    pendle_apy: Decimal,
    protocol_apy: Decimal,
    match_pct: Decimal = VERIFICATION_MATCH_PCT,
) -> VerificationResult:
    """Compare a Pendle-reported APY with the protocol's figure (both percent).

    percent_diff is |pendle - protocol| / protocol * 100, or 0 when the
    protocol APY is not positive.
    """
    difference = abs(pendle_apy - protocol_apy)
    percent_diff = difference / protocol_apy * _HUNDRED if protocol_apy > _ZERO else _ZERO
    return VerificationResult(
        status=(
            VerificationStatus.MATCHES if percent_diff < match_pct else VerificationStatus.DIVERGES
        ),
        source=source_name,
        protocol_apy=protocol_apy,
        pendle_apy=pendle_apy,
        difference=difference,
        percent_diff=percent_diff,
    )


class ProtocolApyClient:
    """Fetches protocol APYs and memoizes them per source key.

    Args:
        client: Pendle API client whose transport (proxy fallback, retry) is
            reused for protocol endpoints.
        sources: Curated protocol source table.
    """

    def __init__(
        self,
        client: PendleApiClient,
        sources: Mapping[str, ProtocolSource] = PROTOCOL_APY_SOURCES,
        match_pct: Decimal = VERIFICATION_MATCH_PCT,
    ) -> None:
        self._client = client
        self._sources = sources
        self._match_pct = match_pct
        self._cache: dict[str, Decimal] = {}

    async def fetch_protocol_apy(self, source: ProtocolSource) -> Decimal | None:
        """Protocol APY in percent, or None when the source is unreachable."""
        if source.key in self._cache:
            return self._cache[source.key]
        try:
            payload = await self._client.get_json(source.url)
        except ApiUnavailableError as e:
            logger.warning("protocol_apy_unavailable", source=source.name, error=str(e))
            return None
        apy = parse_protocol_apy(source, payload)
        self._cache[source.key] = apy
        logger.debug("protocol_apy_fetched", source=source.name, apy=str(apy))
        return apy

    async def verify_underlying_apy(
        self, market_name: str, underlying_apy: Decimal
    ) -> VerificationResult:
        """Verify a market's underlying APY (percent) against its protocol."""
        source = find_protocol_source(market_name, self._sources)
        if source is None:
            return VerificationResult(
                status=VerificationStatus.UNVERIFIABLE,
                reason="No protocol source available",
            )
        protocol_apy = await self.fetch_protocol_apy(source)
        if protocol_apy is None:
            return VerificationResult(
                status=VerificationStatus.UNVERIFIABLE,
                reason=f"Could not fetch {source.name} data",
                source=source.name,
            )
        return compare_apys(source.name, underlying_apy, protocol_apy, self._match_pct)
