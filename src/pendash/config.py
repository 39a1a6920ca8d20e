"""Configuration system using pydantic-settings with environment variable loading.

The module-level constants are the single source of every tuning value used by
the pure calculation functions. Each function takes the relevant constant as a
keyword default; the settings groups below expose the same values so that the
engine and services can override them from the environment.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Pricing
DAYS_PER_YEAR = Decimal("365")

# Signals
SPREAD_DEADBAND = Decimal("0.5")  # pp between implied and underlying before PT/YT fires
MEAN_REVERSION_STRONG_Z = Decimal("1.5")
MEAN_REVERSION_MILD_Z = Decimal("0.5")
RISK_FREE_RATE = Decimal("3")  # %, approximate stablecoin yield
PT_VOLATILITY_FACTOR = Decimal("0.2")  # PT carries ~20% of underlying volatility
YT_LEVERAGE_CAP = Decimal("10")
CROSS_ASSET_THRESHOLD = Decimal("1")  # pp vs peer average
CROSS_ASSET_MIN_PEERS = 2
CROSS_ASSET_MIN_PEER_DAYS = 7
CORRELATION_MIN_POINTS = 10
PURE_POINTS_MAX_UNDERLYING = Decimal("0.1")
PURE_POINTS_MIN_IMPLIED = Decimal("1")

# Statistics
OUTLIER_LOWER_BOUND = Decimal("0")  # exclusive, percent
OUTLIER_UPPER_BOUND = Decimal("1000")  # exclusive, percent
MOVING_AVERAGE_WINDOW = 7

# Loop strategy
LOOP_SAFETY_FACTOR = Decimal("0.9")  # use 90% of the leverage headroom
LOOP_MIN_FIXED_APY = Decimal("3")
LOOP_MIN_APY_BOOST = Decimal("1.5")

# Watermark
BREACH_CHANGE_PCT = Decimal("-50")
HIGH_SEVERITY_CHANGE_PCT = Decimal("-75")
NEAR_ZERO_APY = Decimal("0.5")
MEDIUM_RISK_DRAWDOWN_PCT = Decimal("5")

# Strategies
YT_FEE_RATE = Decimal("0.05")  # protocol fee on YT yield
DEFAULT_LP_SWAP_FEE_APY = Decimal("2.5")
DEFAULT_LP_INCENTIVE_APY = Decimal("5")
RETURN_CURVE_MAX_APY = 50
RETURN_CURVE_STEP = 2

# Protocol verification
VERIFICATION_MATCH_PCT = Decimal("10")  # relative difference still counted as a match


class SignalSettings(BaseSettings):
    """Signal classification thresholds.

    All fields configurable via SIGNAL_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SIGNAL_")

    spread_deadband: Decimal = SPREAD_DEADBAND
    mean_reversion_strong_z: Decimal = MEAN_REVERSION_STRONG_Z
    mean_reversion_mild_z: Decimal = MEAN_REVERSION_MILD_Z
    risk_free_rate: Decimal = RISK_FREE_RATE
    pt_volatility_factor: Decimal = PT_VOLATILITY_FACTOR
    yt_leverage_cap: Decimal = YT_LEVERAGE_CAP
    cross_asset_threshold: Decimal = CROSS_ASSET_THRESHOLD
    cross_asset_min_peers: int = CROSS_ASSET_MIN_PEERS
    cross_asset_min_peer_days: int = CROSS_ASSET_MIN_PEER_DAYS
    correlation_min_points: int = CORRELATION_MIN_POINTS
    pure_points_max_underlying: Decimal = PURE_POINTS_MAX_UNDERLYING
    pure_points_min_implied: Decimal = PURE_POINTS_MIN_IMPLIED
    moving_average_window: int = MOVING_AVERAGE_WINDOW


class LoopSettings(BaseSettings):
    """Leveraged PT looping thresholds."""

    model_config = SettingsConfigDict(env_prefix="LOOP_")

    safety_factor: Decimal = LOOP_SAFETY_FACTOR
    min_fixed_apy: Decimal = LOOP_MIN_FIXED_APY
    min_apy_boost: Decimal = LOOP_MIN_APY_BOOST


class WatermarkSettings(BaseSettings):
    """Watermark breach detection thresholds (percent units)."""

    model_config = SettingsConfigDict(env_prefix="WATERMARK_")

    breach_change_pct: Decimal = BREACH_CHANGE_PCT
    high_severity_change_pct: Decimal = HIGH_SEVERITY_CHANGE_PCT
    near_zero_apy: Decimal = NEAR_ZERO_APY
    medium_risk_drawdown_pct: Decimal = MEDIUM_RISK_DRAWDOWN_PCT


class StrategySettings(BaseSettings):
    """Strategy comparator assumptions."""

    model_config = SettingsConfigDict(env_prefix="STRATEGY_")

    default_lp_swap_fee_apy: Decimal = DEFAULT_LP_SWAP_FEE_APY
    default_lp_incentive_apy: Decimal = DEFAULT_LP_INCENTIVE_APY
    return_curve_max_apy: int = RETURN_CURVE_MAX_APY
    return_curve_step: int = RETURN_CURVE_STEP


class HistoricalDataSettings(BaseSettings):
    """Historical yield cache configuration.

    Controls where the cache lives, how much history is retained and how long
    a cached series is served without re-fetching.
    """

    model_config = SettingsConfigDict(env_prefix="HISTORICAL_")

    db_path: str = "data/history.db"
    use_sqlite: bool = True
    max_history_days: int = 180
    cache_ttl_seconds: int = 60 * 60 * 24 * 7  # 7 days
    freshness_minutes: int = 60
    stats_windows: list[int] = [90, 30, 7]


class ApiSettings(BaseSettings):
    """Pendle API access settings."""

    model_config = SettingsConfigDict(env_prefix="PENDLE_")

    base_url: str = "https://api-v2.pendle.finance/core"
    cors_proxies: list[str] = [
        "https://api.allorigins.win/raw?url={url}",
        "https://corsproxy.io/?{url}",
    ]
    default_chain_id: int = 1
    request_timeout: float = 15.0
    max_retries: int = 3
    retry_base_delay: float = 0.5


class ServerSettings(BaseSettings):
    """JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    signal: SignalSettings = SignalSettings()
    loop: LoopSettings = LoopSettings()
    watermark: WatermarkSettings = WatermarkSettings()
    strategy: StrategySettings = StrategySettings()
    historical: HistoricalDataSettings = HistoricalDataSettings()
    api: ApiSettings = ApiSettings()
    server: ServerSettings = ServerSettings()
