"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

#: Wrapped SOL mint; pairs are tracked only against it or a listed stable.
NATIVE_WRAPPED_ADDRESS = "So11111111111111111111111111111111111111112"

#: USDC and USDT mints on Solana.
DEFAULT_STABLE_ADDRESSES = [
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
]

_DEFAULT_LISTING_URL = (
    "https://dexscreen-scraper-delta.vercel.app/dex?generated_text="
    "%26filters%5BmarketCap%5D%5Bmin%5D%3D2000000"
    "%26filters%5BchainIds%5D%5B0%5D%3Dsolana"
)


def is_configured(value: str | SecretStr | None) -> bool:
    """Return True when a credential is present and not a template placeholder."""
    if value is None:
        return False
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    value = value.strip()
    return bool(value) and "YOUR_" not in value.upper()


class StoreSettings(BaseSettings):
    """Document store location (SQLite file path)."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    path: str = "data/pairwatch.db"


class OkxSettings(BaseSettings):
    """OKX DEX market API credentials and endpoint."""

    model_config = SettingsConfigDict(env_prefix="OKX_")

    api_key: SecretStr = SecretStr("")
    secret_key: SecretStr = SecretStr("")
    passphrase: SecretStr = SecretStr("")
    base_url: str = "https://web3.okx.com"
    chain_index: str = "501"  # Solana
    request_timeout: float = 15.0


class PairSourceSettings(BaseSettings):
    """Listing endpoint and pair aggregator settings."""

    model_config = SettingsConfigDict(env_prefix="PAIRS_")

    listing_url: str = _DEFAULT_LISTING_URL
    aggregator_base_url: str = "https://api.dexscreener.com"
    chain_id: str = "solana"
    native_address: str = NATIVE_WRAPPED_ADDRESS
    stable_addresses: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STABLE_ADDRESSES)
    )
    request_timeout: float = 15.0


class SchedulerSettings(BaseSettings):
    """Polling intervals (seconds) and upstream throttling."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    pair_ingestion_interval: float = 15.0
    indicator_refresh_interval: float = 60.0
    metadata_refresh_interval: float = 300.0
    market_cap_refresh_interval: float = 600.0
    market_cap_enabled: bool = True
    request_throttle: float = 1.0  # delay between upstream calls within a loop
    market_cap_batch_size: int = 10


class IndicatorSettings(BaseSettings):
    """RSI windows and alert thresholds.

    The long window is derived from the short one by aggregating
    ``aggregation_factor`` short candles (12 x 5m = 1H) unless
    ``derive_long_window`` is disabled, in which case it is fetched directly.
    """

    model_config = SettingsConfigDict(env_prefix="INDICATOR_")

    short_bar: str = "5m"
    long_bar: str = "1H"
    candle_limit: int = 299
    aggregation_factor: int = 12
    derive_long_window: bool = True
    rsi_period: int = 14
    alert_upper: float = 30.0  # both RSIs must be below this
    alert_lower: float = 10.0  # long RSI must be at or above this


class TelegramSettings(BaseSettings):
    """Telegram bot notification channel."""

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_")

    notifications_enabled: bool = False
    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""
    api_base_url: str = "https://api.telegram.org"


class EmailSettings(BaseSettings):
    """Resend batch email channel."""

    model_config = SettingsConfigDict(env_prefix="RESEND_")

    api_key: SecretStr = SecretStr("")
    from_address: str = "Pairwatch Signals <signals@pairwatch.local>"
    api_base_url: str = "https://api.resend.com"
    token_link_base: str = "https://gmgn.ai/sol/token/"


class ApiSettings(BaseSettings):
    """Read API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    store: StoreSettings = StoreSettings()
    okx: OkxSettings = OkxSettings()
    pairs: PairSourceSettings = PairSourceSettings()
    scheduler: SchedulerSettings = SchedulerSettings()
    indicator: IndicatorSettings = IndicatorSettings()
    telegram: TelegramSettings = TelegramSettings()
    email: EmailSettings = EmailSettings()
    api: ApiSettings = ApiSettings()
