"""
Configuration management for Tickcast Python agents.
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .types import Horizon


# Sections are plain models; only TickcastConfig reads the environment
class MarketDataConfig(BaseModel):
    """Market data source configuration."""
    symbol: str = "ETHUSDT"
    kucoin_symbol: str = "ETH-USDT"
    binance_endpoints: list[str] = Field(default_factory=lambda: [
        "https://api1.binance.com",
        "https://api2.binance.com",
        "https://api3.binance.com",
    ])
    bybit_url: str = "https://api.bybit.com/v5/market/tickers"
    kucoin_url: str = "https://api.kucoin.com/api/v1/market/stats"
    refresh_interval_s: float = 2.0
    order_book_limit: int = 50
    order_book_depth: int = 10
    request_timeout_s: float = 5.0


class HistoryConfig(BaseModel):
    """Bounded history sizes."""
    max_price_history: int = 120  # 2 minutes at 1 Hz
    max_prediction_history: int = 15
    max_outcome_history: int = 60


class HeuristicConfig(BaseModel):
    """Order-book heuristic loop configuration."""
    interval_15s_s: float = 15.0
    interval_30s_s: float = 30.0
    interval_60s_s: float = 60.0
    initial_delay_s: float = 2.5
    initial_jitter_s: float = 0.5


class OracleConfig(BaseModel):
    """External prediction oracle configuration."""
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    interval_s: float = 30.0
    warmup_s: float = 5.0
    min_history: int = 60
    request_history: int = 60
    rate_limit_cooldown_s: float = 60.0
    timeout_s: float = 20.0


class MonitoringConfig(BaseModel):
    """Monitoring configuration."""
    log_level: str = "INFO"
    json_logs: bool = False


class TickcastConfig(BaseSettings):
    """Main Tickcast configuration."""

    model_config = {"env_prefix": "TICKCAST_", "env_nested_delimiter": "__"}

    # Environment
    environment: str = Field(default="development")

    market: MarketDataConfig = Field(default_factory=MarketDataConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    heuristic: HeuristicConfig = Field(default_factory=HeuristicConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    # Falls back to the SDK's own variable when oracle.api_key is unset
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    def get_oracle_api_key(self) -> str | None:
        """API key for the oracle, preferring the prefixed setting."""
        return self.oracle.api_key or self.openai_api_key

    def get_heuristic_interval(self, horizon: Horizon) -> float:
        """Loop period in seconds for a heuristic horizon."""
        intervals = {
            Horizon.FIFTEEN_SECONDS: self.heuristic.interval_15s_s,
            Horizon.THIRTY_SECONDS: self.heuristic.interval_30s_s,
            Horizon.SIXTY_SECONDS: self.heuristic.interval_60s_s,
        }
        return intervals.get(horizon, float(horizon.seconds))


@lru_cache
def get_config() -> TickcastConfig:
    """Get cached configuration instance."""
    # Load .env file if present
    from dotenv import load_dotenv
    load_dotenv()

    return TickcastConfig()
