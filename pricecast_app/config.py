"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from pricecast.models import LedgerConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables (PRICECAST_*)."""

    model_config = SettingsConfigDict(
        env_prefix="PRICECAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Redis (ledger persistence)
    redis_url: str = "redis://localhost:6379/0"
    ledger_id: str = "default"

    # Tracked assets and their display symbols
    assets: list[str] = ["bitcoin", "ethereum"]
    asset_symbols: dict[str, str] = {"bitcoin": "BTC", "ethereum": "ETH"}

    # Prediction ledger
    ledger_max_entries: int = 100
    ledger_min_spacing_ms: int = 300_000
    short_horizon_ms: int = 60_000      # 1 minute
    long_horizon_ms: int = 86_400_000   # 1 day

    # Fusion weights file (YAML), relative to the working directory
    fusion_config_path: str = "pricecast.yaml"

    debug: bool = False

    def ledger_config(self) -> LedgerConfig:
        return LedgerConfig(
            max_entries=self.ledger_max_entries,
            min_spacing_ms=self.ledger_min_spacing_ms,
            short_horizon_ms=self.short_horizon_ms,
            long_horizon_ms=self.long_horizon_ms,
        )

    def symbol_for(self, asset_id: str) -> str:
        return self.asset_symbols.get(asset_id, asset_id.upper())


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
