"""Application configuration via environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings

from coordinator.utils.constants import DEFAULT_REAPER_INTERVAL_SECONDS


class Settings(BaseSettings):
    registry_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./coordinator.db"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Expiry reaper
    reaper_enabled: bool = True
    reaper_interval_seconds: int = DEFAULT_REAPER_INTERVAL_SECONDS

    # Max wait for a per-trade guard before reporting a conflict
    guard_timeout_seconds: float = 5.0

    # Upstream artifact check applied by the HTTP layer: "none" or "psbt"
    artifact_check: Literal["none", "psbt"] = "none"

    # CLI serve
    host: str = "0.0.0.0"
    port: int = 4000

    model_config = {"env_prefix": "SC_", "env_file": ".env"}


settings = Settings()
