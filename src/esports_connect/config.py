"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "ESPORTS_CONNECT_", "env_file": ".env", "env_file_encoding": "utf-8"}

    cache_default_ttl_ms: int = 5 * 60 * 1000  # 5 minutes
    cache_max_entries: int | None = None  # unbounded
    cache_sweep_interval_seconds: float = 60.0  # 0 disables the background sweep

    slow_operation_threshold_ms: float = 1000.0
    log_level: str = "INFO"

    cors_origins: list[str] = ["http://localhost:3000"]
