"""Configuration settings for the power usage gateway."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Prometheus backend, "host:port" or a full base URL
    prometheus_host: str
    query_timeout: float = 5.0  # seconds, per backend query
    energy_metric: str = "energy"
    lookback_window: str = "10m"

    # Local date/time parameters are read in this fixed offset (WIB)
    reference_utc_offset_hours: float = 7.0

    # Server settings
    server_name: str = "power-usage"
    server_version: str = "0.1.0"
    server_host: str = "0.0.0.0"
    server_port: int = 9118
    log_level: str = "INFO"

    @property
    def prometheus_base_url(self) -> str:
        host = self.prometheus_host.strip().rstrip("/")
        if "://" not in host:
            host = f"http://{host}"
        return host

    @property
    def prometheus_query_url(self) -> str:
        return f"{self.prometheus_base_url}/api/v1/query"


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process. Raises if PROMETHEUS_HOST is unset."""
    return Settings()
