from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./lnbill.db"
    database_pool_size: int = 5
    database_echo: bool = False

    # Payment provider (Galoy GraphQL API)
    galoy_endpoint: str = "https://api.staging.galoy.io/graphql"
    galoy_timeout_seconds: float = 15.0

    # Bill issuer discovery
    issuer_timeout_seconds: float = 30.0
    issuer_settings_max_bytes: int = 100 * 1024

    # Payment reconciliation worker
    reconciliation_worker_enabled: bool = False
    reconciliation_interval_seconds: int = 60
    reconciliation_page_size: int = 100

    tracing_service_name: str = "lnbill-api"
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # HTTP server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    # Honour X-Forwarded-Host/-Proto when the service sits behind a trusted proxy
    trust_proxy_headers: bool = False
    forwarded_allow_ips: str = "127.0.0.1"

    @property
    def allow_http(self) -> bool:
        """Issuer discovery may fall back to plain HTTP outside production."""

        return self.environment != "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
