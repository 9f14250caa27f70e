from __future__ import annotations

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sierra_gateway.errors import ConfigError

DEFAULT_API_URL = "https://sandbox.iii.com/iii/sierra-api/v1/"
TOKEN_REQUEST_ENDPOINT = "token"
ITEM_REQUEST_ENDPOINT = "items"
BIB_REQUEST_ENDPOINT = "bibs"


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from environment variables prefixed with `TYRO_`, or `.env`
    - `acao_header` accepts `*` or a `;`-separated list of allowed origins
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "sierra-gateway"
    address: str = "0.0.0.0"
    port: int = 8877
    cert_file: str | None = None
    key_file: str | None = None
    static_dir: str = "./static"

    # ----------------------------
    # Sierra API
    # ----------------------------
    api_url: str = DEFAULT_API_URL
    token_endpoint: str | None = None  # overrides <api_url>/token
    client_key: str = ""
    client_secret: str = ""
    user_agent: str = "Tyro"
    http_timeout: float = Field(default=30.0, gt=0)

    # ----------------------------
    # Token lifecycle (seconds)
    # ----------------------------
    token_refresh_buffer: float = Field(default=5.0, ge=0)
    token_min_ttl: float = Field(default=10.0, ge=0)
    token_retry_delay: float = Field(default=30.0, gt=0)
    token_wait_timeout: float = Field(default=30.0, gt=0)

    # ----------------------------
    # CORS
    # ----------------------------
    acao_header: str = "*"

    # ----------------------------
    # Logging
    # ----------------------------
    log_level: str = Field(default="warn", pattern=r"^(error|warn|info|debug|trace)$")
    log_file: str = "stdout"
    log_max_size: int = Field(default=100, ge=1)  # megabytes
    log_max_backups: int = Field(default=0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="TYRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @computed_field
    @property
    def token_url(self) -> str:
        """URL for fetching access tokens."""
        if self.token_endpoint:
            return self.token_endpoint
        return api_endpoint(self.api_url, TOKEN_REQUEST_ENDPOINT)

    def cors_origins(self) -> list[str]:
        raw = self.acao_header.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.replace(",", ";").split(";") if o.strip()]

    def validate_credentials(self) -> None:
        """Fail fast on configuration the gateway cannot run without."""
        if not self.client_key:
            raise ConfigError("A client key is required to authenticate against the Sierra API.")
        if not self.client_secret:
            raise ConfigError("A client secret is required to authenticate against the Sierra API.")


def api_endpoint(api_url: str, *parts: str) -> str:
    base = api_url.rstrip("/")
    tail = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
    return f"{base}/{tail}" if tail else base


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
