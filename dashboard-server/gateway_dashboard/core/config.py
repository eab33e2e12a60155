# gateway_dashboard/core/config.py
import json
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Central dashboard settings loaded from environment variables (and .env).

    Notes
    -----
    - Every variable is read with the `DASHBOARD_` prefix, e.g.
        DASHBOARD_GATEWAY_BASE_URL=http://gateway:8080
    - Endpoint paths are joined onto `gateway_base_url`; they mirror the
      gateway's defaults and only need overriding behind a proxy.
    - `cors_allow_origins` accepts JSON array or comma-separated string.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DASHBOARD_",
        extra="ignore",
    )

    # ---------- Gateway endpoints ----------
    gateway_base_url: str = Field("http://127.0.0.1:8080")
    metrics_path: str = "/api/metrics"
    messages_path: str = "/api/messages"
    topics_path: str = "/api/topics"
    health_path: str = "/health"
    send_path: str = "/message"

    # Client timeout (seconds) applied to every gateway request
    request_timeout_sec: float = Field(default=10.0, gt=0)

    # ---------- Sync loop ----------
    refresh_interval_sec: float = Field(
        default=3.0, gt=0,
        description="Seconds between two refresh ticks."
    )
    list_limit: int = Field(
        default=5, ge=0,
        description="Maximum number of messages/topics rendered."
    )
    single_flight: bool = Field(
        default=True,
        description="Allow at most one outstanding request per gateway endpoint."
    )

    # ---------- Credentials ----------
    credential_file: Path = Field(
        default_factory=lambda: Path.home() / ".gateway-dashboard" / "credentials.json"
    )
    credential_key: str = "kafkaGatewayApiKey"

    # ---------- WebSocket ----------
    ws_push_tick: float = 1.0

    # ---------- CORS ----------
    cors_allow_origins: list[str] | None = None

    @field_validator("cors_allow_origins", mode="before")
    def _parse_cors_origins(cls, v):
        """Accept JSON array or comma-separated string."""
        if v is None:
            return None
        if isinstance(v, str):
            try:
                parsed = json.loads(v)  # JSON array
                if isinstance(parsed, list):
                    return [str(s).strip() for s in parsed if str(s).strip()]
            except ValueError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # ---------- Observability ----------
    metrics_enabled: bool = Field(
        default=True,
        description="Expose Prometheus /metrics for the dashboard itself."
    )
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    def _upper_log_level(cls, v):
        return str(v).strip().upper() if v is not None else "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
