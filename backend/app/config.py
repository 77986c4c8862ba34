from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="ByteLearn Realtime API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "https://bytelearn-online-school.onrender.com",
            "https://bytelearn-online-school-frontend.vercel.app",
        ],
        description="List of allowed CORS origins",
    )

    db_user: str = Field(default="bytelearn")
    db_password: str = Field(default="bytelearn")
    db_host: str = Field(default="db")
    db_port: int = Field(default=3306)
    db_name: str = Field(default="bytelearn")
    database_url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over the DB_* parts",
    )

    jwt_secret_key: str = Field(default="changeme")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=3 * 24 * 60)

    chat_history_max_limit: int = Field(default=200)
    chat_message_max_length: int = Field(default=2000)
    websocket_keepalive_timeout_seconds: float = Field(
        default=25.0,
        description="Idle receive timeout after which the server considers sending a ping",
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=25.0,
        description="Minimum idle time between two server pings",
    )
    websocket_auth_timeout_seconds: float = Field(
        default=10.0,
        description="How long to wait for an auth frame when no token is in the handshake",
    )

    friend_request_alert_delay_seconds: float = Field(
        default=2.0,
        description="Delay before the live friend request alert reaches the target",
    )
    feedback_edit_window_minutes: int = Field(
        default=30,
        description="How long a feedback message stays editable after it is sent",
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value or "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
