"""Application settings and configuration.

This module defines all configuration options for the Lock-In tracker.
Settings are loaded from environment variables with sensible defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    Timer intervals and report windows are handed to the components at
    construction, so tests can build their own instance with shorter values.
    """

    # Application metadata
    app_name: str = Field(default="Lock-In", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    min_password_length: int = Field(default=6, alias="MIN_PASSWORD_LENGTH")
    max_failed_sign_ins: int = Field(default=5, alias="MAX_FAILED_SIGN_INS")
    sign_in_lockout_seconds: int = Field(default=300, alias="SIGN_IN_LOCKOUT_SECONDS")

    # Document store
    database_url: str = Field(default="sqlite:///./lockin.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Timer cadence
    tick_interval_seconds: float = Field(default=1.0, alias="TICK_INTERVAL_SECONDS")
    checkpoint_interval_seconds: float = Field(
        default=120.0,
        alias="CHECKPOINT_INTERVAL_SECONDS",
    )

    # Local backup slot kept on this device
    backup_path: Path = Field(
        default=Path.home() / ".lockin" / "device_state.json",
        alias="BACKUP_PATH",
    )
    backup_max_age_hours: int = Field(default=24, alias="BACKUP_MAX_AGE_HOURS")

    # Day closing
    finalize_on_sign_out: bool = Field(default=False, alias="FINALIZE_ON_SIGN_OUT")

    # Report windows
    weekly_window_days: int = Field(default=7, alias="WEEKLY_WINDOW_DAYS")
    monthly_window_days: int = Field(default=30, alias="MONTHLY_WINDOW_DAYS")
    recent_days_window: int = Field(default=14, alias="RECENT_DAYS_WINDOW")
    chart_max_height: int = Field(default=180, alias="CHART_MAX_HEIGHT")

    # CORS configuration for the browser front end
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_sqlite(self) -> bool:
        """Return True when the document store lives in SQLite."""
        return self.database_url.startswith("sqlite")


settings = Settings()  # type: ignore[call-arg]
