"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CourseMaster settings, read from the environment (and ``.env``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="coursemaster", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Contact points"
    )
    cassandra_port: int = Field(default=9042, description="Native protocol port")
    cassandra_keyspace: str = Field(
        default="coursemaster", description="Keyspace holding every engine table"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_datacenter: str = Field(
        default="datacenter1", description="Datacenter replicated to in production"
    )
    cassandra_replication_factor: int = Field(
        default=3, ge=1, description="Replicas per datacenter in production"
    )
    cassandra_connect_timeout: float = Field(
        default=10.0, gt=0, description="Seconds to wait for the cluster at startup"
    )
    cassandra_request_timeout: float = Field(
        default=10.0, gt=0, description="Per-query timeout in seconds"
    )

    # Engine
    cas_max_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts for compare-and-set updates before giving up",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Console log format (files are always JSON)"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Add filename/line/function to events"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file"
    )
    log_file_backup_count: int = Field(
        default=5, description="Rotated files kept per log"
    )
    log_requests: bool = Field(default=True, description="Write access log lines")
    log_exclude_paths: list[str] = Field(
        default=["/health"],
        description="Path prefixes left out of the access log",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    # Notifications (Gmail API)
    email_enabled: bool = Field(
        default=False, description="Send notification emails via Gmail API"
    )
    email_credentials_path: str = Field(
        default="credentials/google-service-account.json",
        description="Path to Google service account JSON file",
    )
    email_sender_address: str = Field(
        default="no-reply@coursemaster.dev",
        description="Sender address (must be in the Google Workspace domain)",
    )
    email_sender_name: str = Field(
        default="CourseMaster", description="Sender display name"
    )
    email_course_url_base: str = Field(
        default="http://localhost:3000/courses",
        description="Base URL for course links in emails",
    )
    notification_drain_timeout: float = Field(
        default=5.0,
        ge=0,
        description="Seconds to wait for in-flight emails at shutdown",
    )

    @field_validator("email_course_url_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def email_configured(self) -> bool:
        """Email is enabled and has a sender."""
        return bool(self.email_enabled and self.email_sender_address)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
