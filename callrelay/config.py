import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "sqlite:///./callrelay.db"
DEFAULT_TEST_DATABASE_URL = "sqlite:///:memory:"

# Project root (parent of callrelay/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "callrelay"
    database_url: Optional[str] = None  # Will be set dynamically
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Remote backend (dashboard source of truth)
    backend_api_url: str = Field(
        default="https://maystorfix.com/api/v1",
        json_schema_extra={"env": "BACKEND_API_URL"},
    )
    backend_timeout_seconds: float = Field(
        default=10.0, json_schema_extra={"env": "BACKEND_TIMEOUT_SECONDS"}
    )
    backend_auth_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "BACKEND_AUTH_TOKEN"}
    )
    backend_user_id: Optional[str] = Field(
        default=None, json_schema_extra={"env": "BACKEND_USER_ID"}
    )

    # Chat links
    chat_base_url: str = Field(
        default="https://maystorfix.com",
        json_schema_extra={"env": "CHAT_BASE_URL"},
    )
    chat_token_ttl_hours: int = Field(
        default=24, ge=1, json_schema_extra={"env": "CHAT_TOKEN_TTL_HOURS"}
    )

    # Contacts
    default_country_code: str = Field(
        default="359", json_schema_extra={"env": "DEFAULT_COUNTRY_CODE"}
    )
    contacts_file: Optional[str] = Field(
        default=None, json_schema_extra={"env": "CONTACTS_FILE"}
    )

    # Security gate
    premium_patterns_file: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PREMIUM_PATTERNS_FILE"}
    )

    # Dedup ledger
    ledger_retention: int = Field(
        default=100, ge=1, json_schema_extra={"env": "LEDGER_RETENTION"}
    )

    # Config synchronization
    config_sync_interval_seconds: int = Field(
        default=300, ge=5, json_schema_extra={"env": "CONFIG_SYNC_INTERVAL_SECONDS"}
    )
    config_local_grace_seconds: int = Field(
        default=30, ge=0, json_schema_extra={"env": "CONFIG_LOCAL_GRACE_SECONDS"}
    )

    # Delivery
    # None: use the backend relay whenever a bearer token is configured
    relay_channel_enabled: Optional[bool] = Field(
        default=None, json_schema_extra={"env": "RELAY_CHANNEL_ENABLED"}
    )
    business_name: str = Field(
        default="ServiceText Pro", json_schema_extra={"env": "BUSINESS_NAME"}
    )

    # Celery / Redis
    redis_host: str = Field(
        default="localhost", json_schema_extra={"env": "REDIS_HOST"}
    )
    redis_port: int = Field(default=6379, json_schema_extra={"env": "REDIS_PORT"})
    celery_broker_db: int = Field(
        default=0, json_schema_extra={"env": "CELERY_BROKER_DB"}
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = (
            values.get("ENV")
            or values.get("environment")
            or os.getenv("ENV", "development")
        )
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        else:
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def celery_broker_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.celery_broker_db}"

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
