"""
Configuration management for the clinic visits service.

Settings are read from the environment (and ``.env``) with Pydantic
Settings. Each concern has its own prefixed settings class.
"""

from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )
    db_name: str = Field(default="clinicvisits", description="MongoDB database name")

    @validator("uri")
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v


class StorageSettings(BaseSettings):
    """Persistence backend selection."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: str = Field(default="mongo", description="Storage backend (mongo or memory)")
    max_write_attempts: int = Field(
        default=5, description="Compare-and-write rounds before a visit update fails"
    )

    @validator("backend")
    def validate_backend(cls, v: str) -> str:
        if v.lower() not in ("mongo", "memory"):
            raise ValueError("Storage backend must be 'mongo' or 'memory'")
        return v.lower()

    @validator("max_write_attempts")
    def validate_max_write_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_write_attempts must be at least 1")
        return v


class VisitSettings(BaseSettings):
    """Visit lifecycle settings."""

    model_config = SettingsConfigDict(env_prefix="VISIT_")

    allow_direct_completion: bool = Field(
        default=True, description="Allow completing a visit that was never started"
    )
    chief_complaint_max_length: int = Field(default=1000)
    diagnosis_max_length: int = Field(default=2000)
    notes_max_length: int = Field(default=5000)

    @validator("chief_complaint_max_length", "diagnosis_max_length", "notes_max_length")
    def validate_lengths(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Text length limits must be positive")
        return v


class FinanceSettings(BaseSettings):
    """Finance reporting settings."""

    model_config = SettingsConfigDict(env_prefix="FINANCE_")

    default_page_size: int = Field(default=20, description="Search page size")
    max_page_size: int = Field(default=100, description="Largest allowed page size")
    top_practitioners: int = Field(default=10, description="Rows in revenue by doctor")
    recent_visits: int = Field(default=10, description="Rows in recent visits")
    reporting_timezone: str = Field(
        default="UTC", description="Timezone for today/this month boundaries"
    )

    @validator("default_page_size", "max_page_size", "top_practitioners", "recent_visits")
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @validator("reporting_timezone")
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allowed_methods: List[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allowed_headers: List[str] = Field(default=["*"], description="Allowed HTTP headers")
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator("format")
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Clinic Visits", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings, each read from its own prefix
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    visit: VisitSettings = Field(default_factory=VisitSettings)
    finance: FinanceSettings = Field(default_factory=FinanceSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @validator("app_env")
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @validator("port")
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get the cached application settings instance."""
    return Settings()
