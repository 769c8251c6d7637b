"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvSettings(BaseSettings):
    """Settings loaded from .env file and process environment."""

    database_path: Optional[str] = Field(
        None, description="Overrides database_path from config.yaml"
    )
    log_level: Optional[str] = Field(None, description="Overrides log_level from config.yaml")

    model_config = SettingsConfigDict(
        env_prefix="FAVSTASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig(BaseModel):
    """Application configuration from config.yaml."""

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # Store
    database_path: str = Field(
        default="favstash.db", description="Path to the SQLite store file"
    )

    # Pagination
    default_per_page: int = Field(default=10, ge=1, le=1000)
    max_per_page: int = Field(
        default=100, ge=1, le=1000, description="Upper bound applied to per_page"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    cors_allowed_origins: List[str] = Field(
        default_factory=list,
        description="Allowed browser origins (e.g., chrome-extension://<id>)",
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "host": "127.0.0.1",
            "port": 8000,
            "database_path": "/home/user/.favstash/favstash.db",
            "default_per_page": 10,
            "max_per_page": 100,
            "log_level": "INFO",
            "cors_allowed_origins": ["chrome-extension://your-extension-id"],
        }
    })
