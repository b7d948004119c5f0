"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEV_CLIENT_ORIGIN = "http://localhost:3000"


class Settings(BaseSettings):
    # MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "jobtracker"
    mongo_connect_timeout_ms: int = Field(default=5000, ge=1)

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=4000, ge=1, le=65535)
    environment: Literal["development", "production"] = "development"

    # Allowed origin for the front end when running in production
    cors_origin: str = DEV_CLIENT_ORIGIN

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_lifetime_minutes: int = Field(default=1440, ge=1)

    # bcrypt cost factor (4 is the minimum bcrypt accepts)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Compiled React bundle, served in production
    client_build_dir: str = os.path.join(PROJECT_ROOT, "client", "build")

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Origins the CORS stage accepts. Development always talks to the CRA dev server."""
        if self.is_production:
            return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]
        return [DEV_CLIENT_ORIGIN]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
