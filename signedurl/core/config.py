"""Application configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
import logging


class Settings(BaseSettings):
    """Settings loaded from environment variables (or a .env file)"""

    # Signing
    SIGNED_URL_KEY: Optional[str] = None  # Required by the built-in HMAC digest
    SIGNED_URL_TTL: int = 30  # Minutes; 0 disables the default expiry
    SIGNED_URL_HASH: str = "sha256"
    SIGNED_URL_USE_IP_ADDRESS: bool = False  # Pin verification to the caller IP

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # File logging is disabled when unset

    # Demo server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @field_validator('SIGNED_URL_TTL', mode='after')
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        """TTL is a duration and cannot be negative."""
        if v < 0:
            raise ValueError("SIGNED_URL_TTL must be zero or a positive number of minutes")
        return v

    @field_validator('LOG_LEVEL', mode='after')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL is a known logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {v!r}")
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
