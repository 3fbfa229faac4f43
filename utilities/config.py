"""
Configuration management using environment variables.
Handles database, token, archive storage and logging settings with validation and defaults.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class LibraryConfig(BaseSettings):
    """
    Configuration class for the library service.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="library")

    # Token Configuration
    jwt_signing_key: str = Field(default="change-this-signing-key-in-production-please")
    jwt_algorithm: str = Field(default="HS256")
    jwt_issuer: str = Field(default="library-api")
    jwt_audience: str = Field(default="library-clients")
    jwt_expiration_minutes: int = Field(default=60)

    # Archive Storage Configuration
    archive_root: str = Field(default="wwwroot")
    archive_base_url: str = Field(default="http://localhost:8000/static")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    @field_validator('jwt_expiration_minutes')
    @classmethod
    def validate_expiration(cls, v):
        """Ensure tokens expire within a sensible window."""
        if v < 1 or v > 60 * 24 * 30:
            raise ValueError('jwt_expiration_minutes must be between 1 and 43200')
        return v

    @field_validator('jwt_signing_key')
    @classmethod
    def validate_signing_key(cls, v):
        """HS256 keys shorter than 32 bytes are rejected by most validators."""
        if len(v.encode("utf-8")) < 32:
            raise ValueError('jwt_signing_key must be at least 32 bytes long')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    def get_archive_root_path(self) -> Path:
        """Get the archive storage root as Path object."""
        return Path(self.archive_root)


# Global configuration instance
config = LibraryConfig()
