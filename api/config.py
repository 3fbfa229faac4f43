"""
API configuration settings.
"""

from typing import List

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Library API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Rate Limiting (fixed windows per client address)
    rate_limit_enabled: bool = True
    general_rate_limit: int = 20
    general_rate_window: int = 10  # seconds
    strict_rate_limit: int = 5
    strict_rate_window: int = 5  # seconds

    # Static files (uploaded author photos)
    serve_archive: bool = True

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }


# Global config instance
config = APIConfig()
