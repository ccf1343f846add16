"""
Client configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Campus Events"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Backend API
    API_BASE_URL: str = "http://localhost:5000/api"
    ASSET_BASE_URL: str = "http://localhost:5000"
    HTTP_TIMEOUT: Optional[float] = None  # None = wait for the server indefinitely

    # Views
    EVENTS_PAGE_SIZE: int = 12

    # Session persistence (token + serialized user profile)
    SESSION_FILE: str = os.path.join(os.path.expanduser("~"), ".campus_events", "session.json")

    # Shared registration store
    REGISTRATION_RESYNC_SECONDS: float = 60.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
