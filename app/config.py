from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    A `.env` file in the working directory is read as well, which is
    convenient for local development.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./products.db"

    # Redis cache for comment summaries (disabled when unset)
    REDIS_URL: Optional[str] = None
    CACHE_TTL: int = 60

    # Upload link construction
    BASE_URL: Optional[str] = None
    TRUST_PROXY: bool = True

    # Image uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    COMMENT_PREVIEW_LIMIT: int = 3

    # Bearer token verification
    AUTH_SECRET_KEY: Optional[str] = None
    AUTH_ALGORITHMS: List[str] = ["HS256"]
    AUTH_ISSUER: Optional[str] = None

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
