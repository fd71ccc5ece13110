import logging
from enum import Enum
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)

LOCAL_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class AppMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Settings(BaseSettings):
    # Application mode - defaults to DEV
    APP_MODE: AppMode = AppMode.DEV

    # Debug mode - MUST be False in production
    DEBUG: bool = False

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Google Gemini API
    GOOGLE_API_KEY: str = ""
    ANALYSIS_MODEL: str = "gemini-2.5-flash"
    IMAGE_MODEL: str = "gemini-2.5-flash-image"
    API_TIMEOUT_SECONDS: int = 120

    # When true, a failure of either render variant fails the whole render
    RENDER_JOIN_VARIANTS: bool = True

    # Spreadsheet persistence endpoint (Google Apps Script web app)
    SAVE_ENDPOINT_URL: str = ""
    SAVE_AUTH_TOKEN: str = ""
    SAVE_TIMEOUT_SECONDS: int = 30

    # Comma-separated list of allowed origins
    CORS_ALLOWED_ORIGINS: str = ""

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Configured origins, preceded in DEV by the local Vite/Next dev servers."""
        configured = [
            origin.strip()
            for origin in self.CORS_ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]
        if self.APP_MODE == AppMode.DEV:
            return LOCAL_DEV_ORIGINS + configured
        if not configured:
            logger.warning("CORS_ALLOWED_ORIGINS is empty; browsers on other origins will be refused")
        return configured

    @property
    def save_enabled(self) -> bool:
        return bool(self.SAVE_ENDPOINT_URL)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env variables


def _validate_settings(settings: Settings) -> Settings:
    """
    Validate settings and warn/error on misconfiguration.

    Production refuses to start with DEBUG enabled; a missing API key or
    save endpoint only disables the corresponding feature.
    """
    if settings.APP_MODE == AppMode.PROD and settings.DEBUG:
        error_msg = (
            "DEBUG=True in production! "
            "Debug mode exposes internal details in error responses. "
            "Set DEBUG=False or remove the DEBUG environment variable."
        )
        logger.critical(error_msg)
        raise ValueError(error_msg)

    if not settings.GOOGLE_API_KEY:
        logger.warning(
            "GOOGLE_API_KEY not configured. Analysis and pose rendering are disabled."
        )

    if settings.SAVE_ENDPOINT_URL and not settings.SAVE_AUTH_TOKEN:
        logger.warning(
            "SAVE_ENDPOINT_URL is set without SAVE_AUTH_TOKEN. "
            "The save endpoint will likely reject requests."
        )

    return settings


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached, validated on first access)."""
    settings = Settings()
    return _validate_settings(settings)
