"""
Application configuration from environment variables
"""

import os
import logging
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings"""

    # Remote store (empty = offline mode, every identity persists locally)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.getenv("DB_POOL_MIN_SIZE", "1"))
    DB_POOL_MAX_SIZE: int = int(os.getenv("DB_POOL_MAX_SIZE", "5"))

    # Local store
    LOCAL_STORAGE_DIR: str = os.getenv("LOCAL_STORAGE_DIR", "/tmp/securitycash")
    STORAGE_NAMESPACE: str = os.getenv("STORAGE_NAMESPACE", "securitycash_data")
    ANONYMOUS_STORAGE_KEY: str = os.getenv("ANONYMOUS_STORAGE_KEY", "securitycash_data_v2")

    # Migration: mark the user migrated only after every import succeeded
    MIGRATION_STRICT: bool = os.getenv("MIGRATION_STRICT", "False").lower() == "true"

    # Application
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    # Web server
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "8080"))

    # Timeouts
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))

    @property
    def remote_enabled(self) -> bool:
        """Whether a remote collection store is configured"""
        return bool(self.DATABASE_URL)

    def validate(self) -> bool:
        """
        Validate settings

        Returns:
            True if the settings are usable
        """
        problems = []

        if not 0 < self.API_PORT < 65536:
            problems.append(f"API_PORT out of range: {self.API_PORT}")

        if self.DB_POOL_MIN_SIZE < 1 or self.DB_POOL_MAX_SIZE < self.DB_POOL_MIN_SIZE:
            problems.append(
                f"Invalid pool bounds: min={self.DB_POOL_MIN_SIZE}, max={self.DB_POOL_MAX_SIZE}"
            )

        if not self.STORAGE_NAMESPACE or not self.ANONYMOUS_STORAGE_KEY:
            problems.append("Storage keys must not be empty")

        if problems:
            logger.error(f"Invalid configuration: {'; '.join(problems)}")
            return False

        if not self.remote_enabled:
            logger.warning("DATABASE_URL is not set, running in offline mode")

        return True

    def __post_init__(self):
        """Create local storage directory if it doesn't exist"""
        os.makedirs(self.LOCAL_STORAGE_DIR, exist_ok=True)


# Global settings instance
settings = Settings()


def validate_config() -> None:
    """
    Validate configuration and raise error if invalid
    """
    if not settings.validate():
        raise ValueError("Invalid configuration. Check environment variables.")
