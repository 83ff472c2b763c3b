import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # Dot directory holding the persisted configuration, relative to $HOME
    DOT_DIR: str = ".config/git-auto-pilot"
    CONFIG_FILE_NAME: str = "config.json"

    # Event queue between the watchers and the router
    QUEUE_MAXSIZE: int = 1000
    QUEUE_PUT_TIMEOUT: float = 5.0

    # Remote operations
    REMOTE_NAME: str = "origin"
    PUSH_TIMEOUT: Optional[float] = 60.0

    # Overrides the -v based log level when set (DEBUG, INFO, ...)
    LOG_LEVEL: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="AUTOPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

@lru_cache
def get_settings() -> Settings:
    return Settings()

def print_config_summary(settings: Settings, config) -> None:
    """
    Log the effective configuration (without sensitive data)
    """
    logger.info("Current Configuration:")
    logger.info(f"  Dot directory: ~/{settings.DOT_DIR}")
    logger.info(f"  Repositories: {len(config.repos)}")
    for repo in config.repos:
        logger.info(f"    - {repo}")
    logger.info(f"  Ignored directories: {', '.join(config.ignored_dirs)}")
    logger.info(f"  Remote: {settings.REMOTE_NAME} ({config.remote_host})")
    logger.info(f"  Queue size: {settings.QUEUE_MAXSIZE}")
    logger.info(f"  Push timeout: {settings.PUSH_TIMEOUT}")
