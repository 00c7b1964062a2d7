"""Logging configuration for server events."""
import logging
from logging.handlers import RotatingFileHandler

from .config import get_settings

LOGGER_NAME = "social_chat"


def configure_logging() -> logging.Logger:
    """Configure the application logger once; later calls return it unchanged."""
    settings = get_settings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.LOG_LEVEL.upper())
    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        logger.addHandler(stream)
        if settings.LOG_FILE:
            handler = RotatingFileHandler(settings.LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3)
            handler.setFormatter(formatter)
            logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger of the application logger, e.g. ``social_chat.users``."""
    configure_logging()
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
