"""Application logging: console output plus an optional rotating log file."""
import logging
from logging.handlers import RotatingFileHandler

from config import LOG_FILE, LOG_LEVEL

APP_LOGGER_NAME = "blog_api"

formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")


def setup_logging(level: str = LOG_LEVEL, log_file: str = LOG_FILE) -> logging.Logger:
    """Attach handlers to the application logger once and return it"""
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=2000000, backupCount=3, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger, e.g. ``blog_api.posts``"""
    setup_logging()
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
