# core/logging_config.py
import logging

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "futura"

# supabase-py logs every PostgREST/GoTrue round trip at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logger(level: str = settings.LOG_LEVEL) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Reload-safe: uvicorn --reload re-imports this module
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


logger = setup_logger()
