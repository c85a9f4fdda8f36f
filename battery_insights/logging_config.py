"""Logging setup for the Battery Insights service."""
import logging
import logging.config

LOGGER_NAME = "battery_insights"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure console logging for the package logger.

    Uvicorn's own loggers are left alone so its access log keeps working.

    Args:
        level: Level name for the package logger (e.g. "DEBUG", "INFO")

    Returns:
        The configured package logger
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "{asctime} {levelname:<7} {name} - {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "level": level.upper(),
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("Logging initialised at level %s", level.upper())
    return logger
