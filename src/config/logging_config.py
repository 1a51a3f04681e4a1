import logging
import logging.config
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE = os.getenv("LOG_FILE")

# Client libraries log every request/frame at INFO/DEBUG; one probe cycle
# runs every few seconds
QUIET_LOGGERS = ("httpx", "httpcore", "websockets")

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": LOG_FORMAT,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": LOG_LEVEL,
        },
    },
    "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}

if LOG_FILE:
    LOGGING_CONFIG["handlers"]["file"] = {
        "class": "logging.FileHandler",
        "filename": LOG_FILE,
        "formatter": "default",
        "level": LOG_LEVEL,
    }
    LOGGING_CONFIG["root"]["handlers"].append("file")


def setup_logging():
    logging.config.dictConfig(LOGGING_CONFIG)
