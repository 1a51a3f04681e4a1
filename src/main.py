import logging

import uvicorn

from config.config import Config
from exporter import app

logger = logging.getLogger(__name__)


def main():
    logger.info(f"Exporter listening on {Config.METRICS_HOST}:{Config.METRICS_PORT}")
    # uvicorn exits with a non-zero status if the port cannot be bound
    uvicorn.run(
        app,
        host=Config.METRICS_HOST,
        port=Config.METRICS_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
