import logging

from config.logging_config import setup_logging

# Set up logging at the start of the module
setup_logging()
logger = logging.getLogger(__name__)
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST

from config.config import Config
from core.metrics_manager import MetricsManager
from core.scheduler import Scheduler
from core.scrape_cycle import ScrapeCycle

probe_config = Config.probe_config()

metrics_manager = MetricsManager()

scheduler = Scheduler(
    cycle=ScrapeCycle.from_config(probe_config, metrics_manager),
    metrics=metrics_manager,
    interval=Config.SCRAPE_INTERVAL,
)


@asynccontextmanager
async def lifespan(app):
    await scheduler.start()
    yield
    await scheduler.stop()


app = FastAPI(lifespan=lifespan)


def metrics():
    return Response(metrics_manager.render(), media_type=CONTENT_TYPE_LATEST)


app.add_api_route(Config.METRICS_PATH, metrics, methods=["GET"])

logger.info(
    f"Exporter configured: backend={probe_config.backend_base_url}, "
    f"ws={probe_config.websocket_url}, interval={Config.SCRAPE_INTERVAL}s"
)
