"""Uvicorn server runner."""

import copy

import structlog
import uvicorn
from uvicorn.config import LOGGING_CONFIG

from pgregistry.app import App
from pgregistry.config import Config
from pgregistry.web.server import create_fastapi_app

logger = structlog.get_logger(__name__)


def run_server(app: App, config: Config) -> None:
    """Serve the API with uvicorn.

    Request lines are logged by the request middleware, so uvicorn's access log stays off.
    """
    fastapi_app = create_fastapi_app(app, config)

    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"

    logger.info(
        "server_starting",
        host=config.host,
        port=config.port,
        imagekit_configured=config.imagekit_configured,
        cors_origins=config.cors_origins,
    )
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=log_config,
        log_level="debug" if config.debug else "info",
        access_log=False,
    )
