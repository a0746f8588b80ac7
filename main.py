#!/usr/bin/env python3
"""Main entry point for the Pryvo backend.

Runs the FastAPI application with Uvicorn. The application lifespan starts the
core services and the boost sweep.

Environment Variables:
    API_HOST (str): The host to bind the server to.
    API_PORT (int): The port to bind the server to.
    LOG_LEVEL (str): The logging level (e.g., 'INFO', 'DEBUG').
    DEBUG (bool): Whether to enable auto-reload for development.
"""

import uvicorn

from pryvo.config import settings
from pryvo.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info("Starting Pryvo API", host=settings.API_HOST, port=settings.API_PORT)

    uvicorn.run(
        "pryvo.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )
