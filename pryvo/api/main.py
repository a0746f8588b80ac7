from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from pryvo import __version__
from pryvo.api.realtime import router as realtime_router
from pryvo.api.routes import router
from pryvo.application import PryvoApplication
from pryvo.config import settings
from pryvo.utils.errors import PryvoError
from pryvo.utils.logging import configure_logging, get_logger, log_error

configure_logging()
logger = get_logger(__name__)

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    logger.info("Initializing Sentry...")
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
            profiles_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
            integrations=[
                FastApiIntegration(transaction_style="url"),
                SqlalchemyIntegration(),
                RedisIntegration(),
                AsyncioIntegration(),
            ],
        )
        logger.info("Sentry initialized")
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))


def create_app(pryvo_app: Optional[PryvoApplication] = None, manage_lifecycle: bool = True) -> FastAPI:
    """
    Build the HTTP/WebSocket app around a `PryvoApplication`.

    With `manage_lifecycle` off the caller starts and stops `pryvo_app`
    itself, which is what the tests do.
    """
    core = pryvo_app or PryvoApplication()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if not manage_lifecycle:
            yield
            return

        logger.info("Starting Pryvo API...")
        try:
            await core.start(create_tables=settings.ENVIRONMENT == "development")
        except Exception as e:
            logger.error("Failed to start application", error=str(e), details=getattr(e, "details", {}))
            raise

        yield

        logger.info("Shutting down Pryvo API...")
        await core.stop()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Pryvo matching, discovery and chat API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.pryvo = core

    @app.exception_handler(PryvoError)
    async def pryvo_error_handler(request: Request, exc: PryvoError) -> JSONResponse:
        if exc.status_code >= 500:
            log_error(logger, exc, "Request failed", {"path": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.kind.value, "message": exc.message},
        )

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        is_running = core.is_running or not manage_lifecycle
        return JSONResponse(
            status_code=200 if is_running else 503,
            content={
                "status": "ok" if is_running else "error",
                "app": settings.APP_NAME,
                "environment": settings.ENVIRONMENT,
                "online_users": len(core.presence.online_user_ids()),
            },
        )

    app.include_router(router)
    app.include_router(realtime_router)
    return app


app = create_app()
