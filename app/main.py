import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.joyeria.api import api_router
from app.joyeria.core.config import settings
from app.joyeria.core.errors import setup_exception_handlers
from app.joyeria.core.logging import configure_logging, log_json
from app.joyeria.middleware.observability import ObservabilityMiddleware
from app.joyeria.middleware.session import StaffSessionMiddleware
from app.joyeria.middleware.trace import TraceIdMiddleware

logger = logging.getLogger("joyeria")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_json(
        logger,
        {
            "event": "app.startup",
            "app": settings.APP_NAME,
            "store_timezone": settings.STORE_TIMEZONE,
            "metrics_enabled": settings.METRICS_ENABLED,
        },
    )
    yield
    log_json(logger, {"event": "app.shutdown", "app": settings.APP_NAME})


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
    # Outermost last: observability wraps trace, which wraps the staff session.
    app.add_middleware(StaffSessionMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
