from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from callrelay.config import get_settings
from callrelay.core.app_state import AppState, state
from callrelay.db import init_db
from callrelay.infra.logging_config import LoggingConfig, get_logger
from callrelay.routers import automation_router, calls_router

logger = get_logger("main")


def create_app(testing: bool = False, app_state: Optional[AppState] = None) -> FastAPI:
    """Build the API. In testing mode the caller wires app_state and the schema."""
    LoggingConfig()
    settings = get_settings()
    wired = app_state or state

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not testing:
            init_db()
        if not wired.configured:
            wired.configure()
        await wired.runtime.start()
        if not testing:
            logger.info("%s started (%s)", settings.app_name, settings.environment)
        yield
        await wired.runtime.stop()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.callrelay = wired

    app.include_router(automation_router.router)
    app.include_router(calls_router.router)

    @app.get("/health", tags=["system"])
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
