from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leavedesk.api.health import router as health_router
from leavedesk.api.router import api_router
from leavedesk.config import get_settings
from leavedesk.db import dispose_engine, get_session_factory
from leavedesk.exceptions import setup_exception_handlers
from leavedesk.services.balance import run_balance_repair

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from leavedesk.config import Settings

logger = logging.getLogger(__name__)


async def _startup_balance_repair() -> None:
    try:
        await run_balance_repair(get_session_factory())
    except Exception:
        logger.exception("Startup balance repair failed")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup and shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting %s v%s [%s]", settings.app_name, settings.app_version, settings.environment)

    repair_task: asyncio.Task[None] | None = None
    if settings.repair_balances_on_startup:
        repair_task = asyncio.create_task(_startup_balance_repair())

    yield

    if repair_task is not None and not repair_task.done():
        repair_task.cancel()
    await dispose_engine()
    logger.info("Shutting down %s", settings.app_name)


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    setup_middleware(application, settings)
    setup_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_app()
