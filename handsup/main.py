# Application wiring: builds each service once and shares it through app.state

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import uuid

import structlog

from handsup.core.config import settings
from handsup.logging import configure_logging
from handsup.api.routes import router as api_router
from handsup.middleware.logging import RequestLoggingMiddleware
from handsup.services.campsite_store import CampsiteStore
from handsup.services.contact_list import EmergencyContactList
from handsup.services.kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from handsup.services.regions import resolve_state
from handsup.services.warning_aggregator import WarningAggregator
from handsup.services.warning_feeds import BureauWarningFeed, StateFireFeed

logger = structlog.get_logger(__name__)


def build_kv_store() -> KeyValueStore:
    if settings.ENABLE_REDIS and settings.REDIS_URL:
        logger.info("kv_store_selected", backend="redis")
        return RedisKeyValueStore(settings.REDIS_URL)
    logger.info("kv_store_selected", backend="memory")
    return InMemoryKeyValueStore()


def build_warning_aggregator() -> WarningAggregator:
    state = resolve_state(settings.SELECTED_STATE)
    feeds = [
        BureauWarningFeed(state, settings.BOM_FEED_URL_TEMPLATE),
        StateFireFeed(state),
    ]
    return WarningAggregator(
        feeds,
        refresh_interval=settings.WARNING_REFRESH_SECONDS,
        fetch_timeout=settings.WARNING_FETCH_TIMEOUT,
        user_agent=settings.HTTP_USER_AGENT,
    )


def create_app(
    kv_store: Optional[KeyValueStore] = None,
    warning_aggregator: Optional[WarningAggregator] = None,
    start_warning_refresh: bool = True,
) -> FastAPI:
    """Build the application. Tests pass their own store and aggregator."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("application_startup", version=settings.VERSION, env=settings.ENV)

        kv = kv_store or build_kv_store()
        app.state.kv_store = kv

        app.state.campsite_store = CampsiteStore(kv, key=settings.CAMPSITES_KEY)
        await app.state.campsite_store.load()

        app.state.contact_list = EmergencyContactList(kv, key=settings.CONTACTS_KEY)
        await app.state.contact_list.load()

        aggregator = warning_aggregator or build_warning_aggregator()
        app.state.warning_aggregator = aggregator
        if start_warning_refresh:
            aggregator.start(refresh_first=settings.WARNING_REFRESH_ON_START)

        yield

        logger.info("application_shutdown")
        await aggregator.stop()
        if kv_store is None:
            await kv.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.BRIEF_DESCRIPTION,
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health_check(request: Request):
        aggregator: WarningAggregator = request.app.state.warning_aggregator
        return {
            "status": "ok",
            "campsites": len(request.app.state.campsite_store),
            "warnings": len(aggregator.active_warnings),
            "warnings_last_updated": aggregator.last_updated,
            "warnings_error": aggregator.error_message,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logger.error("unhandled_exception", error_id=error_id, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "error": "INTERNAL_SERVER_ERROR",
                    "detail": "An unexpected error occurred. Please report this error ID.",
                    "error_id": error_id
                }
            }
        )

    return app


configure_logging()
app = create_app()
