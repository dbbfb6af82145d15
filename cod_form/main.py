import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cod_form.core.config import settings
from cod_form.domain.exceptions import StorageError

# 1. Infrastructure & Application Imports
from cod_form.application.intake_validator import IntakeValidator
from cod_form.application.order_service import OrderIntakeService
from cod_form.application.quota_tracker import QuotaTracker
from cod_form.application.sync_orchestrator import SyncOrchestrator
from cod_form.infrastructure.database import SessionLocal, init_db
from cod_form.infrastructure.repositories.order_repository import PostgresOrderRepository
from cod_form.infrastructure.repositories.store_repository import PostgresStoreRepository
from cod_form.infrastructure.settings_cache import SettingsCache
from cod_form.infrastructure.shopify_service import ShopifyAdminClient
from cod_form.interfaces import admin_api, order_api, settings_api
from cod_form.interfaces.cors import CORS_HEADERS
from cod_form.interfaces.IOrderRepository import IOrderRepository
from cod_form.interfaces.IStoreRepository import IStoreRepository
from cod_form.interfaces.IUpstreamPlatform import IUpstreamPlatform

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@dataclass
class Services:
    store_repo: IStoreRepository
    order_repo: IOrderRepository
    quota_tracker: QuotaTracker
    intake_service: OrderIntakeService
    settings_cache: SettingsCache


# ---------------------------------------------------------
# COMPOSITION ROOT
# ---------------------------------------------------------
def build_services(
    store_repo: IStoreRepository,
    order_repo: IOrderRepository,
    upstream: IUpstreamPlatform,
    settings_cache: SettingsCache,
    quota_tracker: QuotaTracker | None = None,
) -> Services:
    quota_tracker = quota_tracker or QuotaTracker(store_repo)
    intake_service = OrderIntakeService(
        store_repo=store_repo,
        order_repo=order_repo,
        quota=quota_tracker,
        validator=IntakeValidator(store_repo, quota_tracker),
        orchestrator=SyncOrchestrator(upstream, order_repo),
    )
    return Services(
        store_repo=store_repo,
        order_repo=order_repo,
        quota_tracker=quota_tracker,
        intake_service=intake_service,
        settings_cache=settings_cache,
    )


def default_services(session_factory=SessionLocal) -> Services:
    return build_services(
        store_repo=PostgresStoreRepository(session_factory),
        order_repo=PostgresOrderRepository(session_factory),
        upstream=ShopifyAdminClient(),
        settings_cache=SettingsCache(redis_url=settings.REDIS_URL),
    )


def _attach(app: FastAPI, services: Services) -> None:
    app.state.services = services
    app.state.store_repo = services.store_repo
    app.state.order_repo = services.order_repo
    app.state.quota_tracker = services.quota_tracker
    app.state.intake_service = services.intake_service
    app.state.settings_cache = services.settings_cache


@asynccontextmanager
async def _lifespan(app: FastAPI):
    if not hasattr(app.state, "services"):
        # The app still starts without a DB so the health check can report it.
        if init_db():
            _attach(app, default_services())
        else:
            logger.error("❌ Starting in degraded mode: no database.")
    yield


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, lifespan=_lifespan)
    if services is not None:
        _attach(app, services)

    # Include Routers
    app.include_router(order_api.router)
    app.include_router(settings_api.router)
    app.include_router(admin_api.router)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"❌ Storage failure on {request.url.path}: {exc.message}")
        return JSONResponse(
            {"success": False, "error": "Internal storage error"},
            status_code=500,
            headers=CORS_HEADERS,
        )

    @app.get("/")
    def health_check():
        # If DB is down, services are never attached
        status = "active" if hasattr(app.state, "services") else "degraded"
        return {"status": status, "system": "COD Order Intake"}

    return app


app = create_app()


def run() -> None:
    uvicorn.run("cod_form.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
