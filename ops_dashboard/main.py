import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ops_dashboard.core.config import settings

from ops_dashboard.application.enrichment import EnrichmentPipeline
from ops_dashboard.application.orchestrator import OrdersBoard
from ops_dashboard.infrastructure.commerce_client import CommerceApiClient
from ops_dashboard.infrastructure.session_store import AdminSessionStore
from ops_dashboard.interfaces import auth_routes, dashboard_routes
from ops_dashboard.interfaces.ICommerceApi import ICommerceApi
from ops_dashboard.interfaces.ISessionStore import ISessionStore

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(api: ICommerceApi | None = None, session_store: ISessionStore | None = None) -> FastAPI:
    # ---------------------------------------------------------
    # COMPOSITION ROOT
    # ---------------------------------------------------------
    api = api or CommerceApiClient()
    session_store = session_store or AdminSessionStore(
        admin_email=settings.ADMIN_EMAIL,
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        redis_url=settings.REDIS_URL,
    )
    pipeline = EnrichmentPipeline(order_feed=api, max_concurrency=settings.ENRICH_MAX_CONCURRENCY)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("✅ %s ready (backend: %s)", settings.PROJECT_NAME, settings.BACKEND_BASE_URL)
        yield
        if isinstance(api, CommerceApiClient):
            await api.aclose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.api = api
    app.state.session_store = session_store
    app.state.board = OrdersBoard(pipeline)

    # Include Routers
    app.include_router(auth_routes.router)
    app.include_router(dashboard_routes.router)

    @app.get("/health")
    def health_check():
        status = "degraded" if app.state.board.error else "active"
        return {"status": status, "system": "Ops Dashboard"}

    return app


app = create_app()
