"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI

from salon_api.core.cors import configure_cors
from salon_api.core.lifespan import lifespan
from salon_api.core.middlewares import register_middlewares
from salon_api.routers.approvals import router as approvals_router
from salon_api.routers.catalog import router as catalog_router
from salon_api.routers.loyalty import router as loyalty_router
from salon_api.routers.orders import router as orders_router
from salon_api.routers.public import health_router
from salon_api.routers.reports import router as reports_router
from salon_api.routers.tables import router as tables_router
from shared.config.settings import settings


def create_app() -> FastAPI:
    app = FastAPI(
        title="Salon Tabs API",
        description="Order consolidation and split-billing for the salon floor",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_middlewares(app)
    configure_cors(app)

    app.include_router(health_router)
    app.include_router(tables_router)
    app.include_router(catalog_router)
    app.include_router(orders_router)
    app.include_router(approvals_router)
    app.include_router(loyalty_router)
    app.include_router(reports_router)
    return app


app = create_app()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "salon_api.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=settings.debug,
    )
