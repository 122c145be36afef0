from fastapi import FastAPI

from auto_catalog.entrypoints.http.exception_handlers import register_exception_handlers
from auto_catalog.entrypoints.http.routes.health import router as health_router
from auto_catalog.entrypoints.http.routes.listings import router as listings_router
from auto_catalog.entrypoints.http.routes.sync import router as sync_router


def build_app() -> FastAPI:
    app = FastAPI(
        title="Auto Catalog API",
        description="""
        Used-car catalog mirrored from the auctions API.

        ## Features
        - Search the catalog with filters, a global sort order and pages
        - Get listing details
        - Start, resume, stop and monitor ingestion

        ## Authentication
        Currently no authentication required (internal operator surface).

        ## Error Handling
        All errors return structured JSON responses with error codes.
        See the error response schemas in the API documentation.
        """,
        version="0.1.0",
        docs_url="/docs",  # Swagger UI
        redoc_url="/redoc",  # ReDoc alternative
        openapi_url="/openapi.json",  # OpenAPI schema
        license_info={
            "name": "Proprietary",
        },
    )

    # Register global exception handlers
    register_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(listings_router, prefix="/v1")
    app.include_router(sync_router, prefix="/v1")

    return app


app = build_app()
