"""Stub payment API application - local backend for fake-products development."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from iap_client.logging_config import configure_logging, get_logger
from iap_client.stub_api.catalog import StubCatalog
from iap_client.stub_api.middleware import ContextMiddleware, RequestLoggingMiddleware
from iap_client.stub_api.transaction_store import StubTransactionStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    logger.info(
        "stub_api_started",
        products=len(app.state.catalog.get_all()),
        app_origin=app.state.catalog.app_origin,
    )
    yield
    logger.info("stub_api_stopped", transactions=app.state.transactions.count())


def create_app(catalog_path: Optional[str] = None) -> FastAPI:
    """Create and configure the stub payment API.

    Args:
        catalog_path: Path to stub_products.yaml (see StubCatalog)

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    catalog = StubCatalog(catalog_path)

    app = FastAPI(
        title="Stub Payment API",
        description="Local stand-in for the in-app payment API, for fake-products development",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.catalog = catalog
    app.state.transactions = StubTransactionStore(catalog.config.initial_statuses)

    include_request_details = os.getenv("LOG_REQUEST_DETAILS", "true").lower() == "true"
    app.add_middleware(RequestLoggingMiddleware, include_request_details=include_request_details)
    app.add_middleware(ContextMiddleware)

    from iap_client.stub_api.routes import control_router, payment_router

    app.include_router(payment_router, prefix=catalog.config.api_version_prefix)
    app.include_router(control_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "catalog": f"loaded ({len(catalog.get_all())} products)",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    logger.info("app_created", endpoints=len(app.routes))
    return app
