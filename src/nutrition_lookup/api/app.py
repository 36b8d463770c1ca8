"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from nutrition_lookup.app_logging import configure_logging
from nutrition_lookup.containers import AppContainer
from nutrition_lookup.domain.errors import (
    NotFoodError,
    NotFoundError,
    QueryValidationError,
    UpstreamError,
)

NOT_FOOD_MESSAGE = "The search term doesn't appear to be a food item"
NOT_FOUND_MESSAGE = "No food products found"
UPSTREAM_MESSAGE = "Failed to fetch nutrition data"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(QueryValidationError)
    async def validation_error(
        request: Request, exc: QueryValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotFoodError)
    async def not_food_error(request: Request, exc: NotFoodError) -> JSONResponse:
        logger.info("Rejected non-food term: %s", exc.term)
        return JSONResponse(
            status_code=400, content={"error": NOT_FOOD_MESSAGE, "isFood": False}
        )

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info("No products found: %s", exc.term)
        return JSONResponse(
            status_code=404, content={"error": NOT_FOUND_MESSAGE, "notFound": True}
        )

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Upstream failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": UPSTREAM_MESSAGE})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": UPSTREAM_MESSAGE})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/nutrition")
    async def nutrition(
        request: Request, query: str | None = Query(default=None)
    ) -> dict[str, object]:
        """Resolve a free-text food query to nutrition facts."""
        if query is None or not query.strip():
            raise QueryValidationError("Query parameter is required")
        state_container: AppContainer = request.app.state.container
        record = await state_container.nutrition_service.resolve(query)
        return record.to_payload()

    @app.get("/api/products/search")
    async def search_products(
        request: Request,
        query: str | None = Query(default=None),
        limit: int = Query(default=5, ge=1, le=50),
    ) -> dict[str, object]:
        """List catalog products matching a query."""
        if query is None or not query.strip():
            raise QueryValidationError("Query parameter is required")
        state_container: AppContainer = request.app.state.container
        products = await state_container.nutrition_service.search_products(
            query, limit=limit
        )
        return {"products": [product.to_payload() for product in products]}

    @app.get("/api/products/{product_id}")
    async def product_nutrition(product_id: str, request: Request) -> dict[str, object]:
        """Resolve nutrition facts for a catalog product code."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.nutrition_service.resolve_product(product_id)
        return record.to_payload()

    return app
