"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nutrient_snapshots.api.routes import router
from nutrient_snapshots.app_logging import configure_logging
from nutrient_snapshots.containers import AppContainer
from nutrient_snapshots.services.food_logs import PortionUpdateError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close application resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(router)

    @app.exception_handler(PortionUpdateError)
    async def portion_update_error(
        request: Request, exc: PortionUpdateError
    ) -> JSONResponse:
        logger.warning("Rejected portion update for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
