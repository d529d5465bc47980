from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from memograph.errors import (
    ConflictError,
    ExternalCapabilityError,
    InvalidTransitionError,
    MemographError,
    NotFoundError,
    ValidationError,
)

from backend.app.config import AppConfig
from backend.app.api.routes_nodes import router as nodes_router
from backend.app.api.routes_edges import router as edges_router
from backend.app.api.routes_search import router as search_router
from backend.app.api.routes_ai import router as ai_router
from backend.app.api.routes_provenance import router as provenance_router
from backend.app.dependencies import get_knowledge_service


STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    ConflictError: 409,
    InvalidTransitionError: 409,
    ExternalCapabilityError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle hooks.

    Loads the capabilities and seed data once at startup.
    """
    get_knowledge_service()

    yield


async def memograph_error_handler(request: Request, exc: MemographError) -> JSONResponse:
    status = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
    )

    app.add_exception_handler(MemographError, memograph_error_handler)

    app.include_router(
        nodes_router,
        prefix=f"{config.api_prefix}/nodes",
        tags=["nodes"],
    )

    app.include_router(
        edges_router,
        prefix=f"{config.api_prefix}/edges",
        tags=["edges"],
    )

    app.include_router(
        search_router,
        prefix=f"{config.api_prefix}/search",
        tags=["search"],
    )

    app.include_router(
        ai_router,
        prefix=f"{config.api_prefix}/ai",
        tags=["ai"],
    )

    app.include_router(
        provenance_router,
        prefix=f"{config.api_prefix}/provenance",
        tags=["provenance"],
    )

    return app


config = AppConfig()
app = create_app(config)
