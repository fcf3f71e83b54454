import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import Store, create_store
from routes import health_router, products_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a store handed to create_app() belongs to the caller
    owned = None
    if getattr(app.state, "store", None) is None:
        owned = create_store()
        app.state.store = owned
    yield
    if owned is not None:
        owned.dispose()
        app.state.store = None


async def http_error_handler(request, exc: StarletteHTTPException):
    """
    Renders every HTTP error as {"error": <message>}.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(store: Store = None) -> FastAPI:
    """
    Builds the catalog API.

    Args:
        store (Store, optional): The store the handlers query. When omitted,
            one is created from the environment on startup.

    Returns:
        FastAPI: The configured application.
    """
    config.setup_logging()

    app = FastAPI(
        title="Catalog API",
        description="Product catalog backed by a relational store",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(health_router)
    app.include_router(products_router)
    return app


app = create_app()
