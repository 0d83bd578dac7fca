"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, rag_service.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rag_service.api.deps.dependencies import ServiceCache
from rag_service.api.error_handlers import register_error_handlers
from rag_service.configs import get_settings
from rag_service.observability import configure_logging
from rag_service.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    chat_router,
    documents_router,
    health_router,
    knowledge_bases_router,
    search_router,
    sessions_router,
)

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")
    cache: ServiceCache = app.state.service_cache

    # Startup
    logger.info("Preparing database and service cache...")
    await cache.startup()
    logger.info("Service cache ready")

    yield

    # Shutdown
    await cache.shutdown()
    logger.info("Service cache cleared")


def create_app(service_cache: ServiceCache | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        service_cache: Prebuilt container (tests inject one with fake clients)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = service_cache.settings if service_cache else get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="RAG Service API",
        description="Knowledge base ingestion, hybrid search and grounded chat",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service_cache = service_cache or ServiceCache(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    register_error_handlers(app)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(knowledge_bases_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(search_router, prefix="/api/v1")
    app.include_router(chat_router, prefix="/api/v1")
    app.include_router(sessions_router, prefix="/api/v1")

    return app


if __name__ == "__main__":
    uvicorn.run(
        "rag_service.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )
