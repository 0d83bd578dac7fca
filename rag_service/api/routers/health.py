"""
Health check API endpoints.

Routes: GET /health, GET /health/vector-store, GET /health/cache

Dependencies: rag_service.api.deps
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rag_service.api.deps import ServiceCache, get_service_cache


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


def _health_response(healthy: bool, component: str) -> JSONResponse:
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        message=f"{component} reachable" if healthy else f"{component} unreachable",
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/vector-store", response_model=HealthResponse)
async def health_check_vector_store(cache: ServiceCache = Depends(get_service_cache)) -> JSONResponse:
    """Vector store health check."""
    return _health_response(await cache.vector_index.health(), "Vector store")


@router.get("/cache", response_model=HealthResponse)
async def health_check_cache(cache: ServiceCache = Depends(get_service_cache)) -> JSONResponse:
    """Cache health check."""
    return _health_response(await cache.result_cache.ping(), "Cache")
