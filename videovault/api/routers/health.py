"""
Health check router for observability.
"""
from fastapi import APIRouter, Depends

from videovault.api.dependencies import get_entity_store, get_storage_circuit_breaker
from videovault.config import get_settings
from videovault.core.circuit_breaker import CircuitBreaker
from videovault.models.interfaces import EntityStore

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check(
    store: EntityStore = Depends(get_entity_store),
    circuit_breaker: CircuitBreaker = Depends(get_storage_circuit_breaker),
) -> dict:
    """
    Readiness check for Kubernetes.
    Returns status of the storage circuit breaker and the entity store.
    """
    settings = get_settings()

    return {
        "status": "ready",
        "version": settings.APP_VERSION,
        "circuit_breaker": circuit_breaker.snapshot(),
        "entity_store": {
            "collections": store.sizes(),
        },
    }
