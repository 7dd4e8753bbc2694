"""Product gateway construction.

One gateway is created per process and injected into request handlers
through FastAPI dependencies.
"""

import structlog

from pawscan.catalog.gateway import ProductGateway
from pawscan.catalog.memory import InMemoryProductGateway
from pawscan.catalog.repository import SqlProductGateway
from pawscan.infrastructure.config import settings
from pawscan.infrastructure.database import async_session_factory

logger = structlog.get_logger()

MEMORY_BACKEND = "memory"
POSTGRES_BACKEND = "postgres"


def create_gateway(backend: str) -> ProductGateway:
    """Create a product gateway for a storage backend.

    Args:
        backend: "postgres" or "memory".

    Returns:
        New gateway instance.

    Raises:
        ValueError: If the backend is unknown.
    """
    if backend == MEMORY_BACKEND:
        return InMemoryProductGateway()
    if backend == POSTGRES_BACKEND:
        return SqlProductGateway(async_session_factory)
    raise ValueError(f"Unknown storage backend: {backend}")


# Global gateway instance
_gateway: ProductGateway | None = None


def get_product_gateway() -> ProductGateway:
    """Get product gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = create_gateway(settings.storage_backend)
        logger.info("Product gateway created", backend=settings.storage_backend)
    return _gateway


def reset_product_gateway() -> None:
    """Reset product gateway (for testing)."""
    global _gateway
    _gateway = None
