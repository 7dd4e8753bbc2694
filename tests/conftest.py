"""Shared fixtures for catalog and API tests."""

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from pawscan.catalog.factory import get_product_gateway
from pawscan.catalog.memory import InMemoryProductGateway
from pawscan.catalog.service import CatalogService
from pawscan.main import app

PayloadFactory = Callable[..., dict[str, Any]]


def build_payload(**overrides: Any) -> dict[str, Any]:
    """Create a valid create-product request body."""
    payload: dict[str, Any] = {
        "name": "Premium Dog Food",
        "brand": "PetCo",
        "barcode": "1234567890123",
        "rating": 8.5,
        "ingredients": [
            {
                "name": "Chicken",
                "status": "excellent",
                "description": "High-quality chicken protein",
            },
            {
                "name": "Brown Rice",
                "status": "good",
                "description": "Whole grain energy source",
            },
        ],
        "imageUrl": "https://example.com/images/premium-dog-food.png",
        "description": "Complete nutrition for adult dogs",
    }
    payload.update(overrides)
    return {key: value for key, value in payload.items() if value is not ...}


@pytest.fixture
def make_payload() -> PayloadFactory:
    """Factory for valid create payloads.

    Keyword overrides replace fields; pass ``...`` to leave a field out.
    """
    return build_payload


@pytest.fixture
def gateway() -> InMemoryProductGateway:
    """Create an empty in-memory gateway."""
    return InMemoryProductGateway()


@pytest.fixture
def service(gateway: InMemoryProductGateway) -> CatalogService:
    """Create a catalog service over the in-memory gateway."""
    return CatalogService(gateway)


@pytest.fixture
def client(gateway: InMemoryProductGateway) -> Iterator[TestClient]:
    """Create test client backed by the in-memory gateway."""
    app.dependency_overrides[get_product_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
