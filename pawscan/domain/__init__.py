"""Domain layer - Entities, value objects and the catalog error taxonomy.

Example usage:
    from pawscan.domain import Ingredient, IngredientStatus, Product

    product = Product.create(
        name="Premium Dog Food",
        brand="PetCo",
        rating=8.5,
        ingredients=[
            Ingredient(
                name="Chicken",
                status=IngredientStatus.EXCELLENT,
                description="High-quality chicken protein",
            )
        ],
    )
"""

from pawscan.domain.base import Entity, ValueObject
from pawscan.domain.entities import (
    Ingredient,
    IngredientStatus,
    Product,
    next_timestamp,
    utc_now,
)
from pawscan.domain.exceptions import (
    CatalogError,
    ErrorKind,
    FieldError,
    ProductConflictError,
    ProductNotFoundError,
    StorageError,
    ValidationFailedError,
)

__all__ = [
    # Base classes
    "Entity",
    "ValueObject",
    # Entities
    "Ingredient",
    "IngredientStatus",
    "Product",
    "next_timestamp",
    "utc_now",
    # Errors
    "CatalogError",
    "ErrorKind",
    "FieldError",
    "ProductConflictError",
    "ProductNotFoundError",
    "StorageError",
    "ValidationFailedError",
]
