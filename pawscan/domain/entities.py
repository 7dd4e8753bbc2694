"""Domain entities for the pet food catalog.

Product is the only aggregate; ingredients are value objects embedded
in it and have no lifecycle of their own.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pawscan.domain.base import Entity, ValueObject


def utc_now() -> datetime:
    """Get the current UTC time."""
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime, now: datetime | None = None) -> datetime:
    """Get a timestamp strictly later than ``previous``.

    Args:
        previous: Last recorded timestamp.
        now: Current time, defaults to the wall clock.

    Returns:
        ``now`` if it is later than ``previous``, otherwise ``previous``
        plus one microsecond.
    """
    now = now or utc_now()
    if now > previous:
        return now
    return previous + timedelta(microseconds=1)


# ============================================================================
# Ingredient
# ============================================================================


class IngredientStatus(str, Enum):
    """Quality assessment of an ingredient."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class Ingredient(ValueObject):
    """An ingredient of a pet food product.

    Attributes:
        name: Ingredient name.
        status: Quality assessment.
        description: Why the ingredient has this status.
        id: Identifier, generated when absent.
    """

    name: str
    status: IngredientStatus
    description: str
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ingredient":
        """Create ingredient from its dictionary representation.

        Args:
            data: Dictionary with name, status, description and optional id.

        Returns:
            Ingredient instance.
        """
        if data.get("id"):
            return cls(
                id=str(data["id"]),
                name=data["name"],
                status=IngredientStatus(data["status"]),
                description=data["description"],
            )
        return cls(
            name=data["name"],
            status=IngredientStatus(data["status"]),
            description=data["description"],
        )


# ============================================================================
# Product Aggregate Root
# ============================================================================


# Fields that may be changed through Product.apply_changes
MUTABLE_FIELDS = frozenset(
    {"name", "brand", "barcode", "rating", "ingredients", "image_url", "description"}
)


@dataclass(kw_only=True, eq=False)
class Product(Entity[str]):
    """Pet food product aggregate root.

    Attributes:
        id: Unique product identifier (UUID string).
        name: Product name.
        brand: Brand name.
        rating: Rating between 0 and 10.
        ingredients: Ordered, non-empty list of ingredients.
        barcode: Optional 8-14 digit barcode.
        image_url: Optional product image URL.
        description: Optional description.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    name: str
    brand: str
    rating: float
    ingredients: list[Ingredient]
    barcode: str | None = None
    image_url: str | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Validate product invariants."""
        if not self.ingredients:
            raise ValueError(f"Product {self.id} must have at least one ingredient")

    @classmethod
    def create(
        cls,
        *,
        name: str,
        brand: str,
        rating: float,
        ingredients: list[Ingredient],
        barcode: str | None = None,
        image_url: str | None = None,
        description: str | None = None,
        product_id: str | None = None,
    ) -> "Product":
        """Create a new product with fresh identity and timestamps.

        Returns:
            New Product instance.
        """
        now = utc_now()
        return cls(
            id=product_id or str(uuid4()),
            name=name,
            brand=brand,
            rating=rating,
            ingredients=list(ingredients),
            barcode=barcode,
            image_url=image_url,
            description=description,
            created_at=now,
            updated_at=now,
        )

    def apply_changes(self, changes: Mapping[str, Any]) -> None:
        """Replace the given fields and bump ``updated_at``.

        Args:
            changes: Mapping of attribute name to new value.

        Raises:
            ValueError: If a field is not mutable or ingredients would be empty.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot change fields: {sorted(unknown)}")
        if "ingredients" in changes and not changes["ingredients"]:
            raise ValueError(f"Product {self.id} must have at least one ingredient")

        for name, value in changes.items():
            if name == "ingredients":
                value = list(value)
            setattr(self, name, value)
        self.updated_at = next_timestamp(self.updated_at)

    def copy(self) -> "Product":
        """Get an independent copy of this product."""
        return replace(self, ingredients=list(self.ingredients))
