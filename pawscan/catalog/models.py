"""SQLAlchemy models for the product catalog.

A product is stored as one row; its ingredients are embedded as a JSON
document so the stored shape matches the API document.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
    literal_column,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from pawscan.domain.entities import Ingredient, Product
from pawscan.infrastructure.database import Base

NAME_BRAND_CONSTRAINT = "uq_products_name_brand"
BARCODE_INDEX = "uq_products_barcode"
SEARCH_INDEX = "ix_products_search"

TS_CONFIG = literal_column("'english'::regconfig")

# Index expression of the weighted document built by search_vector()
SEARCH_VECTOR_SQL = (
    "setweight(to_tsvector('english'::regconfig, coalesce(name, '')), 'A') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(brand, '')), 'B') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(ingredient_names, '')), 'C') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(description, '')), 'D')"
)


class ProductRecord(Base):
    """Stored product row.

    Attributes:
        id: Unique product identifier (UUID).
        name: Product name, unique together with brand.
        brand: Brand name.
        barcode: Optional barcode, unique when present.
        rating: Rating between 0 and 10.
        ingredients: Embedded ingredient documents.
        ingredient_names: Space-joined ingredient names for text search.
        image_url: Product image URL.
        description: Product description.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    barcode: Mapped[str | None] = mapped_column(String(14), nullable=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    ingredients: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )
    ingredient_names: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("name", "brand", name=NAME_BRAND_CONSTRAINT),
        Index(
            BARCODE_INDEX,
            "barcode",
            unique=True,
            postgresql_where=text("barcode IS NOT NULL"),
        ),
        Index(SEARCH_INDEX, text(f"({SEARCH_VECTOR_SQL})"), postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductRecord(id={self.id}, name={self.name[:30]}, brand={self.brand})>"

    @classmethod
    def from_entity(cls, product: Product) -> "ProductRecord":
        """Build a row from a product entity."""
        record = cls(id=product.id, created_at=product.created_at)
        record.update_from(product)
        return record

    def update_from(self, product: Product) -> None:
        """Copy mutable product fields onto this row."""
        self.name = product.name
        self.brand = product.brand
        self.barcode = product.barcode
        self.rating = product.rating
        self.ingredients = [ingredient.to_dict() for ingredient in product.ingredients]
        self.ingredient_names = " ".join(ingredient.name for ingredient in product.ingredients)
        self.image_url = product.image_url
        self.description = product.description
        self.updated_at = product.updated_at

    def to_entity(self) -> Product:
        """Convert to a detached product entity."""
        return Product(
            id=str(self.id),
            name=self.name,
            brand=self.brand,
            barcode=self.barcode,
            rating=float(self.rating),
            ingredients=[Ingredient.from_dict(item) for item in self.ingredients],
            image_url=self.image_url,
            description=self.description,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def search_vector() -> Any:
    """Weighted full-text document of a product.

    Name weighs most, then brand, ingredient names and description.
    Equivalent to ``SEARCH_VECTOR_SQL`` so searches can use the GIN index.
    """

    def weighted(column: Any, weight: str) -> Any:
        return func.setweight(
            func.to_tsvector(TS_CONFIG, func.coalesce(column, literal_column("''"))),
            literal_column(f"'{weight}'"),
        )

    columns = ProductRecord.__table__.c
    return (
        weighted(columns["name"], "A")
        .op("||")(weighted(columns["brand"], "B"))
        .op("||")(weighted(columns["ingredient_names"], "C"))
        .op("||")(weighted(columns["description"], "D"))
    )
