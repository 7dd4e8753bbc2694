"""API schemas for Paw Scan API.

Pydantic models for response serialization and OpenAPI docs. Every
response is wrapped in the ``ApiResponse`` envelope; JSON keys are
camelCase and unset fields are left out.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pawscan.catalog.gateway import PaginatedResult
from pawscan.domain.entities import Ingredient, IngredientStatus, Product
from pawscan.domain.exceptions import FieldError

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class FieldErrorSchema(CamelModel):
    """A single field-level validation failure."""

    field: str = Field(..., description="Offending field or parameter")
    message: str = Field(..., description="What is wrong with it")

    @classmethod
    def from_error(cls, error: FieldError) -> "FieldErrorSchema":
        return cls(field=error.field, message=error.message)


class PaginationSchema(CamelModel):
    """Pagination block of a list response."""

    page: int = Field(..., description="Current page number (1-based)")
    limit: int = Field(..., description="Items per page")
    total: int = Field(..., description="Items matching the filter across all pages")
    total_pages: int = Field(..., description="ceil(total / limit)")

    @classmethod
    def from_result(cls, result: PaginatedResult) -> "PaginationSchema":
        return cls(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        )


class ApiResponse(CamelModel, Generic[T]):
    """Uniform response envelope."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    data: T | None = Field(default=None, description="Response payload")
    message: str | None = Field(default=None, description="Human-readable outcome")
    error: str | None = Field(default=None, description="Error message")
    validation_errors: list[FieldErrorSchema] | None = Field(
        default=None, description="Every field-level validation failure"
    )
    pagination: PaginationSchema | None = Field(
        default=None, description="Pagination of list responses"
    )


# ============================================================================
# Product Schemas
# ============================================================================


class IngredientSchema(CamelModel):
    """Ingredient representation."""

    id: str = Field(..., description="Ingredient identifier")
    name: str = Field(..., description="Ingredient name")
    status: IngredientStatus = Field(..., description="Quality assessment")
    description: str = Field(..., description="Why the ingredient has this status")

    @classmethod
    def from_entity(cls, ingredient: Ingredient) -> "IngredientSchema":
        return cls(
            id=ingredient.id,
            name=ingredient.name,
            status=ingredient.status,
            description=ingredient.description,
        )


class ProductSchema(CamelModel):
    """Product representation."""

    id: str = Field(..., description="Unique product identifier (UUID)")
    name: str = Field(..., description="Product name")
    brand: str = Field(..., description="Brand name")
    barcode: str | None = Field(default=None, description="8-14 digit barcode")
    rating: float = Field(..., description="Rating between 0 and 10")
    ingredients: list[IngredientSchema] = Field(..., description="Ordered ingredients")
    image_url: str | None = Field(default=None, description="Product image URL")
    description: str | None = Field(default=None, description="Product description")
    created_at: datetime = Field(..., description="When the product was created")
    updated_at: datetime = Field(..., description="When the product was last updated")

    @classmethod
    def from_entity(cls, product: Product) -> "ProductSchema":
        """Create schema from product entity."""
        return cls(
            id=product.id,
            name=product.name,
            brand=product.brand,
            barcode=product.barcode,
            rating=product.rating,
            ingredients=[IngredientSchema.from_entity(item) for item in product.ingredients],
            image_url=product.image_url,
            description=product.description,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductPageSchema(CamelModel):
    """One page of products."""

    data: list[ProductSchema] = Field(..., description="Products on this page")
    pagination: PaginationSchema = Field(..., description="Pagination details")

    @classmethod
    def from_result(cls, result: PaginatedResult[Product]) -> "ProductPageSchema":
        return cls(
            data=[ProductSchema.from_entity(item) for item in result.items],
            pagination=PaginationSchema.from_result(result),
        )
