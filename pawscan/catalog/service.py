"""Catalog application service.

Validates raw request input and delegates to the product gateway.
Validation always happens before any storage call; an invalid request
never reaches the gateway.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

import structlog

from pawscan.catalog.filters import (
    DEFAULT_LIMIT,
    build_pagination,
    build_product_query,
    build_search_query,
)
from pawscan.catalog.gateway import PaginatedResult, ProductGateway
from pawscan.catalog.generator import GeneratorConfig, ProductGenerator
from pawscan.catalog.validation import (
    Invalid,
    Valid,
    ValidationMode,
    validate_barcode,
    validate_product,
    validate_product_id,
)
from pawscan.domain.entities import Product
from pawscan.domain.exceptions import FieldError, ProductConflictError, ValidationFailedError

T = TypeVar("T")

logger = structlog.get_logger()

QueryParams = Mapping[str, str | None]


def unwrap(result: Valid[T] | Invalid) -> T:
    """Get the value of a validation result.

    Raises:
        ValidationFailedError: If the result is invalid.
    """
    if isinstance(result, Invalid):
        raise ValidationFailedError(result.errors)
    return result.value


class CatalogService:
    """Product catalog operations on raw request input.

    Example usage:
        service = CatalogService(InMemoryProductGateway())
        product = await service.create_product(payload)
        page = await service.list_products({"brand": "PetCo", "limit": "5"})
    """

    def __init__(
        self,
        gateway: ProductGateway,
        search_default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        """Initialize catalog service.

        Args:
            gateway: Product gateway to read from and write to.
            search_default_limit: Result limit of a text search without ``limit``.
        """
        self.gateway = gateway
        self.search_default_limit = search_default_limit

    async def list_products(self, params: QueryParams) -> PaginatedResult[Product]:
        """List products from raw listing parameters.

        Raises:
            ValidationFailedError: If any parameter is malformed or out of range.
        """
        query = unwrap(build_product_query(params))
        return await self.gateway.list_products(query)

    async def search_products(self, params: QueryParams) -> list[Product]:
        """Relevance-ranked text search from ``q`` and ``limit`` parameters."""
        query = unwrap(build_search_query(params, default_limit=self.search_default_limit))
        return await self.gateway.search_by_text(query.term, query.limit)

    async def list_brands(self) -> list[str]:
        """Get all brands in ascending order."""
        return await self.gateway.list_brands()

    async def list_products_by_brand(
        self, brand: str, params: QueryParams
    ) -> PaginatedResult[Product]:
        """List products of one brand.

        Raises:
            ValidationFailedError: If the brand is blank or pagination is invalid.
        """
        errors: list[FieldError] = []
        brand = brand.strip()
        if not brand:
            errors.append(FieldError("brand", "Brand cannot be empty"))

        pagination = build_pagination(params)
        if isinstance(pagination, Invalid):
            errors.extend(pagination.errors)

        if errors:
            raise ValidationFailedError(errors)
        return await self.gateway.list_by_brand(brand, pagination.value)

    async def get_product(self, product_id: str) -> Product:
        """Get product by ID.

        Raises:
            ValidationFailedError: If the id is not a UUID.
            ProductNotFoundError: If no product has this id.
        """
        return await self.gateway.find_by_id(unwrap(validate_product_id(product_id)))

    async def get_product_by_barcode(self, barcode: str) -> Product:
        """Get product by barcode.

        Raises:
            ValidationFailedError: If the barcode is not 8-14 digits.
            ProductNotFoundError: If no product has this barcode.
        """
        return await self.gateway.find_by_barcode(unwrap(validate_barcode(barcode)))

    async def create_product(self, payload: Any) -> Product:
        """Create a product from a raw request body.

        Raises:
            ValidationFailedError: If the body is invalid.
            ProductConflictError: If name+brand or barcode is taken.
        """
        data = unwrap(validate_product(payload, ValidationMode.CREATE))
        return await self.gateway.create(data)

    async def update_product(self, product_id: str, payload: Any) -> Product:
        """Partially update a product from a raw request body.

        Errors in the id and in the body are reported together.

        Raises:
            ValidationFailedError: If the id or body is invalid.
            ProductNotFoundError: If no product has this id.
            ProductConflictError: If the new name+brand or barcode is taken.
        """
        id_result = validate_product_id(product_id)
        body_result = validate_product(payload, ValidationMode.UPDATE)

        errors: list[FieldError] = []
        for result in (id_result, body_result):
            if isinstance(result, Invalid):
                errors.extend(result.errors)
        if errors:
            raise ValidationFailedError(errors)

        return await self.gateway.update(id_result.value, body_result.value)

    async def delete_product(self, product_id: str) -> None:
        """Delete a product.

        Raises:
            ValidationFailedError: If the id is not a UUID.
            ProductNotFoundError: If no product has this id.
        """
        await self.gateway.delete(unwrap(validate_product_id(product_id)))

    async def seed_catalog(
        self,
        config: GeneratorConfig,
        clear_existing: bool = False,
    ) -> dict[str, Any]:
        """Seed the catalog with generated products.

        Generated payloads go through regular validation. Products that
        collide with existing ones are skipped.

        Args:
            config: Generator configuration.
            clear_existing: Whether to delete existing products first.

        Returns:
            Seeding result with counts.
        """
        deleted = 0
        if clear_existing:
            deleted = await self.gateway.clear()

        created: list[Product] = []
        skipped = 0
        for payload in ProductGenerator(config).generate():
            try:
                created.append(await self.create_product(payload))
            except ProductConflictError as e:
                logger.info("Skipping seeded product", name=payload["name"], reason=e.message)
                skipped += 1

        return {
            "seed": config.seed,
            "deleted": deleted,
            "products_created": len(created),
            "products_skipped": skipped,
            "brands_used": len({product.brand for product in created}),
        }
