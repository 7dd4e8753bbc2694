"""Persistence gateway contract for products.

The gateway is the only component that talks to storage. It owns the
not-found and uniqueness-conflict semantics of the catalog:

- ``create`` and ``update`` first look for an existing product with the
  same (name, brand) pair, then for the same barcode, and raise a
  descriptive ``ProductConflictError`` before writing.
- These checks are not atomic with the write. Every backend must also
  enforce both constraints natively and turn a violation into the same
  ``ProductConflictError``, so a concurrent duplicate never gets stored.

Backends implement the underscore-prefixed storage primitives; the
public operations are shared.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from pawscan.catalog.filters import Pagination, ProductFilter, ProductQuery
from pawscan.catalog.validation import ProductInput
from pawscan.domain.entities import Product
from pawscan.domain.exceptions import ProductConflictError, ProductNotFoundError

T = TypeVar("T")

logger = structlog.get_logger()


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: Items on the current page.
        total: Number of items matching the filter, across all pages.
        page: Current page.
        limit: Items per page.
    """

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.limit - 1) // self.limit


class ProductGateway(ABC):
    """Storage-facing product operations.

    Products returned by a gateway are independent copies; mutating them
    never changes stored state.
    """

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_by_id(self, product_id: str) -> Product:
        """Get product by ID.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        product = await self._get(product_id)
        if product is None:
            raise ProductNotFoundError("id", product_id)
        return product

    async def find_by_barcode(self, barcode: str) -> Product:
        """Get product by barcode.

        Raises:
            ProductNotFoundError: If no product has this barcode.
        """
        product = await self._get_by_barcode(barcode)
        if product is None:
            raise ProductNotFoundError("barcode", barcode)
        return product

    async def list_products(self, query: ProductQuery) -> PaginatedResult[Product]:
        """List products matching a filter, one page at a time.

        Results are ordered by creation time, newest first, or by text
        relevance when the filter carries a search term.

        Args:
            query: Validated filter and pagination.

        Returns:
            One page of products and the total filtered count.
        """
        items = await self._find(
            query.filter,
            skip=query.pagination.skip,
            limit=query.pagination.limit,
        )
        total = await self._count(query.filter)
        return PaginatedResult(
            items=items,
            total=total,
            page=query.pagination.page,
            limit=query.pagination.limit,
        )

    async def search_by_text(self, term: str, limit: int) -> list[Product]:
        """Relevance-ranked text search, best match first."""
        return await self._find(ProductFilter(search=term), skip=0, limit=limit)

    async def list_brands(self) -> list[str]:
        """Get unique brands in ascending lexical order."""
        return sorted(set(await self._brands()))

    async def list_by_brand(
        self,
        brand: str,
        pagination: Pagination,
    ) -> PaginatedResult[Product]:
        """List products of one brand (case-insensitive exact match)."""
        items, total = await self._find_by_brand(
            brand,
            skip=pagination.skip,
            limit=pagination.limit,
        )
        return PaginatedResult(
            items=items,
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, data: ProductInput) -> Product:
        """Create a product after checking uniqueness.

        The (name, brand) check runs before the barcode check, so a
        payload colliding on both reports the name and brand conflict.

        Args:
            data: Validated create payload.

        Returns:
            Created product with id and timestamps assigned.

        Raises:
            ProductConflictError: If name+brand or barcode is taken.
        """
        if await self._exists_name_brand(data.get("name"), data.get("brand")):
            logger.info(
                "Product name and brand taken",
                name=data.get("name"),
                brand=data.get("brand"),
            )
            raise ProductConflictError(ProductConflictError.NAME_BRAND)

        barcode = data.get("barcode")
        if barcode and await self._exists_barcode(barcode):
            logger.info("Product barcode taken", barcode=barcode)
            raise ProductConflictError(ProductConflictError.BARCODE)

        product = data.to_product()
        await self._insert(product)

        logger.info("Product created", product_id=product.id, brand=product.brand)
        return product.copy()

    async def update(self, product_id: str, data: ProductInput) -> Product:
        """Apply a partial update to a product.

        Args:
            product_id: Product ID.
            data: Validated update payload; only present fields change.

        Returns:
            Updated product.

        Raises:
            ProductNotFoundError: If no product has this id.
            ProductConflictError: If the new name+brand or barcode
                belongs to a different product.
        """
        product = await self.find_by_id(product_id)

        if "name" in data and "brand" in data:
            if await self._exists_name_brand(
                data.get("name"), data.get("brand"), exclude_id=product_id
            ):
                raise ProductConflictError(ProductConflictError.NAME_BRAND)

        barcode = data.get("barcode")
        if barcode and await self._exists_barcode(barcode, exclude_id=product_id):
            raise ProductConflictError(ProductConflictError.BARCODE)

        product.apply_changes(data.to_changes())
        if not await self._replace(product):
            raise ProductNotFoundError("id", product_id)

        logger.info("Product updated", product_id=product_id, fields=sorted(data.values))
        return product.copy()

    async def delete(self, product_id: str) -> None:
        """Hard-delete a product.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        if not await self._delete(product_id):
            raise ProductNotFoundError("id", product_id)
        logger.info("Product deleted", product_id=product_id)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    @abstractmethod
    async def ping(self) -> None:
        """Check that storage is reachable.

        Raises:
            StorageError: If storage cannot be reached.
        """

    @abstractmethod
    async def clear(self) -> int:
        """Delete every product.

        Returns:
            Number of deleted products.
        """

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def _get(self, product_id: str) -> Product | None:
        """Load a product by id."""

    @abstractmethod
    async def _get_by_barcode(self, barcode: str) -> Product | None:
        """Load a product by barcode."""

    @abstractmethod
    async def _exists_name_brand(
        self, name: str, brand: str, exclude_id: str | None = None
    ) -> bool:
        """Check for a product with this exact (name, brand) pair."""

    @abstractmethod
    async def _exists_barcode(self, barcode: str, exclude_id: str | None = None) -> bool:
        """Check for a product with this barcode."""

    @abstractmethod
    async def _insert(self, product: Product) -> None:
        """Store a new product.

        Raises:
            ProductConflictError: If a native uniqueness constraint fails.
        """

    @abstractmethod
    async def _replace(self, product: Product) -> bool:
        """Overwrite a stored product.

        Returns:
            False if the product no longer exists.

        Raises:
            ProductConflictError: If a native uniqueness constraint fails.
        """

    @abstractmethod
    async def _delete(self, product_id: str) -> bool:
        """Remove a product.

        Returns:
            False if the product did not exist.
        """

    @abstractmethod
    async def _find(
        self, product_filter: ProductFilter, skip: int, limit: int
    ) -> list[Product]:
        """Find one page of products matching a filter, in listing order."""

    @abstractmethod
    async def _count(self, product_filter: ProductFilter) -> int:
        """Count products matching a filter."""

    @abstractmethod
    async def _find_by_brand(
        self, brand: str, skip: int, limit: int
    ) -> tuple[list[Product], int]:
        """Find products of one brand, newest first, with the total count."""

    @abstractmethod
    async def _brands(self) -> list[str]:
        """Get distinct brand names in any order."""
