"""PostgreSQL product gateway.

Runs every operation in its own session from the shared session
factory. Unique index violations raised by the database are turned
into ``ProductConflictError``; any other driver failure becomes a
``StorageError``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from sqlalchemy import Select, and_, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pawscan.catalog.filters import ProductFilter
from pawscan.catalog.gateway import ProductGateway
from pawscan.catalog.models import (
    BARCODE_INDEX,
    NAME_BRAND_CONSTRAINT,
    TS_CONFIG,
    ProductRecord,
    search_vector,
)
from pawscan.domain.entities import Product
from pawscan.domain.exceptions import ProductConflictError, StorageError

logger = structlog.get_logger()


def conflict_from_integrity_error(exc: IntegrityError) -> ProductConflictError | None:
    """Map a unique violation to the conflict it represents.

    Args:
        exc: Integrity error raised by the driver.

    Returns:
        Matching conflict error, or None for other integrity errors.
    """
    message = str(exc.orig)
    if NAME_BRAND_CONSTRAINT in message:
        return ProductConflictError(ProductConflictError.NAME_BRAND)
    if BARCODE_INDEX in message:
        return ProductConflictError(ProductConflictError.BARCODE)
    return None


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate driver exceptions raised inside the block.

    Args:
        operation: Description used in the error message, e.g. "create product".

    Raises:
        ProductConflictError: On unique constraint violations.
        StorageError: On any other database failure.
    """
    try:
        yield
    except IntegrityError as exc:
        conflict = conflict_from_integrity_error(exc)
        if conflict is not None:
            logger.info("Unique constraint rejected write", operation=operation)
            raise conflict from exc
        raise StorageError(operation, exc) from exc
    except (SQLAlchemyError, OSError) as exc:
        raise StorageError(operation, exc) from exc


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlProductGateway(ProductGateway):
    """Product gateway backed by PostgreSQL.

    Example usage:
        gateway = SqlProductGateway(async_session_factory)
        page = await gateway.list_products(query)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize gateway with a session factory.

        Args:
            session_factory: Factory for async SQLAlchemy sessions.
        """
        self._session_factory = session_factory

    async def ping(self) -> None:
        with storage_errors("reach the database"):
            async with self._session_factory() as session:
                await session.execute(select(1))

    async def clear(self) -> int:
        with storage_errors("clear products"):
            async with self._session_factory() as session:
                result = await session.execute(delete(ProductRecord))
                await session.commit()
                return result.rowcount or 0

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _get(self, product_id: str) -> Product | None:
        return await self._first(
            select(ProductRecord).where(ProductRecord.id == product_id),
            "retrieve product",
        )

    async def _get_by_barcode(self, barcode: str) -> Product | None:
        return await self._first(
            select(ProductRecord).where(ProductRecord.barcode == barcode),
            "retrieve product",
        )

    async def _exists_name_brand(
        self, name: str, brand: str, exclude_id: str | None = None
    ) -> bool:
        conditions = [ProductRecord.name == name, ProductRecord.brand == brand]
        if exclude_id is not None:
            conditions.append(ProductRecord.id != exclude_id)
        return await self._exists(and_(*conditions))

    async def _exists_barcode(self, barcode: str, exclude_id: str | None = None) -> bool:
        conditions = [ProductRecord.barcode == barcode]
        if exclude_id is not None:
            conditions.append(ProductRecord.id != exclude_id)
        return await self._exists(and_(*conditions))

    async def _insert(self, product: Product) -> None:
        with storage_errors("create product"):
            async with self._session_factory() as session:
                session.add(ProductRecord.from_entity(product))
                await session.commit()

    async def _replace(self, product: Product) -> bool:
        with storage_errors("update product"):
            async with self._session_factory() as session:
                record = await session.get(ProductRecord, product.id)
                if record is None:
                    return False
                record.update_from(product)
                await session.commit()
                return True

    async def _delete(self, product_id: str) -> bool:
        with storage_errors("delete product"):
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(ProductRecord).where(ProductRecord.id == product_id)
                )
                await session.commit()
                return bool(result.rowcount)

    async def _find(
        self, product_filter: ProductFilter, skip: int, limit: int
    ) -> list[Product]:
        query = self.build_find_query(product_filter).offset(skip).limit(limit)
        return await self._all(query, "retrieve products")

    async def _count(self, product_filter: ProductFilter) -> int:
        query = select(func.count()).select_from(ProductRecord)
        conditions = self.build_conditions(product_filter)
        if conditions:
            query = query.where(and_(*conditions))
        return await self._scalar(query, "count products")

    async def _find_by_brand(
        self, brand: str, skip: int, limit: int
    ) -> tuple[list[Product], int]:
        condition = func.lower(ProductRecord.brand) == brand.lower()
        items = await self._all(
            select(ProductRecord)
            .where(condition)
            .order_by(ProductRecord.created_at.desc(), ProductRecord.id)
            .offset(skip)
            .limit(limit),
            "retrieve products by brand",
        )
        total = await self._scalar(
            select(func.count()).select_from(ProductRecord).where(condition),
            "count products by brand",
        )
        return items, total

    async def _brands(self) -> list[str]:
        with storage_errors("retrieve brands"):
            async with self._session_factory() as session:
                result = await session.execute(select(ProductRecord.brand).distinct())
                return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    @staticmethod
    def build_conditions(product_filter: ProductFilter) -> list[Any]:
        """Build WHERE conditions for a listing filter."""
        conditions: list[Any] = []

        if product_filter.search:
            ts_query = func.plainto_tsquery(TS_CONFIG, product_filter.search)
            conditions.append(search_vector().op("@@")(ts_query))

        if product_filter.brand:
            conditions.append(
                ProductRecord.brand.ilike(f"%{escape_like(product_filter.brand)}%", escape="\\")
            )

        if product_filter.min_rating is not None:
            conditions.append(ProductRecord.rating >= product_filter.min_rating)

        if product_filter.max_rating is not None:
            conditions.append(ProductRecord.rating <= product_filter.max_rating)

        return conditions

    @classmethod
    def build_find_query(cls, product_filter: ProductFilter) -> Select:
        """Build the ordered SELECT for a listing filter, without paging."""
        query = select(ProductRecord)
        conditions = cls.build_conditions(product_filter)
        if conditions:
            query = query.where(and_(*conditions))

        if product_filter.search:
            ts_query = func.plainto_tsquery(TS_CONFIG, product_filter.search)
            query = query.order_by(func.ts_rank(search_vector(), ts_query).desc())

        return query.order_by(ProductRecord.created_at.desc(), ProductRecord.id)

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    async def _first(self, query: Select, operation: str) -> Product | None:
        with storage_errors(operation):
            async with self._session_factory() as session:
                record = (await session.execute(query)).scalar_one_or_none()
                return record.to_entity() if record else None

    async def _all(self, query: Select, operation: str) -> list[Product]:
        with storage_errors(operation):
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [record.to_entity() for record in result.scalars().all()]

    async def _scalar(self, query: Select, operation: str) -> int:
        with storage_errors(operation):
            async with self._session_factory() as session:
                return (await session.scalar(query)) or 0

    async def _exists(self, condition: Any) -> bool:
        with storage_errors("check product uniqueness"):
            async with self._session_factory() as session:
                found = await session.scalar(select(ProductRecord.id).where(condition).limit(1))
                return found is not None
