"""Tests for the PostgreSQL product gateway.

Statements are compiled against the PostgreSQL dialect and sessions are
mocked, so no database is needed.
"""

from collections.abc import Callable
from dataclasses import asdict
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.schema import CreateIndex

from pawscan.catalog.filters import ProductFilter
from pawscan.catalog.models import SEARCH_INDEX, SEARCH_VECTOR_SQL, ProductRecord
from pawscan.catalog.repository import (
    SqlProductGateway,
    conflict_from_integrity_error,
    escape_like,
    storage_errors,
)
from pawscan.catalog.validation import Valid, ValidationMode, validate_product
from pawscan.domain.exceptions import (
    ProductConflictError,
    ProductNotFoundError,
    StorageError,
)

PayloadFactory = Callable[..., dict[str, Any]]


def compile_sql(statement: Any) -> str:
    """Compile a statement to PostgreSQL SQL text."""
    return str(statement.compile(dialect=postgresql.dialect()))


def unique_violation(constraint: str) -> IntegrityError:
    """Create an IntegrityError like asyncpg reports for a unique index."""
    orig = Exception(f'duplicate key value violates unique constraint "{constraint}"')
    return IntegrityError("INSERT INTO products ...", {}, orig)


def make_session_factory(session: MagicMock) -> MagicMock:
    """Create a session factory whose sessions are the given mock."""
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=None)
    return factory


@pytest.fixture
def session() -> MagicMock:
    """Create a mocked async session."""
    mock = MagicMock()
    mock.execute = AsyncMock(return_value=MagicMock())
    mock.scalar = AsyncMock(return_value=None)
    mock.commit = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def sql_gateway(session: MagicMock) -> SqlProductGateway:
    """Create SQL gateway over the mocked session."""
    return SqlProductGateway(make_session_factory(session))


# ============================================================================
# Error Translation
# ============================================================================


class TestErrorTranslation:
    """Tests for driver error translation."""

    @pytest.mark.parametrize(
        ("constraint", "expected"),
        [
            ("uq_products_name_brand", ProductConflictError.NAME_BRAND),
            ("uq_products_barcode", ProductConflictError.BARCODE),
        ],
    )
    def test_unique_violations_become_conflicts(self, constraint: str, expected: str) -> None:
        conflict = conflict_from_integrity_error(unique_violation(constraint))
        assert conflict is not None
        assert conflict.constraint == expected

    def test_other_integrity_errors_are_storage_errors(self) -> None:
        assert conflict_from_integrity_error(unique_violation("products_pkey")) is None

        with pytest.raises(StorageError):
            with storage_errors("create product"):
                raise unique_violation("products_pkey")

    def test_driver_errors_become_storage_errors(self) -> None:
        with pytest.raises(StorageError) as exc_info:
            with storage_errors("retrieve product"):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        assert exc_info.value.message == "Failed to retrieve product"
        assert not exc_info.value.is_operational

    def test_escape_like(self) -> None:
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


# ============================================================================
# Query Building
# ============================================================================


class TestQueryBuilding:
    """Tests for compiled listing queries."""

    def test_default_listing_is_newest_first(self) -> None:
        sql = compile_sql(SqlProductGateway.build_find_query(ProductFilter()))
        assert "WHERE" not in sql
        assert "ORDER BY products.created_at DESC" in sql

    def test_filters(self) -> None:
        sql = compile_sql(
            SqlProductGateway.build_find_query(
                ProductFilter(brand="PetCo", min_rating=8.0, max_rating=9.0)
            )
        )
        assert "products.brand ILIKE" in sql
        assert "products.rating >=" in sql
        assert "products.rating <=" in sql

    def test_search_uses_full_text_ranking(self) -> None:
        sql = compile_sql(SqlProductGateway.build_find_query(ProductFilter(search="salmon")))
        assert "plainto_tsquery('english'::regconfig" in sql
        assert "@@" in sql
        assert sql.index("ts_rank(") < sql.index("products.created_at DESC")

    def test_search_index_uses_gin(self) -> None:
        """The table owns the index, so create_tables builds it too."""
        index = next(i for i in ProductRecord.__table__.indexes if i.name == SEARCH_INDEX)
        ddl = compile_sql(CreateIndex(index))
        assert "USING gin" in ddl
        assert "setweight(to_tsvector('english'::regconfig" in ddl
        assert f"({SEARCH_VECTOR_SQL})" in ddl

    def test_barcode_index_is_partial(self) -> None:
        index = next(i for i in ProductRecord.__table__.indexes if i.name == "uq_products_barcode")
        ddl = compile_sql(CreateIndex(index))
        assert "CREATE UNIQUE INDEX" in ddl
        assert "WHERE barcode IS NOT NULL" in ddl


# ============================================================================
# Gateway Operations
# ============================================================================


class TestSqlProductGateway:
    """Tests for gateway operations over a mocked session."""

    @pytest.mark.asyncio
    async def test_create_translates_unique_violation(
        self,
        sql_gateway: SqlProductGateway,
        session: MagicMock,
        make_payload: PayloadFactory,
    ) -> None:
        """A duplicate that slipped past the pre-check is still a conflict."""
        session.commit.side_effect = unique_violation("uq_products_name_brand")
        result = validate_product(make_payload(), ValidationMode.CREATE)
        assert isinstance(result, Valid)

        with pytest.raises(ProductConflictError) as exc_info:
            await sql_gateway.create(result.value)

        assert exc_info.value.constraint == ProductConflictError.NAME_BRAND
        session.add.assert_called_once()

    @pytest.mark.asyncio
    async def test_create_prechecks_name_and_brand(
        self,
        sql_gateway: SqlProductGateway,
        session: MagicMock,
        make_payload: PayloadFactory,
    ) -> None:
        session.scalar.return_value = "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
        result = validate_product(make_payload(), ValidationMode.CREATE)
        assert isinstance(result, Valid)

        with pytest.raises(ProductConflictError) as exc_info:
            await sql_gateway.create(result.value)

        assert exc_info.value.constraint == ProductConflictError.NAME_BRAND
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_missing_product(
        self, sql_gateway: SqlProductGateway, session: MagicMock
    ) -> None:
        session.execute.return_value.scalar_one_or_none.return_value = None

        with pytest.raises(ProductNotFoundError):
            await sql_gateway.find_by_id("3f2504e0-4f89-41d3-9a0c-0305e82c3301")

    @pytest.mark.asyncio
    async def test_delete_missing_product(
        self, sql_gateway: SqlProductGateway, session: MagicMock
    ) -> None:
        session.execute.return_value.rowcount = 0

        with pytest.raises(ProductNotFoundError):
            await sql_gateway.delete("3f2504e0-4f89-41d3-9a0c-0305e82c3301")

    @pytest.mark.asyncio
    async def test_ping_reports_unreachable_storage(
        self, sql_gateway: SqlProductGateway, session: MagicMock
    ) -> None:
        session.execute.side_effect = OperationalError("SELECT 1", {}, OSError("refused"))

        with pytest.raises(StorageError):
            await sql_gateway.ping()


class TestProductRecord:
    """Tests for row and entity conversion."""

    def test_entity_round_trip(self, make_payload: PayloadFactory) -> None:
        result = validate_product(make_payload(description=...), ValidationMode.CREATE)
        assert isinstance(result, Valid)
        product = result.value.to_product()

        record = ProductRecord.from_entity(product)

        assert record.ingredient_names == "Chicken Brown Rice"
        assert record.ingredients[0]["status"] == "excellent"
        restored = record.to_entity()
        assert asdict(restored) == asdict(product)
