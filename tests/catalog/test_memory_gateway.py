"""Tests for the product gateway contract on the in-memory backend."""

from collections.abc import Callable
from dataclasses import asdict
from typing import Any

import pytest
import pytest_asyncio

from pawscan.catalog.filters import Pagination, ProductFilter, ProductQuery
from pawscan.catalog.memory import InMemoryProductGateway, relevance
from pawscan.catalog.service import CatalogService
from pawscan.catalog.validation import ProductInput, Valid, ValidationMode, validate_product
from pawscan.domain.exceptions import (
    ProductConflictError,
    ProductNotFoundError,
    ValidationFailedError,
)

PayloadFactory = Callable[..., dict[str, Any]]


def to_input(payload: dict[str, Any], mode: ValidationMode = ValidationMode.CREATE) -> ProductInput:
    """Validate a payload, failing the test if it is invalid."""
    result = validate_product(payload, mode)
    assert isinstance(result, Valid)
    return result.value


# ============================================================================
# Create / Read / Delete
# ============================================================================


class TestCreate:
    """Tests for gateway create."""

    @pytest.mark.asyncio
    async def test_create_assigns_identity(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Created products get an id and equal timestamps."""
        product = await gateway.create(to_input(make_payload()))

        assert product.id
        assert product.created_at == product.updated_at
        assert len(product.ingredients) >= 1
        assert await gateway.find_by_id(product.id) == product

    @pytest.mark.asyncio
    async def test_duplicate_name_and_brand_conflicts(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Same name and brand conflicts regardless of other fields."""
        await gateway.create(to_input(make_payload()))

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway.create(to_input(make_payload(barcode="99999999", rating=2)))

        assert exc_info.value.constraint == ProductConflictError.NAME_BRAND
        assert exc_info.value.message == "Product with this name and brand already exists"

    @pytest.mark.asyncio
    async def test_name_and_brand_are_case_sensitive(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(to_input(make_payload(barcode=...)))
        await gateway.create(to_input(make_payload(brand="PETCO", barcode=...)))
        assert len(await gateway.list_brands()) == 2

    @pytest.mark.asyncio
    async def test_duplicate_barcode_conflicts(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(to_input(make_payload()))

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway.create(to_input(make_payload(name="Other Food", brand="Other")))

        assert exc_info.value.constraint == ProductConflictError.BARCODE
        assert exc_info.value.message == "Product with this barcode already exists"

    @pytest.mark.asyncio
    async def test_name_and_brand_conflict_reported_first(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """A payload colliding on both reports the name and brand conflict."""
        await gateway.create(to_input(make_payload()))

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway.create(to_input(make_payload()))

        assert exc_info.value.constraint == ProductConflictError.NAME_BRAND

    @pytest.mark.asyncio
    async def test_many_products_without_barcode(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Barcode uniqueness ignores products without a barcode."""
        for index in range(3):
            await gateway.create(to_input(make_payload(name=f"Food {index}", barcode=...)))
        page = await gateway.list_products(ProductQuery())
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_native_constraint_backstops_racing_writes(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """A write that skipped the pre-check is still rejected on insert."""
        await gateway.create(to_input(make_payload()))
        duplicate = to_input(make_payload(name="Other", brand="Other")).to_product()

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway._insert(duplicate)

        assert exc_info.value.constraint == ProductConflictError.BARCODE


class TestReadAndDelete:
    """Tests for lookups and delete."""

    @pytest.mark.asyncio
    async def test_find_by_barcode(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        product = await gateway.create(to_input(make_payload()))
        assert (await gateway.find_by_barcode("1234567890123")).id == product.id

        with pytest.raises(ProductNotFoundError):
            await gateway.find_by_barcode("00000000")

    @pytest.mark.asyncio
    async def test_delete_then_find_is_not_found(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        product = await gateway.create(to_input(make_payload()))

        await gateway.delete(product.id)

        with pytest.raises(ProductNotFoundError):
            await gateway.find_by_id(product.id)
        with pytest.raises(ProductNotFoundError):
            await gateway.delete(product.id)

    @pytest.mark.asyncio
    async def test_returned_products_are_copies(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Mutating a returned product never changes stored state."""
        product = await gateway.create(to_input(make_payload()))
        product.name = "Changed"
        product.ingredients.clear()

        stored = await gateway.find_by_id(product.id)
        assert stored.name == "Premium Dog Food"
        assert len(stored.ingredients) == 2

    @pytest.mark.asyncio
    async def test_clear(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(to_input(make_payload()))
        assert await gateway.clear() == 1
        assert (await gateway.list_products(ProductQuery())).total == 0


# ============================================================================
# Update
# ============================================================================


class TestUpdate:
    """Tests for gateway update."""

    @pytest.mark.asyncio
    async def test_empty_update_only_bumps_updated_at(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        product = await gateway.create(to_input(make_payload()))

        updated = await gateway.update(product.id, to_input({}, ValidationMode.UPDATE))

        assert updated.updated_at > product.updated_at
        before = {k: v for k, v in asdict(product).items() if k != "updated_at"}
        after = {k: v for k, v in asdict(updated).items() if k != "updated_at"}
        assert after == before

    @pytest.mark.asyncio
    async def test_partial_update(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        product = await gateway.create(to_input(make_payload()))

        updated = await gateway.update(
            product.id,
            to_input({"rating": 6.5, "description": None}, ValidationMode.UPDATE),
        )

        assert updated.rating == 6.5
        assert updated.description is None
        assert updated.name == product.name
        assert (await gateway.find_by_id(product.id)).rating == 6.5

    @pytest.mark.asyncio
    async def test_update_missing_product(self, gateway: InMemoryProductGateway) -> None:
        with pytest.raises(ProductNotFoundError):
            await gateway.update(
                "3f2504e0-4f89-41d3-9a0c-0305e82c3301",
                to_input({"rating": 5}, ValidationMode.UPDATE),
            )

    @pytest.mark.asyncio
    async def test_update_to_other_products_name_and_brand_conflicts(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(to_input(make_payload()))
        other = await gateway.create(to_input(make_payload(name="Other Food", barcode=...)))

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway.update(
                other.id,
                to_input({"name": "Premium Dog Food", "brand": "PetCo"}, ValidationMode.UPDATE),
            )

        assert exc_info.value.constraint == ProductConflictError.NAME_BRAND

    @pytest.mark.asyncio
    async def test_update_keeping_own_name_and_barcode(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Re-sending a product's own unique values is not a conflict."""
        product = await gateway.create(to_input(make_payload()))

        updated = await gateway.update(
            product.id,
            to_input(
                {"name": product.name, "brand": product.brand, "barcode": product.barcode},
                ValidationMode.UPDATE,
            ),
        )

        assert updated.id == product.id

    @pytest.mark.asyncio
    async def test_update_to_other_products_barcode_conflicts(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(to_input(make_payload()))
        other = await gateway.create(to_input(make_payload(name="Other Food", barcode=...)))

        with pytest.raises(ProductConflictError) as exc_info:
            await gateway.update(
                other.id, to_input({"barcode": "1234567890123"}, ValidationMode.UPDATE)
            )

        assert exc_info.value.constraint == ProductConflictError.BARCODE


# ============================================================================
# Listing and Search
# ============================================================================


@pytest_asyncio.fixture
async def catalog(
    gateway: InMemoryProductGateway, make_payload: PayloadFactory
) -> InMemoryProductGateway:
    """Gateway holding three products, created oldest to newest."""
    await gateway.create(
        to_input(make_payload(name="Salmon Feast", brand="Brand C", rating=9.5, barcode=...))
    )
    await gateway.create(
        to_input(
            make_payload(name="Chicken Dinner", brand="PetCo Naturals", rating=8.0, barcode=...)
        )
    )
    await gateway.create(
        to_input(make_payload(name="Budget Kibble", brand="Brand A", rating=4.0, barcode=...))
    )
    return gateway


def names(products) -> list[str]:
    return [product.name for product in products]


class TestListing:
    """Tests for list, list_by_brand and list_brands."""

    @pytest.mark.asyncio
    async def test_pagination(self, catalog: InMemoryProductGateway) -> None:
        """Page one of two-per-page over three products."""
        page = await catalog.list_products(ProductQuery(pagination=Pagination(page=1, limit=2)))

        assert len(page.items) == 2
        assert (page.page, page.limit, page.total, page.total_pages) == (1, 2, 3, 2)

    @pytest.mark.asyncio
    async def test_newest_first(self, catalog: InMemoryProductGateway) -> None:
        page = await catalog.list_products(ProductQuery())
        assert names(page.items) == ["Budget Kibble", "Chicken Dinner", "Salmon Feast"]

        second = await catalog.list_products(ProductQuery(pagination=Pagination(page=2, limit=2)))
        assert names(second.items) == ["Salmon Feast"]

    @pytest.mark.asyncio
    async def test_brand_filter_is_case_insensitive_substring(
        self, catalog: InMemoryProductGateway
    ) -> None:
        page = await catalog.list_products(ProductQuery(filter=ProductFilter(brand="petco")))
        assert names(page.items) == ["Chicken Dinner"]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_rating_range_is_inclusive(self, catalog: InMemoryProductGateway) -> None:
        page = await catalog.list_products(
            ProductQuery(filter=ProductFilter(min_rating=8.0, max_rating=9.5))
        )
        assert all(8.0 <= product.rating <= 9.5 for product in page.items)
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_list_brands_sorted(self, catalog: InMemoryProductGateway) -> None:
        assert await catalog.list_brands() == ["Brand A", "Brand C", "PetCo Naturals"]

    @pytest.mark.asyncio
    async def test_list_by_brand_exact_case_insensitive(
        self, catalog: InMemoryProductGateway
    ) -> None:
        page = await catalog.list_by_brand("brand a", Pagination())
        assert names(page.items) == ["Budget Kibble"]
        assert page.total == 1

        partial = await catalog.list_by_brand("Brand", Pagination())
        assert partial.total == 0

    @pytest.mark.asyncio
    async def test_brand_matching_lowercases_like_postgres(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        """Case folding would equate "ß" and "ss"; lower() does not."""
        await gateway.create(to_input(make_payload(brand="Straße Futter", barcode=...)))

        matched = await gateway.list_by_brand("STRAßE FUTTER", Pagination())
        assert matched.total == 1

        folded = await gateway.list_by_brand("strasse futter", Pagination())
        assert folded.total == 0

        listed = await gateway.list_products(ProductQuery(filter=ProductFilter(brand="STRASSE")))
        assert listed.total == 0


class TestSearch:
    """Tests for relevance-ranked text search."""

    @pytest.mark.asyncio
    async def test_search_ranks_name_matches_first(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        await gateway.create(
            to_input(
                make_payload(name="Lamb Stew", description="With a hint of salmon", barcode=...)
            )
        )
        await gateway.create(to_input(make_payload(name="Salmon Pate", barcode=...)))
        await gateway.create(to_input(make_payload(name="Turkey Bites", barcode=...)))

        results = await gateway.search_by_text("salmon", limit=10)

        assert names(results) == ["Salmon Pate", "Lamb Stew"]

    @pytest.mark.asyncio
    async def test_search_requires_every_word(self, catalog: InMemoryProductGateway) -> None:
        assert names(await catalog.search_by_text("chicken dinner", limit=10)) == ["Chicken Dinner"]
        assert await catalog.search_by_text("kibble salmon", limit=10) == []

    @pytest.mark.asyncio
    async def test_search_matches_ingredient_names(self, catalog: InMemoryProductGateway) -> None:
        """Every sample product lists brown rice as an ingredient."""
        assert len(await catalog.search_by_text("rice", limit=2)) == 2

    @pytest.mark.asyncio
    async def test_list_with_search_counts_matches(self, catalog: InMemoryProductGateway) -> None:
        page = await catalog.list_products(ProductQuery(filter=ProductFilter(search="kibble")))
        assert names(page.items) == ["Budget Kibble"]
        assert page.total == 1

    def test_relevance_weights(self, make_payload: PayloadFactory) -> None:
        product = to_input(make_payload(name="Salmon Feast", description="Salmon")).to_product()
        assert relevance(product, "salmon") == pytest.approx(1.1)
        assert relevance(product, "") == 0.0


# ============================================================================
# Service
# ============================================================================


class TestCatalogService:
    """Tests for validation before storage in the catalog service."""

    @pytest.mark.asyncio
    async def test_invalid_input_never_reaches_gateway(
        self, service: CatalogService, gateway: InMemoryProductGateway
    ) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.create_product({"name": "", "rating": 20, "ingredients": []})

        fields = [e.field for e in exc_info.value.errors]
        assert fields == ["name", "brand", "rating", "ingredients"]
        assert await gateway.clear() == 0

    @pytest.mark.asyncio
    async def test_malformed_barcode_is_a_validation_error(self, service: CatalogService) -> None:
        with pytest.raises(ValidationFailedError):
            await service.get_product_by_barcode("invalid-barcode")

    @pytest.mark.asyncio
    async def test_unknown_barcode_is_not_found(self, service: CatalogService) -> None:
        with pytest.raises(ProductNotFoundError):
            await service.get_product_by_barcode("12345678")

    @pytest.mark.asyncio
    async def test_update_reports_id_and_body_errors_together(
        self, service: CatalogService
    ) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.update_product("not-a-uuid", {"rating": -1})

        assert [e.field for e in exc_info.value.errors] == ["id", "rating"]

    @pytest.mark.asyncio
    async def test_list_by_brand_validates_pagination(self, service: CatalogService) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.list_products_by_brand(" ", {"limit": "0"})

        assert [e.field for e in exc_info.value.errors] == ["brand", "limit"]

    @pytest.mark.asyncio
    async def test_search_uses_default_limit(
        self, gateway: InMemoryProductGateway, make_payload: PayloadFactory
    ) -> None:
        service = CatalogService(gateway, search_default_limit=1)
        await service.create_product(make_payload(barcode=...))
        await service.create_product(make_payload(name="Premium Dog Food Lite", barcode=...))

        results = await service.search_products({"q": "premium"})

        assert len(results) == 1
