"""In-memory product gateway.

Keeps products in a dict for tests and database-less local runs. It
enforces the same uniqueness constraints as the database schema and
approximates full-text relevance with weighted word matching.
"""

import re

from pawscan.catalog.filters import ProductFilter
from pawscan.catalog.gateway import ProductGateway
from pawscan.domain.entities import Product
from pawscan.domain.exceptions import ProductConflictError

_WORD_PATTERN = re.compile(r"\w+")

# Weights of the searchable fields, mirroring the A/B/C/D weights
# of the PostgreSQL search vector.
_NAME_WEIGHT = 1.0
_BRAND_WEIGHT = 0.4
_INGREDIENT_WEIGHT = 0.2
_DESCRIPTION_WEIGHT = 0.1


def _words(text: str | None) -> list[str]:
    return _WORD_PATTERN.findall(text.lower()) if text else []


def relevance(product: Product, term: str) -> float:
    """Score how well a product matches a search term.

    Every word of the term must occur in the product's name, brand,
    ingredient names or description; otherwise the score is zero.

    Args:
        product: Product to score.
        term: Free-text search term.

    Returns:
        Weighted number of word occurrences.
    """
    terms = set(_words(term))
    if not terms:
        return 0.0

    fields = [
        (_words(product.name), _NAME_WEIGHT),
        (_words(product.brand), _BRAND_WEIGHT),
        (_words(" ".join(item.name for item in product.ingredients)), _INGREDIENT_WEIGHT),
        (_words(product.description), _DESCRIPTION_WEIGHT),
    ]

    score = 0.0
    for word in terms:
        word_score = sum(words.count(word) * weight for words, weight in fields)
        if word_score == 0:
            return 0.0
        score += word_score
    return score


class InMemoryProductGateway(ProductGateway):
    """Product gateway backed by a process-local dict.

    Example usage:
        gateway = InMemoryProductGateway()
        product = await gateway.create(payload)
        same = await gateway.find_by_id(product.id)
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}

    async def ping(self) -> None:
        return None

    async def clear(self) -> int:
        count = len(self._products)
        self._products.clear()
        return count

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _get(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return product.copy() if product else None

    async def _get_by_barcode(self, barcode: str) -> Product | None:
        for product in self._products.values():
            if product.barcode == barcode:
                return product.copy()
        return None

    async def _exists_name_brand(
        self, name: str, brand: str, exclude_id: str | None = None
    ) -> bool:
        return any(
            product.name == name and product.brand == brand
            for product in self._products.values()
            if product.id != exclude_id
        )

    async def _exists_barcode(self, barcode: str, exclude_id: str | None = None) -> bool:
        return any(
            product.barcode == barcode
            for product in self._products.values()
            if product.id != exclude_id
        )

    async def _insert(self, product: Product) -> None:
        self._check_constraints(product)
        self._products[product.id] = product.copy()

    async def _replace(self, product: Product) -> bool:
        if product.id not in self._products:
            return False
        self._check_constraints(product)
        self._products[product.id] = product.copy()
        return True

    async def _delete(self, product_id: str) -> bool:
        return self._products.pop(product_id, None) is not None

    async def _find(
        self, product_filter: ProductFilter, skip: int, limit: int
    ) -> list[Product]:
        matches = self._matching(product_filter)
        if product_filter.search:
            scores = {product.id: relevance(product, product_filter.search) for product in matches}
            matches.sort(key=lambda product: scores[product.id], reverse=True)
        return [product.copy() for product in matches[skip : skip + limit]]

    async def _count(self, product_filter: ProductFilter) -> int:
        return len(self._matching(product_filter))

    async def _find_by_brand(
        self, brand: str, skip: int, limit: int
    ) -> tuple[list[Product], int]:
        wanted = brand.lower()
        matches = [
            product for product in self._newest_first() if product.brand.lower() == wanted
        ]
        return [product.copy() for product in matches[skip : skip + limit]], len(matches)

    async def _brands(self) -> list[str]:
        return [product.brand for product in self._products.values()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _newest_first(self) -> list[Product]:
        # Stable sort keeps later inserts first among equal timestamps
        products = list(reversed(self._products.values()))
        return sorted(products, key=lambda product: product.created_at, reverse=True)

    def _matching(self, product_filter: ProductFilter) -> list[Product]:
        brand = product_filter.brand.lower() if product_filter.brand else None
        matches = []
        for product in self._newest_first():
            if brand is not None and brand not in product.brand.lower():
                continue
            if product_filter.min_rating is not None and product.rating < product_filter.min_rating:
                continue
            if product_filter.max_rating is not None and product.rating > product_filter.max_rating:
                continue
            if product_filter.search and relevance(product, product_filter.search) == 0:
                continue
            matches.append(product)
        return matches

    def _check_constraints(self, product: Product) -> None:
        for other in self._products.values():
            if other.id == product.id:
                continue
            if other.name == product.name and other.brand == product.brand:
                raise ProductConflictError(ProductConflictError.NAME_BRAND)
            if product.barcode is not None and other.barcode == product.barcode:
                raise ProductConflictError(ProductConflictError.BARCODE)
