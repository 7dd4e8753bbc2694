"""Query parameter parsing for product listing and search.

Turns the flat, string-valued query parameter bag of a request into a
typed and bounded filter. Out-of-range values are rejected, never
clamped.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails, PydanticCustomError

from pawscan.catalog.validation import MAX_RATING, MIN_RATING, Invalid, Valid, invalid_from
from pawscan.domain.exceptions import FieldError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Largest row offset PostgreSQL accepts (bigint)
MAX_OFFSET = 2**63 - 1
MAX_PAGE = MAX_OFFSET // MAX_LIMIT + 1


@dataclass(frozen=True)
class Pagination:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        limit: Items per page.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        """Number of items before this page."""
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ProductFilter:
    """Filter parameters for product listing.

    Attributes:
        search: Full-text search term; switches to relevance ranking.
        brand: Case-insensitive brand substring.
        min_rating: Inclusive lower rating bound.
        max_rating: Inclusive upper rating bound.
    """

    search: str | None = None
    brand: str | None = None
    min_rating: float | None = None
    max_rating: float | None = None


@dataclass(frozen=True)
class ProductQuery:
    """A validated listing request."""

    filter: ProductFilter = field(default_factory=ProductFilter)
    pagination: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class SearchQuery:
    """A validated relevance-ranked text search request."""

    term: str
    limit: int


# ============================================================================
# Parameter Models
# ============================================================================

Page = Annotated[int, Field(ge=1, le=MAX_PAGE)]
Limit = Annotated[int, Field(ge=1, le=MAX_LIMIT)]
Term = Annotated[str, Field(min_length=1)]
RatingBound = Annotated[float, Field(ge=MIN_RATING, le=MAX_RATING, allow_inf_nan=False)]


class QueryParams(BaseModel):
    """Base of query parameter models. Unknown parameters are ignored."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


class PaginationParams(QueryParams):
    """Pagination query parameters."""

    page: Page = DEFAULT_PAGE
    limit: Limit = DEFAULT_LIMIT

    def to_pagination(self) -> Pagination:
        return Pagination(page=self.page, limit=self.limit)


class ListingParams(PaginationParams):
    """Product listing query parameters."""

    search: Term | None = None
    brand: Term | None = None
    min_rating: RatingBound | None = Field(default=None, alias="minRating")
    max_rating: RatingBound | None = Field(default=None, alias="maxRating")

    @field_validator("max_rating")
    @classmethod
    def check_rating_range(cls, value: float | None, info: ValidationInfo) -> float | None:
        """Reject an inverted rating range, even when other parameters are invalid."""
        min_rating = info.data.get("min_rating")
        if value is not None and min_rating is not None and min_rating > value:
            raise PydanticCustomError("rating_range", "Min rating cannot exceed max rating")
        return value


class SearchParams(QueryParams):
    """Text search query parameters."""

    q: Term
    limit: Limit | None = None


_PARAM_MESSAGES = {
    "page": "Page must be a positive integer",
    "limit": f"Limit must be between 1 and {MAX_LIMIT}",
    "search": "Search term cannot be empty",
    "brand": "Brand filter cannot be empty",
    "minRating": "Min rating must be between 0 and 10",
    "maxRating": "Max rating must be between 0 and 10",
    "q": "Search term cannot be empty",
}


def _describe_param_error(detail: ErrorDetails) -> FieldError:
    if detail["type"] == "rating_range":
        return FieldError("minRating", detail["msg"])

    key = str(detail["loc"][0])
    if key == "page" and detail["type"] == "less_than_equal":
        return FieldError(key, f"Page cannot exceed {MAX_PAGE}")
    return FieldError(key, _PARAM_MESSAGES.get(key, "Invalid value"))


def _present(params: Mapping[str, str | None]) -> dict[str, Any]:
    # A parameter given as None counts as absent
    return {key: value for key, value in params.items() if value is not None}


# ============================================================================
# Parsers
# ============================================================================


def build_pagination(params: Mapping[str, str | None]) -> Valid[Pagination] | Invalid:
    """Parse ``page`` and ``limit`` parameters."""
    try:
        parsed = PaginationParams.model_validate(_present(params))
    except PydanticValidationError as e:
        return invalid_from(e, _describe_param_error)
    return Valid(parsed.to_pagination())


def build_product_query(params: Mapping[str, str | None]) -> Valid[ProductQuery] | Invalid:
    """Parse listing parameters into a product query.

    Recognized parameters: ``page``, ``limit``, ``search``, ``brand``,
    ``minRating`` and ``maxRating``. Unknown parameters are ignored.

    Args:
        params: Raw query parameters.

    Returns:
        Valid product query or every offending parameter.
    """
    try:
        parsed = ListingParams.model_validate(_present(params))
    except PydanticValidationError as e:
        return invalid_from(e, _describe_param_error)

    return Valid(
        ProductQuery(
            filter=ProductFilter(
                search=parsed.search,
                brand=parsed.brand,
                min_rating=parsed.min_rating,
                max_rating=parsed.max_rating,
            ),
            pagination=parsed.to_pagination(),
        )
    )


def build_search_query(
    params: Mapping[str, str | None],
    default_limit: int = DEFAULT_LIMIT,
) -> Valid[SearchQuery] | Invalid:
    """Parse ``q`` and ``limit`` parameters of a text search."""
    try:
        parsed = SearchParams.model_validate(_present(params))
    except PydanticValidationError as e:
        return invalid_from(e, _describe_param_error)
    return Valid(SearchQuery(term=parsed.q, limit=parsed.limit or default_limit))
