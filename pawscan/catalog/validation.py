"""Input validation for products and ingredients.

Request bodies are checked against pydantic request models. Validators
are pure functions returning ``Valid(value)`` or ``Invalid(errors)``;
pydantic reports every violation in one pass, and each one is turned
into a ``FieldError`` with a client-facing message.

Example usage:
    result = validate_product(payload, ValidationMode.CREATE)
    if isinstance(result, Invalid):
        for error in result.errors:
            print(error.field, error.message)
    else:
        product = result.value.to_product()
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails

from pawscan.domain.entities import Ingredient, IngredientStatus, Product
from pawscan.domain.exceptions import FieldError

T = TypeVar("T")

BARCODE_REGEX = r"^[0-9]{8,14}$"
PRODUCT_ID_REGEX = (
    r"(?i)^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

NAME_MAX_LENGTH = 200
BRAND_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
IMAGE_URL_MAX_LENGTH = 2048
MIN_RATING = 0.0
MAX_RATING = 10.0

Barcode = Annotated[str, StringConstraints(pattern=BARCODE_REGEX)]
ProductId = Annotated[str, StringConstraints(pattern=PRODUCT_ID_REGEX, to_lower=True)]

_barcode_adapter = TypeAdapter(Barcode)
_product_id_adapter = TypeAdapter(ProductId)
_url_adapter = TypeAdapter(HttpUrl)


# ============================================================================
# Result Types
# ============================================================================


@dataclass(frozen=True)
class Valid(Generic[T]):
    """Successful validation carrying the normalized value."""

    value: T


@dataclass(frozen=True)
class Invalid:
    """Failed validation carrying every field error found."""

    errors: list[FieldError]


class ValidationMode(str, Enum):
    """Whether required fields must be present."""

    CREATE = "create"
    UPDATE = "update"


# ============================================================================
# Error Mapping
# ============================================================================


def format_location(location: Sequence[int | str], prefix: str | None = None) -> str:
    """Render a pydantic error location as a field path.

    ``("ingredients", 0, "status")`` becomes ``ingredients[0].status``.
    """
    path = prefix or ""
    for part in location:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def invalid_from(
    exc: PydanticValidationError,
    describe: Callable[[ErrorDetails], FieldError],
) -> Invalid:
    """Turn a pydantic validation error into an ``Invalid`` result.

    Only the first error of each field is kept.

    Args:
        exc: Error raised by ``model_validate``.
        describe: Maps one pydantic error to a field error.
    """
    errors: list[FieldError] = []
    seen: set[str] = set()
    for detail in exc.errors():
        error = describe(detail)
        if error.field not in seen:
            seen.add(error.field)
            errors.append(error)
    return Invalid(errors)


# ============================================================================
# Request Models
# ============================================================================


class IngredientRequest(BaseModel):
    """An ingredient as sent by a client, not yet attached to a product."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(..., min_length=1)
    status: IngredientStatus
    description: str = Field(..., min_length=1)
    id: str | None = Field(default=None, min_length=1)

    def to_ingredient(self) -> Ingredient:
        """Build the ingredient value object, generating an id if needed."""
        if self.id:
            return Ingredient(
                id=self.id,
                name=self.name,
                status=self.status,
                description=self.description,
            )
        return Ingredient(name=self.name, status=self.status, description=self.description)


Name = Annotated[str, Field(min_length=1, max_length=NAME_MAX_LENGTH)]
Brand = Annotated[str, Field(min_length=1, max_length=BRAND_MAX_LENGTH)]
Rating = Annotated[
    float, Field(ge=MIN_RATING, le=MAX_RATING, strict=True, allow_inf_nan=False)
]
Ingredients = Annotated[list[IngredientRequest], Field(min_length=1)]
ImageUrl = Annotated[str, Field(min_length=1, max_length=IMAGE_URL_MAX_LENGTH)]
Description = Annotated[str, Field(max_length=DESCRIPTION_MAX_LENGTH)]


class ProductRequest(BaseModel):
    """Shared rules of product request bodies. Unknown fields are ignored."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    @field_validator("image_url", check_fields=False)
    @classmethod
    def check_url(cls, value: str | None) -> str | None:
        # Stored as sent; HttpUrl would normalize it
        if value is not None:
            try:
                _url_adapter.validate_python(value)
            except PydanticValidationError as e:
                raise ValueError("not a valid http(s) URL") from e
        return value


class ProductCreateRequest(ProductRequest):
    """Request body of a product create. Null optional fields are absent."""

    name: Name
    brand: Brand
    barcode: Barcode | None = None
    rating: Rating
    ingredients: Ingredients
    image_url: ImageUrl | None = Field(default=None, alias="imageUrl")
    description: Description | None = None


class ProductUpdateRequest(ProductRequest):
    """Request body of a partial product update.

    Every field may be absent. Null clears an optional field; null for a
    required field fails validation since defaults are not validated.
    """

    name: Name = None
    brand: Brand = None
    barcode: Barcode | None = None
    rating: Rating = None
    ingredients: Ingredients = None
    image_url: ImageUrl | None = Field(default=None, alias="imageUrl")
    description: Description | None = None


# ============================================================================
# Validated Inputs
# ============================================================================


@dataclass(frozen=True)
class ProductInput:
    """A validated product payload.

    ``values`` holds only the fields present in the input, keyed by
    entity attribute name. In update mode a ``None`` value clears an
    optional field.
    """

    values: dict[str, Any] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str, default: Any = None) -> Any:
        """Get a provided field value."""
        return self.values.get(name, default)

    def to_changes(self) -> dict[str, Any]:
        """Get entity-ready field changes for an update."""
        changes = dict(self.values)
        if "ingredients" in changes:
            changes["ingredients"] = [item.to_ingredient() for item in changes["ingredients"]]
        return changes

    def to_product(self) -> Product:
        """Build a new product from a create payload."""
        return Product.create(**self.to_changes())


# ============================================================================
# Validators
# ============================================================================

_STATUS_MESSAGE = "Ingredient status must be one of: " + ", ".join(
    item.value for item in IngredientStatus
)

_INGREDIENT_MESSAGES = {
    "name": "Ingredient name is required",
    "status": _STATUS_MESSAGE,
    "description": "Ingredient description is required",
    "id": "Ingredient id must be a non-empty string",
}

_PRODUCT_MESSAGES = {
    "name": f"Product name must be between 1 and {NAME_MAX_LENGTH} characters",
    "brand": f"Brand must be between 1 and {BRAND_MAX_LENGTH} characters",
    "barcode": "Barcode must be 8-14 digits",
    "rating": "Rating must be a number between 0 and 10",
    "ingredients": "At least one ingredient is required",
    "imageUrl": "Image URL must be a valid URL",
    "description": f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters",
}


def _describe_ingredient_error(
    location: Sequence[int | str], error_type: str, prefix: str
) -> FieldError:
    path = format_location(location, prefix)
    if not location or error_type == "model_type":
        return FieldError(path, "Ingredient must be an object")
    return FieldError(path, _INGREDIENT_MESSAGES.get(str(location[0]), "Invalid value"))


def _describe_product_error(detail: ErrorDetails) -> FieldError:
    location = detail["loc"]
    if not location:
        return FieldError("body", "Request body must be a JSON object")

    key = str(location[0])
    if key == "ingredients" and len(location) > 1:
        return _describe_ingredient_error(
            location[2:], detail["type"], format_location(location[:2])
        )
    if key == "imageUrl" and detail["type"] == "string_too_long":
        return FieldError(key, f"Image URL cannot exceed {IMAGE_URL_MAX_LENGTH} characters")
    return FieldError(key, _PRODUCT_MESSAGES.get(key, "Invalid value"))


def validate_ingredient(
    value: Any, path: str = "ingredient"
) -> Valid[IngredientRequest] | Invalid:
    """Validate a single ingredient.

    Args:
        value: Raw ingredient value from a request body.
        path: Field path prefix used in error messages.

    Returns:
        Valid ingredient request or every violation found.
    """
    try:
        return Valid(IngredientRequest.model_validate(value))
    except PydanticValidationError as e:
        return invalid_from(
            e, lambda detail: _describe_ingredient_error(detail["loc"], detail["type"], path)
        )


def validate_product(value: Any, mode: ValidationMode) -> Valid[ProductInput] | Invalid:
    """Validate a product payload.

    In create mode all required fields must be present. In update mode
    every field is optional, but a present field must satisfy the same
    rule as in create mode.

    Args:
        value: Raw request body.
        mode: Create or update.

    Returns:
        Valid product input or every violation found.
    """
    try:
        if mode is ValidationMode.CREATE:
            request = ProductCreateRequest.model_validate(value)
            provided = [name for name, item in request if item is not None]
        else:
            request = ProductUpdateRequest.model_validate(value)
            provided = [name for name, _ in request if name in request.model_fields_set]
    except PydanticValidationError as e:
        return invalid_from(e, _describe_product_error)

    values = {name: getattr(request, name) for name in provided}
    return Valid(ProductInput(values=values))


def validate_barcode(value: Any) -> Valid[str] | Invalid:
    """Validate a barcode path parameter."""
    try:
        return Valid(_barcode_adapter.validate_python(value))
    except PydanticValidationError:
        return Invalid([FieldError("barcode", _PRODUCT_MESSAGES["barcode"])])


def validate_product_id(value: Any) -> Valid[str] | Invalid:
    """Validate a product id path parameter (canonical UUID form)."""
    try:
        return Valid(_product_id_adapter.validate_python(value))
    except PydanticValidationError:
        return Invalid([FieldError("id", "Invalid product ID format (must be a valid UUID)")])
