"""Product API endpoints.

Provides listing, search, lookup and CRUD endpoints for the pet food
product catalog. Request input is passed to the catalog service as
received; validation and error shaping happen there and in the
application's exception handlers.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from pawscan.api.schemas import (
    ApiResponse,
    PaginationSchema,
    ProductPageSchema,
    ProductSchema,
)
from pawscan.catalog.factory import get_product_gateway
from pawscan.catalog.gateway import ProductGateway
from pawscan.catalog.service import CatalogService
from pawscan.infrastructure.config import settings

router = APIRouter(prefix="/products", tags=["Products"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ApiResponse[None], "description": "Validation failed"},
    404: {"model": ApiResponse[None], "description": "Product not found"},
    409: {"model": ApiResponse[None], "description": "Uniqueness conflict"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_catalog_service(
    gateway: Annotated[ProductGateway, Depends(get_product_gateway)],
) -> CatalogService:
    """Get catalog service bound to the process-wide gateway."""
    return CatalogService(gateway, search_default_limit=settings.search_default_limit)


Service = Annotated[CatalogService, Depends(get_catalog_service)]
Page = Annotated[str | None, Query(description="Page number (1-based)")]
Limit = Annotated[str | None, Query(description="Items per page (1-100)")]


def page_response(result: Any) -> ApiResponse[ProductPageSchema]:
    """Wrap a paginated result in the envelope."""
    page = ProductPageSchema.from_result(result)
    return ApiResponse(data=page, pagination=PaginationSchema.from_result(result))


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ApiResponse[ProductPageSchema],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400]},
    summary="List products",
    description="List products with optional text search, brand and rating filters.",
)
async def list_products(
    service: Service,
    page: Page = None,
    limit: Limit = None,
    search: Annotated[str | None, Query(description="Full-text search term")] = None,
    brand: Annotated[str | None, Query(description="Brand substring")] = None,
    min_rating: Annotated[str | None, Query(alias="minRating")] = None,
    max_rating: Annotated[str | None, Query(alias="maxRating")] = None,
) -> ApiResponse[ProductPageSchema]:
    """List products.

    Results are newest first, or ranked by relevance when ``search``
    is given.
    """
    result = await service.list_products(
        {
            "page": page,
            "limit": limit,
            "search": search,
            "brand": brand,
            "minRating": min_rating,
            "maxRating": max_rating,
        }
    )
    return page_response(result)


@router.get(
    "/search",
    response_model=ApiResponse[list[ProductSchema]],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400]},
    summary="Search products",
    description="Relevance-ranked full-text search, best match first.",
)
async def search_products(
    service: Service,
    q: Annotated[str | None, Query(description="Search term")] = None,
    limit: Limit = None,
) -> ApiResponse[list[ProductSchema]]:
    """Search products by text."""
    products = await service.search_products({"q": q, "limit": limit})
    return ApiResponse(data=[ProductSchema.from_entity(product) for product in products])


@router.get(
    "/brands",
    response_model=ApiResponse[list[str]],
    response_model_exclude_none=True,
    summary="List brands",
    description="Get all distinct brands in ascending order.",
)
async def list_brands(service: Service) -> ApiResponse[list[str]]:
    """List brands."""
    return ApiResponse(data=await service.list_brands())


@router.get(
    "/brand/{brand}",
    response_model=ApiResponse[ProductPageSchema],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400]},
    summary="List products by brand",
    description="List products of one brand (case-insensitive exact match).",
)
async def list_products_by_brand(
    brand: str,
    service: Service,
    page: Page = None,
    limit: Limit = None,
) -> ApiResponse[ProductPageSchema]:
    """List products of one brand."""
    result = await service.list_products_by_brand(brand, {"page": page, "limit": limit})
    return page_response(result)


@router.get(
    "/id/{product_id}",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    summary="Get product by ID",
)
async def get_product(product_id: str, service: Service) -> ApiResponse[ProductSchema]:
    """Get product by ID."""
    product = await service.get_product(product_id)
    return ApiResponse(data=ProductSchema.from_entity(product))


@router.post(
    "",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={400: ERROR_RESPONSES[400], 409: ERROR_RESPONSES[409]},
    summary="Create product",
    description="Create a product. Name and brand together, and barcode, must be unique.",
)
async def create_product(
    service: Service,
    payload: Annotated[Any, Body()],
) -> ApiResponse[ProductSchema]:
    """Create a product.

    All validation errors in the body are returned together.
    """
    product = await service.create_product(payload)
    return ApiResponse(
        data=ProductSchema.from_entity(product),
        message="Product created successfully",
    )


@router.get(
    "/{barcode}",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    summary="Get product by barcode",
    description="Look up a product by its 8-14 digit barcode.",
)
async def get_product_by_barcode(barcode: str, service: Service) -> ApiResponse[ProductSchema]:
    """Get product by barcode."""
    product = await service.get_product_by_barcode(barcode)
    return ApiResponse(data=ProductSchema.from_entity(product))


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Update product",
    description="Partially update a product; only fields in the body change.",
)
async def update_product(
    product_id: str,
    service: Service,
    payload: Annotated[Any, Body()],
) -> ApiResponse[ProductSchema]:
    """Update a product."""
    product = await service.update_product(product_id, payload)
    return ApiResponse(
        data=ProductSchema.from_entity(product),
        message="Product updated successfully",
    )


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    summary="Delete product",
)
async def delete_product(product_id: str, service: Service) -> ApiResponse[None]:
    """Delete a product permanently."""
    await service.delete_product(product_id)
    return ApiResponse(message="Product deleted successfully")
