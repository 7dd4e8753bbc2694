"""Pet Food Product Catalog.

Provides validation, query parsing, the persistence gateway with its
PostgreSQL and in-memory backends, and the catalog application service.
"""

from pawscan.catalog.filters import Pagination, ProductFilter, ProductQuery, SearchQuery
from pawscan.catalog.gateway import PaginatedResult, ProductGateway
from pawscan.catalog.generator import GeneratorConfig, ProductGenerator
from pawscan.catalog.memory import InMemoryProductGateway
from pawscan.catalog.repository import SqlProductGateway
from pawscan.catalog.service import CatalogService
from pawscan.catalog.validation import Invalid, ProductInput, Valid, ValidationMode

__all__ = [
    # Validation
    "Invalid",
    "ProductInput",
    "Valid",
    "ValidationMode",
    # Queries
    "Pagination",
    "ProductFilter",
    "ProductQuery",
    "SearchQuery",
    # Gateways
    "InMemoryProductGateway",
    "PaginatedResult",
    "ProductGateway",
    "SqlProductGateway",
    # Generator
    "GeneratorConfig",
    "ProductGenerator",
    # Service
    "CatalogService",
]
