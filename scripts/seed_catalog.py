#!/usr/bin/env python3
"""Seed product catalog script.

Generates a deterministic sample pet food catalog and stores it
through the configured product gateway.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --count 200 --seed 7
    python scripts/seed_catalog.py --clear
"""

import argparse
import asyncio

from pawscan.catalog.factory import POSTGRES_BACKEND, get_product_gateway
from pawscan.catalog.generator import GeneratorConfig
from pawscan.catalog.service import CatalogService
from pawscan.infrastructure.app_logging import configure_logging
from pawscan.infrastructure.config import settings
from pawscan.infrastructure.database import create_tables, engine


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the pet food product catalog",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=50,
        help="Number of products to generate (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducible catalogs (default: 42)",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing products before seeding",
    )

    args = parser.parse_args()
    configure_logging(level=settings.log_level, json_logs=False)

    print("=" * 60)
    print("Paw Scan Catalog Seeder")
    print("=" * 60)
    print(f"Backend: {settings.storage_backend}")
    print(f"Count: {args.count}  Seed: {args.seed}")
    print(f"Clear existing: {args.clear}")
    print()

    if settings.storage_backend == POSTGRES_BACKEND:
        print("Creating database tables...")
        await create_tables()
        print("Tables ready.")
        print()

    service = CatalogService(get_product_gateway())
    try:
        result = await service.seed_catalog(
            GeneratorConfig(seed=args.seed, count=args.count),
            clear_existing=args.clear,
        )
    finally:
        await engine.dispose()

    print(f"  ✓ Deleted: {result['deleted']} existing products")
    print(f"  ✓ Created: {result['products_created']} products")
    print(f"  ✓ Skipped: {result['products_skipped']} conflicting products")
    print(f"  ✓ Brands: {result['brands_used']}")
    print()
    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
