"""Sample pet food catalog generator with deterministic seeding.

Generates create payloads in the same shape API clients send, so
generated products go through regular validation before they are
stored. The same seed always yields the same catalog.
"""

import hashlib
import random
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pawscan.domain.entities import IngredientStatus

# ============================================================================
# Constants
# ============================================================================

# Synthetic brand names (fictional companies)
BRANDS = [
    "PetCo Naturals",
    "Happy Paws",
    "Wild Trail",
    "Purrfect Bowl",
    "Barkley Farms",
    "Nordic Hound",
    "Whisker Kitchen",
    "Golden Meadow",
]

# Product name templates by animal
PRODUCT_TEMPLATES: dict[str, list[str]] = {
    "dog": [
        "{adj} Adult Dog Food with {protein}",
        "{adj} Puppy Formula {protein} & Rice",
        "Grain-Free {protein} Recipe for Dogs",
        "{adj} Senior Dog {protein} Stew",
    ],
    "cat": [
        "{adj} Indoor Cat {protein} Recipe",
        "{adj} Kitten Formula with {protein}",
        "Grain-Free {protein} Pate for Cats",
        "{adj} Hairball Control {protein}",
    ],
}

ADJECTIVES = [
    "Premium", "Classic", "Wholesome", "Original", "Hearty",
    "Natural", "Complete", "Essential", "Gourmet", "Active",
]

PROTEINS = ["Chicken", "Salmon", "Lamb", "Turkey", "Beef", "Duck", "Whitefish"]

# (name, status, description)
INGREDIENTS: list[tuple[str, IngredientStatus, str]] = [
    ("Deboned Chicken", IngredientStatus.EXCELLENT, "High-quality animal protein"),
    ("Salmon", IngredientStatus.EXCELLENT, "Protein rich in omega-3 fatty acids"),
    ("Lamb Meal", IngredientStatus.GOOD, "Concentrated protein source"),
    ("Sweet Potato", IngredientStatus.GOOD, "Digestible complex carbohydrate"),
    ("Brown Rice", IngredientStatus.GOOD, "Whole grain energy source"),
    ("Pea Protein", IngredientStatus.FAIR, "Plant protein that inflates protein totals"),
    ("Corn Gluten Meal", IngredientStatus.POOR, "Low-value plant protein filler"),
    ("Chicken By-Product Meal", IngredientStatus.FAIR, "Variable-quality rendered protein"),
    ("Blueberries", IngredientStatus.GOOD, "Natural source of antioxidants"),
    ("Flaxseed", IngredientStatus.GOOD, "Source of fiber and omega-3"),
    ("Beet Pulp", IngredientStatus.FAIR, "Fiber source with little nutrition"),
    ("Artificial Colors", IngredientStatus.POOR, "Cosmetic additive with no nutritional value"),
    ("BHA", IngredientStatus.POOR, "Synthetic preservative"),
    ("Mixed Tocopherols", IngredientStatus.EXCELLENT, "Natural vitamin E preservative"),
    ("Taurine", IngredientStatus.EXCELLENT, "Essential amino acid for heart health"),
]

# Starting score by ingredient status
STATUS_SCORES: dict[IngredientStatus, float] = {
    IngredientStatus.EXCELLENT: 10.0,
    IngredientStatus.GOOD: 7.5,
    IngredientStatus.FAIR: 5.0,
    IngredientStatus.POOR: 2.0,
}


# ============================================================================
# Generator Configuration
# ============================================================================


@dataclass
class GeneratorConfig:
    """Configuration for product generation.

    Attributes:
        seed: Random seed for reproducibility.
        count: Number of products to generate.
        min_ingredients: Fewest ingredients per product.
        max_ingredients: Most ingredients per product.
        barcode_ratio: Share of products that get a barcode.
    """

    seed: int = 42
    count: int = 50
    min_ingredients: int = 3
    max_ingredients: int = 7
    barcode_ratio: float = 0.8


def ean13_check_digit(digits: str) -> str:
    """Compute the EAN-13 check digit for 12 leading digits.

    Args:
        digits: The first 12 digits of the barcode.

    Returns:
        The check digit as a single character.
    """
    total = sum(int(digit) * (3 if index % 2 else 1) for index, digit in enumerate(digits))
    return str((10 - total % 10) % 10)


# ============================================================================
# Product Generator
# ============================================================================


class ProductGenerator:
    """Generates pet food product payloads with deterministic seeding.

    Example usage:
        generator = ProductGenerator(GeneratorConfig(count=10))
        for payload in generator.generate():
            await service.create_product(payload)
    """

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config

    def _deterministic_seed(self, *args: str | int) -> int:
        data = "|".join(str(a) for a in args)
        hash_bytes = hashlib.md5(data.encode()).digest()
        return int.from_bytes(hash_bytes[:4], "big")

    def _generate_barcode(self, index: int) -> str:
        # Index in the body keeps barcodes unique within one catalog
        body = f"20{self.config.seed % 1000:03d}{index:07d}"
        return body + ean13_check_digit(body)

    def _generate_image_url(self, name: str, brand: str) -> str:
        seed = self._deterministic_seed(name, brand)
        return f"https://picsum.photos/seed/{seed}/400/400"

    def _generate_ingredients(self, rng: random.Random, protein: str) -> list[dict[str, str]]:
        count = rng.randint(self.config.min_ingredients, self.config.max_ingredients)
        picked = rng.sample(INGREDIENTS, min(count, len(INGREDIENTS)))
        ingredients = [
            {
                "name": protein,
                "status": IngredientStatus.EXCELLENT.value,
                "description": f"Named {protein.lower()} as the first ingredient",
            }
        ]
        for name, status, description in picked:
            if name == protein:
                continue
            ingredients.append(
                {"name": name, "status": status.value, "description": description}
            )
        return ingredients

    def _rate(self, rng: random.Random, ingredients: list[dict[str, str]]) -> float:
        scores = [STATUS_SCORES[IngredientStatus(item["status"])] for item in ingredients]
        base = sum(scores) / len(scores)
        return round(min(10.0, max(0.0, base + rng.uniform(-0.5, 0.5))), 1)

    def _generate_product(self, index: int) -> dict[str, Any]:
        rng = random.Random(self._deterministic_seed(self.config.seed, index))

        animal = rng.choice(sorted(PRODUCT_TEMPLATES))
        brand = rng.choice(BRANDS)
        protein = rng.choice(PROTEINS)
        template = rng.choice(PRODUCT_TEMPLATES[animal])
        name = template.format(adj=rng.choice(ADJECTIVES), protein=protein)

        ingredients = self._generate_ingredients(rng, protein)
        payload: dict[str, Any] = {
            "name": name,
            "brand": brand,
            "rating": self._rate(rng, ingredients),
            "ingredients": ingredients,
            "imageUrl": self._generate_image_url(name, brand),
            "description": f"{name} by {brand}, made for {animal}s of all sizes.",
        }
        if rng.random() < self.config.barcode_ratio:
            payload["barcode"] = self._generate_barcode(index)
        return payload

    def generate(self) -> Iterator[dict[str, Any]]:
        """Generate product payloads.

        Names are made unique per brand by appending a formula number
        on collision.

        Yields:
            Create payloads in API body shape.
        """
        seen: set[tuple[str, str]] = set()
        for index in range(self.config.count):
            payload = self._generate_product(index)
            key = (payload["name"], payload["brand"])
            formula = 2
            while key in seen:
                key = (f"{payload['name']} No. {formula}", payload["brand"])
                formula += 1
            payload["name"] = key[0]
            seen.add(key)
            yield payload
