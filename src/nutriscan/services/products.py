"""Barcode product resolution with an ordered fallback chain."""

import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutriscan.adapters.openai_chat_client import ChatCompletionClient
from nutriscan.adapters.openfoodfacts_client import ProductDatabaseClient
from nutriscan.config import DEFAULT_REGIONS
from nutriscan.domain.errors import ProductNotFoundError
from nutriscan.domain.nutrition import (
    SOURCE_AI_SEARCH,
    SOURCE_OPEN_FOOD_FACTS,
    Nutrients,
    NutritionRecord,
    materialize_ingredients,
)
from nutriscan.services.json_extraction import extract_json_object

_logger = logging.getLogger(__name__)

_NUTRIMENT_KEYS = {
    "calories": "energy-kcal_100g",
    "protein": "proteins_100g",
    "carbs": "carbohydrates_100g",
    "fat": "fat_100g",
    "sugar": "sugars_100g",
    "sodium": "sodium_100g",
    "fiber": "fiber_100g",
}

SEARCH_SYSTEM_PROMPT = (
    "You are a product research assistant. You have knowledge of many consumer "
    "products, their barcodes, nutrition information, and ingredients. Provide "
    "accurate information when you know it, and clearly indicate when "
    "information is estimated or uncertain."
)


def build_search_prompt(barcode: str) -> str:
    """Prompt asking the model to identify a product by barcode."""
    return f"""Search for a product with barcode/UPC: {barcode}

Find information about this product including:
1. Product name and brand
2. Nutrition facts per 100g (calories, protein, carbs, fat, sugar, sodium, fiber)
3. Ingredients list

Return ONLY a valid JSON object with this structure:
{{
  "product_name": "Brand - Product Name",
  "nutriments": {{
    "energy-kcal_100g": number or null,
    "proteins_100g": number or null,
    "carbohydrates_100g": number or null,
    "fat_100g": number or null,
    "sugars_100g": number or null,
    "sodium_100g": number or null (in grams),
    "fiber_100g": number or null
  }},
  "ingredients_text": "comma separated ingredients or 'Unknown' if not found"
}}

If you cannot find the product, return:
{{
  "product_name": null,
  "error": "Product not found"
}}"""


@dataclass
class ProductResolver:
    """Resolve a barcode to nutrition data, trying each source in order."""

    database: ProductDatabaseClient
    search_client: ChatCompletionClient
    model: str
    regions: tuple[str, ...] = DEFAULT_REGIONS

    async def resolve(self, barcode: str) -> NutritionRecord:
        """Return the first hit; raise ProductNotFoundError when all miss."""
        for label, lookup, source in self._strategies(barcode):
            try:
                product = await lookup()
            except Exception as exc:
                _logger.warning(
                    "Product lookup %s failed for %s: %s", label, barcode, exc
                )
                continue
            if product is None:
                _logger.info("Product lookup %s missed for %s", label, barcode)
                continue
            _logger.info(
                "Found product via %s: %s", label, product.get("product_name")
            )
            return normalize_product(
                product,
                data_source=source,
                barcode=barcode,
                default_name="Unknown Product",
            )
        raise ProductNotFoundError

    def _strategies(
        self, barcode: str
    ) -> list[
        tuple[str, Callable[[], Awaitable[dict[str, object] | None]], str]
    ]:
        strategies: list[
            tuple[str, Callable[[], Awaitable[dict[str, object] | None]], str]
        ] = [
            (
                "openfoodfacts",
                lambda: self._lookup_database(barcode, None),
                SOURCE_OPEN_FOOD_FACTS,
            )
        ]
        for region in self.regions:
            strategies.append(
                (
                    f"openfoodfacts:{region}",
                    lambda region=region: self._lookup_database(barcode, region),
                    SOURCE_OPEN_FOOD_FACTS,
                )
            )
        strategies.append(("ai_search", lambda: self._search(barcode), SOURCE_AI_SEARCH))
        return strategies

    async def _lookup_database(
        self, barcode: str, region: str | None
    ) -> dict[str, object] | None:
        payload = await self.database.fetch_product(barcode, region=region)
        product = payload.get("product")
        if payload.get("status") == 1 and isinstance(product, dict) and product:
            return product
        return None

    async def _search(self, barcode: str) -> dict[str, object] | None:
        content = await self.search_client.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": build_search_prompt(barcode)},
            ],
        )
        parsed = extract_json_object(content)
        if not parsed.get("product_name") or parsed.get("error"):
            return None
        return parsed


def normalize_product(
    product: dict[str, object],
    *,
    data_source: str,
    barcode: str | None,
    default_name: str,
) -> NutritionRecord:
    """Normalize raw product data into a NutritionRecord."""
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    values = {
        field: _as_float(nutriments.get(key)) for field, key in _NUTRIMENT_KEYS.items()
    }
    values["sodium"] = values["sodium"] * 1000
    ingredients_text = _ingredients_text(product)
    name = product.get("product_name")
    return NutritionRecord(
        product_name=str(name).strip() if name else default_name,
        nutrients=Nutrients(**values),
        ingredients=materialize_ingredients(ingredients_text),
        data_source=data_source,
        barcode=barcode,
        ingredients_text=ingredients_text,
    )


def _ingredients_text(product: dict[str, object]) -> str | None:
    text = product.get("ingredients_text")
    if isinstance(text, str) and text.strip():
        return text
    ingredients = product.get("ingredients")
    if isinstance(ingredients, list):
        parts = [
            str(item.get("text"))
            for item in ingredients
            if isinstance(item, dict) and item.get("text")
        ]
        if parts:
            return ", ".join(parts)
    return None


def _as_float(value: object) -> float:
    """Convert a nutrient value to float; missing or invalid values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
