"""Nutrition label extraction using a vision-capable model."""

import logging
from dataclasses import dataclass

from nutriscan.adapters.openai_chat_client import ChatCompletionClient
from nutriscan.domain.errors import (
    MAX_IMAGE_BYTES,
    ImageTooLargeError,
    InvalidImageError,
)
from nutriscan.domain.nutrition import SOURCE_LABEL_OCR, ImagePayload, NutritionRecord
from nutriscan.services.json_extraction import extract_json_object
from nutriscan.services.products import normalize_product

_logger = logging.getLogger(__name__)

VISION_PROMPT = """Analyze this nutrition label image and extract:
1. Product name
2. Nutrition facts per 100g (calories, protein, carbs, fat, sugar, sodium, fiber)
3. Complete ingredients list

Return ONLY a JSON object with this exact structure:
{
  "product_name": "string",
  "nutriments": {
    "energy-kcal_100g": number,
    "proteins_100g": number,
    "carbohydrates_100g": number,
    "fat_100g": number,
    "sugars_100g": number,
    "sodium_100g": number,
    "fiber_100g": number
  },
  "ingredients_text": "comma separated ingredients"
}"""


def validate_image(image: ImagePayload) -> None:
    """Reject non-image or oversized payloads before any network call."""
    if not image.mime_type.lower().startswith("image/"):
        raise InvalidImageError
    if image.size > MAX_IMAGE_BYTES:
        raise ImageTooLargeError
    if image.size == 0:
        raise InvalidImageError("The uploaded image is empty.")


@dataclass
class LabelExtractor:
    """Extract nutrition data from a label photo."""

    client: ChatCompletionClient
    model: str

    async def extract(self, image: ImagePayload) -> NutritionRecord:
        """Return normalized nutrition data read from the image."""
        validate_image(image)
        content = await self.client.complete(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {"url": image.to_data_url()},
                        },
                    ],
                }
            ],
        )
        payload = extract_json_object(content)
        _logger.info("Extracted label for %s", payload.get("product_name"))
        return normalize_product(
            payload,
            data_source=SOURCE_LABEL_OCR,
            barcode=None,
            default_name="Scanned Product",
        )
