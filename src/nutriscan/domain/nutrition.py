"""Nutrition domain models."""

import base64
import binascii
from dataclasses import dataclass

from nutriscan.domain.errors import InvalidImageError

SOURCE_OPEN_FOOD_FACTS = "Open Food Facts"
SOURCE_AI_SEARCH = "AI Search"
SOURCE_LABEL_OCR = "Label OCR"


@dataclass(frozen=True)
class Nutrients:
    """Per-100g nutrient values; sodium is in milligrams."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    fiber: float = 0.0


@dataclass(frozen=True)
class NutritionRecord:
    """Normalized nutrition data for one scanned product."""

    product_name: str
    nutrients: Nutrients
    ingredients: tuple[str, ...]
    data_source: str
    barcode: str | None = None
    ingredients_text: str | None = None


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes with their declared MIME type."""

    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImagePayload":
        """Parse a base64 data URL as produced by browsers."""
        header, sep, encoded = data_url.partition(",")
        if not sep or not header.startswith("data:") or ";base64" not in header:
            raise InvalidImageError
        mime_type = header[len("data:") :].split(";", maxsplit=1)[0].strip()
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImageError from exc
        return cls(mime_type=mime_type, data=data)


def materialize_ingredients(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated ingredient string, keeping order."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())
