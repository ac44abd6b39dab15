"""Tests for label extraction."""

import asyncio

import pytest

from nutriscan.domain.errors import (
    AIContractError,
    ImageTooLargeError,
    InvalidImageError,
)
from nutriscan.domain.nutrition import SOURCE_LABEL_OCR, ImagePayload
from nutriscan.services.labels import LabelExtractor, validate_image
from tests.conftest import FakeChatClient

LABEL_REPLY = """```json
{
  "product_name": "Greek Yogurt",
  "nutriments": {
    "energy-kcal_100g": 97,
    "proteins_100g": 9,
    "carbohydrates_100g": 3.6,
    "fat_100g": 5,
    "sugars_100g": 3.6,
    "sodium_100g": 0.036,
    "fiber_100g": 0
  },
  "ingredients_text": "Milk, cream, live cultures"
}
```"""


def test_oversized_jpeg_is_rejected_before_any_call() -> None:
    chat_client = FakeChatClient()
    extractor = LabelExtractor(client=chat_client, model="vision-model")
    image = ImagePayload(mime_type="image/jpeg", data=b"\xff" * (6 * 1024 * 1024))

    with pytest.raises(ImageTooLargeError) as exc_info:
        asyncio.run(extractor.extract(image))

    assert exc_info.value.message == "Please upload an image smaller than 5MB."
    assert chat_client.calls == []


def test_non_image_is_rejected() -> None:
    with pytest.raises(InvalidImageError) as exc_info:
        validate_image(ImagePayload(mime_type="application/pdf", data=b"%PDF"))

    assert exc_info.value.message == "Please upload an image file."


def test_empty_image_is_rejected() -> None:
    with pytest.raises(InvalidImageError):
        validate_image(ImagePayload(mime_type="image/png", data=b""))


def test_png_under_limit_is_sent_as_data_url() -> None:
    chat_client = FakeChatClient(replies=[LABEL_REPLY])
    extractor = LabelExtractor(client=chat_client, model="vision-model")
    image = ImagePayload(mime_type="image/png", data=b"\x89PNG" + b"\x00" * (1024 * 1024))

    record = asyncio.run(extractor.extract(image))

    assert record.product_name == "Greek Yogurt"
    assert record.data_source == SOURCE_LABEL_OCR
    assert record.nutrients.sodium == pytest.approx(36.0)
    assert record.ingredients == ("Milk", "cream", "live cultures")
    parts = chat_client.calls[0]["messages"][0]["content"]
    assert parts[0]["type"] == "text"
    assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")
    assert chat_client.calls[0]["model"] == "vision-model"


def test_missing_name_uses_scanned_product() -> None:
    chat_client = FakeChatClient(replies=['{"nutriments": {}}'])
    extractor = LabelExtractor(client=chat_client, model="vision-model")

    record = asyncio.run(
        extractor.extract(ImagePayload(mime_type="image/jpeg", data=b"jpeg"))
    )

    assert record.product_name == "Scanned Product"
    assert record.ingredients == ()


def test_unparseable_reply_raises_contract_error() -> None:
    chat_client = FakeChatClient(replies=["I can't read this label."])
    extractor = LabelExtractor(client=chat_client, model="vision-model")

    with pytest.raises(AIContractError):
        asyncio.run(extractor.extract(ImagePayload(mime_type="image/jpeg", data=b"jpeg")))

    assert len(chat_client.calls) == 1


def test_image_payload_data_url_parsing() -> None:
    image = ImagePayload.from_data_url("data:image/jpeg;base64,ZmFrZQ==")

    assert image == ImagePayload(mime_type="image/jpeg", data=b"fake")
    assert image.to_data_url() == "data:image/jpeg;base64,ZmFrZQ=="

    with pytest.raises(InvalidImageError):
        ImagePayload.from_data_url("not-a-data-url")
