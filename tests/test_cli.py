"""Tests for the capture client CLI."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from nutriscan import cli
from nutriscan.domain.errors import ImageTooLargeError

ANALYSIS_BODY = {
    "analysis": {
        "productName": "Cola",
        "dataSource": "Open Food Facts",
        "healthScore": 3,
        "category": "unhealthy",
        "nutrients": {
            "calories": 42,
            "protein": 0,
            "carbs": 10.6,
            "fat": 0,
            "sugar": 10.6,
            "sodium": 10,
            "fiber": 0,
        },
        "riskIngredients": [
            {"name": "caramel color", "risk": "medium", "explanation": "Additive"}
        ],
        "recommendations": [],
        "aiExplanation": "High in sugar.",
        "healthierAlternatives": [{"name": "Sparkling water", "reason": "No sugar"}],
    }
}


@dataclass
class FakeApiClient:
    body: dict[str, object] = field(default_factory=lambda: ANALYSIS_BODY)
    calls: list[dict[str, object]] = field(default_factory=list)
    closed: bool = False

    async def analyze(self, **kwargs) -> dict[str, object]:  # type: ignore[no-untyped-def]
        self.calls.append(kwargs)
        return self.body

    async def close(self) -> None:
        self.closed = True


def _patch_client(monkeypatch, fake: FakeApiClient) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(
        cli.HttpxNutriScanClient, "create", classmethod(lambda cls, *args, **kwargs: fake)
    )


def test_format_analysis_success() -> None:
    text = cli.format_analysis(ANALYSIS_BODY)

    assert "Cola (Open Food Facts)" in text
    assert "Health score: 3/10 [unhealthy]" in text
    assert "sodium 10mg" in text
    assert "caramel color (medium): Additive" in text
    assert "-> Sparkling water: No sugar" in text


def test_format_analysis_renders_served_fields_only() -> None:
    body = {"analysis": {**ANALYSIS_BODY["analysis"], "extra": ["ignored"]}}

    assert cli.format_analysis(body).splitlines() == [
        "Cola (Open Food Facts)",
        "Health score: 3/10 [unhealthy]",
        "Per 100g: 42 kcal, protein 0g, carbs 10.6g, fat 0g, sugar 10.6g, sodium 10mg, fiber 0g",
        "  ! caramel color (medium): Additive",
        "  -> Sparkling water: No sugar",
        "High in sugar.",
    ]


def test_format_analysis_not_found_suggests_label() -> None:
    text = cli.format_analysis({"error": "Could not find product information.", "suggestion": "upload_label"})

    assert text.startswith("Error: Could not find product information.")
    assert "--image" in text


def test_scan_barcode(monkeypatch, capsys) -> None:  # type: ignore[no-untyped-def]
    fake = FakeApiClient()
    _patch_client(monkeypatch, fake)

    exit_code = cli.main(["scan", "--barcode", "5449000000996"])

    assert exit_code == 0
    assert fake.calls == [{"barcode": "5449000000996", "user_id": None}]
    assert fake.closed
    assert "Cola" in capsys.readouterr().out


def test_scan_error_body_exits_non_zero(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    _patch_client(monkeypatch, FakeApiClient(body={"error": "AI gateway error"}))

    assert cli.main(["scan", "--barcode", "1"]) == 1


def test_scan_image_rejects_large_file_before_upload(
    monkeypatch, tmp_path: Path, capsys
) -> None:  # type: ignore[no-untyped-def]
    fake = FakeApiClient()
    _patch_client(monkeypatch, fake)
    photo = tmp_path / "label.jpg"
    photo.write_bytes(b"\x00" * (6 * 1024 * 1024))

    exit_code = cli.main(["scan", "--image", str(photo)])

    assert exit_code == 1
    assert fake.calls == []
    assert ImageTooLargeError.message in capsys.readouterr().err


def test_load_image_guesses_mime_type(tmp_path: Path) -> None:
    photo = tmp_path / "label.png"
    photo.write_bytes(b"png")

    image = cli.load_image(photo)

    assert image.mime_type == "image/png"
    assert image.data == b"png"


def test_scan_requires_a_source() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["scan"])
