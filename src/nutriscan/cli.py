"""Command-line capture client for the NutriScan API."""

import argparse
import asyncio
import logging
import mimetypes
import sys
from collections.abc import Sequence
from pathlib import Path
from uuid import UUID

from nutriscan.adapters.nutriscan_api_client import HttpxNutriScanClient
from nutriscan.adapters.opencv_camera import OpenCvCamera
from nutriscan.adapters.pyzbar_decoder import PyzbarSymbolDecoder
from nutriscan.app_logging import configure_logging
from nutriscan.config import ClientSettings
from nutriscan.domain.chat import ChatMessage, ChatRole
from nutriscan.domain.errors import NutriScanError
from nutriscan.domain.nutrition import ImagePayload
from nutriscan.services.chat_stream import Transcript
from nutriscan.services.coach_chat import CoachConversation
from nutriscan.services.labels import validate_image
from nutriscan.services.scanner import BarcodeConfirmation, BarcodeScanner

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nutriscan", description="NutriScan capture client")
    parser.add_argument("--api-url", help="NutriScan API base URL")
    parser.add_argument("--user-id", type=UUID, help="Signed-in user id")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    scan = commands.add_parser("scan", help="Analyze a product")
    source = scan.add_mutually_exclusive_group(required=True)
    source.add_argument("--barcode", help="Barcode text to look up")
    source.add_argument("--image", type=Path, help="Photo of a nutrition label")
    source.add_argument("--camera", action="store_true", help="Scan a barcode live")
    source.add_argument(
        "--label-camera", action="store_true", help="Capture a label photo from the camera"
    )
    scan.add_argument("--camera-index", type=int, help="Camera device index")

    commands.add_parser("coach", help="Chat with NutriCoach")
    return parser


def load_image(path: Path) -> ImagePayload:
    """Read an image file, guessing its MIME type from the extension."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return ImagePayload(
        mime_type=mime_type or "application/octet-stream", data=path.read_bytes()
    )


def format_analysis(body: dict[str, object]) -> str:
    """Render an analyze-nutrition response for the terminal."""
    if "error" in body:
        lines = [f"Error: {body['error']}"]
        if body.get("suggestion") == "upload_label":
            lines.append("Tip: run `nutriscan scan --image <label photo>` instead.")
        return "\n".join(lines)
    analysis = body.get("analysis")
    if not isinstance(analysis, dict):
        return "Error: Unexpected response from server"
    lines = [
        f"{analysis.get('productName')} ({analysis.get('dataSource')})",
        f"Health score: {analysis.get('healthScore')}/10 [{analysis.get('category')}]",
    ]
    nutrients = analysis.get("nutrients") or {}
    if nutrients:
        lines.append(
            "Per 100g: "
            f"{nutrients.get('calories', 0):g} kcal, "
            f"protein {nutrients.get('protein', 0):g}g, "
            f"carbs {nutrients.get('carbs', 0):g}g, "
            f"fat {nutrients.get('fat', 0):g}g, "
            f"sugar {nutrients.get('sugar', 0):g}g, "
            f"sodium {nutrients.get('sodium', 0):g}mg, "
            f"fiber {nutrients.get('fiber', 0):g}g"
        )
    for risk in analysis.get("riskIngredients") or []:
        lines.append(f"  ! {risk.get('name')} ({risk.get('risk')}): {risk.get('explanation')}")
    for alternative in analysis.get("healthierAlternatives") or []:
        lines.append(f"  -> {alternative.get('name')}: {alternative.get('reason')}")
    lines.append(str(analysis.get("aiExplanation", "")))
    return "\n".join(lines)


async def run_scan(
    args: argparse.Namespace, settings: ClientSettings, client: HttpxNutriScanClient
) -> int:
    if args.barcode:
        body = await client.analyze(barcode=args.barcode, user_id=args.user_id)
    elif args.image is not None:
        image = load_image(args.image)
        validate_image(image)
        body = await client.analyze(image=image, user_id=args.user_id)
    else:
        index = args.camera_index if args.camera_index is not None else settings.camera_index
        camera = OpenCvCamera(index=index)
        if args.label_camera:
            image = await asyncio.to_thread(camera.capture_still)
            validate_image(image)
            body = await client.analyze(image=image, user_id=args.user_id)
        else:
            scanner = BarcodeScanner(
                camera=camera,
                decoder=PyzbarSymbolDecoder(),
                submit=lambda barcode: client.analyze(barcode=barcode, user_id=args.user_id),
                confirmation=BarcodeConfirmation(settings.confirm_delay_seconds),
            )
            print("Point the camera at a barcode. Press Ctrl+C to stop.")
            result = await scanner.run()
            if result is None:
                return 1
            body = result
    print(format_analysis(body))
    return 1 if "error" in body else 0


async def run_coach(args: argparse.Namespace, client: HttpxNutriScanClient) -> int:
    conversation = CoachConversation(client=client)
    if args.user_id is not None:
        history = await client.load_history(args.user_id)
        conversation.conversation_id = UUID(str(history["conversationId"]))
        conversation.transcript = Transcript(
            messages=[
                ChatMessage(role=ChatRole(item["role"]), content=item["content"])
                for item in history.get("messages", [])
            ]
        )
    for message in conversation.transcript.messages:
        print(f"{message.role.value}: {message.content}")
    while True:
        try:
            text = await asyncio.to_thread(input, "you: ")
        except EOFError:
            return 0
        if text.strip().lower() in EXIT_COMMANDS:
            return 0
        print("assistant: ", end="", flush=True)
        try:
            await conversation.send(
                text, on_delta=lambda delta: print(delta, end="", flush=True)
            )
        except NutriScanError as exc:
            print(f"\n{exc}")
            continue
        print()


async def run(args: argparse.Namespace) -> int:
    settings = ClientSettings()
    client = HttpxNutriScanClient.create(
        args.api_url or settings.api_url,
        api_key=settings.api_key,
        timeout_seconds=settings.http_timeout_seconds,
    )
    try:
        if args.command == "scan":
            return await run_scan(args, settings, client)
        return await run_coach(args, client)
    finally:
        await client.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    try:
        return asyncio.run(run(args))
    except NutriScanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
