"""Live barcode scanning with a confirmation window."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from nutriscan.domain.scanning import DecodeCandidate, SubmitState

_logger = logging.getLogger(__name__)

DEFAULT_CONFIRM_DELAY_SECONDS = 1.5

ResultT = TypeVar("ResultT")


class FrameStream(Protocol):
    """An open camera stream."""

    def read(self) -> object | None:
        """Return the next frame, or None when no frame is ready."""


class CameraSource(Protocol):
    """Interface for acquiring a camera stream."""

    def open(self) -> AbstractContextManager[FrameStream]:
        """Open the camera; the context releases it on exit."""


class SymbolDecoder(Protocol):
    """Interface for decoding a barcode symbol from a frame."""

    def decode(self, frame: object) -> str | None:
        """Return the decoded text, or None when nothing was found."""


@dataclass
class BarcodeConfirmation:
    """One-shot latch between a decoded candidate and its submission.

    The timer path (``poll``) and the manual path (``confirm``) both claim
    the candidate through ``_claim``, which only succeeds from CONFIRMING.
    """

    confirm_delay_seconds: float = DEFAULT_CONFIRM_DELAY_SECONDS
    candidate: DecodeCandidate | None = None
    state: SubmitState = SubmitState.IDLE

    def observe(self, text: str, now: float) -> bool:
        """Record a decode; return True when it starts a new window."""
        text = text.strip()
        if not text or self.state is SubmitState.SUBMITTED:
            return False
        if self.state is SubmitState.CONFIRMING and self.candidate is not None:
            if self.candidate.text == text:
                return False
            _logger.info(
                "Decode mismatch (%s != %s); restarting window",
                self.candidate.text,
                text,
            )
        self.candidate = DecodeCandidate(text=text, first_seen_at=now)
        self.state = SubmitState.CONFIRMING
        return True

    def poll(self, now: float) -> str | None:
        """Return the barcode once its confirmation window has elapsed."""
        if self.state is not SubmitState.CONFIRMING or self.candidate is None:
            return None
        if now - self.candidate.first_seen_at < self.confirm_delay_seconds:
            return None
        return self._claim()

    def confirm(self) -> str | None:
        """Submit the active candidate before the deadline."""
        return self._claim()

    def rescan(self) -> None:
        """Drop the candidate and re-arm detection."""
        self.candidate = None
        self.state = SubmitState.IDLE

    def _claim(self) -> str | None:
        if self.state is not SubmitState.CONFIRMING or self.candidate is None:
            return None
        self.state = SubmitState.SUBMITTED
        return self.candidate.text


@dataclass
class BarcodeScanner(Generic[ResultT]):
    """Drive a camera, a decoder and the confirmation latch."""

    camera: CameraSource
    decoder: SymbolDecoder
    submit: Callable[[str], Awaitable[ResultT]]
    confirmation: BarcodeConfirmation = field(default_factory=BarcodeConfirmation)
    clock: Callable[[], float] = time.monotonic
    idle_sleep_seconds: float = 0.01
    busy: bool = False
    _closed: bool = False

    async def run(self) -> ResultT | None:
        """Scan until one barcode is submitted or the scanner is closed."""
        self._closed = False
        self.confirmation.rescan()
        with self.camera.open() as stream:
            while not self._closed:
                frame = await asyncio.to_thread(stream.read)
                result = await self.process_frame(frame)
                if result is not None:
                    return result
                if frame is None:
                    await asyncio.sleep(self.idle_sleep_seconds)
        return None

    async def process_frame(self, frame: object | None) -> ResultT | None:
        """Decode one frame and submit when the latch releases a barcode."""
        now = self.clock()
        if frame is not None and not self.busy:
            text = await asyncio.to_thread(self.decoder.decode, frame)
            if text and self.confirmation.observe(text, now):
                _logger.info("Detected barcode candidate %s", text)
        barcode = self.confirmation.poll(now)
        if barcode is None:
            return None
        return await self._submit(barcode)

    async def confirm(self) -> ResultT | None:
        """Manually confirm the active candidate."""
        barcode = self.confirmation.confirm()
        if barcode is None:
            return None
        return await self._submit(barcode)

    def rescan(self) -> None:
        self.confirmation.rescan()

    def close(self) -> None:
        self._closed = True

    async def _submit(self, barcode: str) -> ResultT:
        self.busy = True
        try:
            _logger.info("Submitting barcode %s", barcode)
            return await self.submit(barcode)
        finally:
            self.busy = False
