"""Barcode symbol decoding with pyzbar."""

from dataclasses import dataclass

import cv2
from pyzbar import pyzbar


@dataclass
class PyzbarSymbolDecoder:
    """Decode the first readable barcode in a BGR frame."""

    grayscale: bool = True

    def decode(self, frame: object) -> str | None:
        image = frame
        if self.grayscale and getattr(frame, "ndim", 2) == 3:  # noqa: PLR2004
            image = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        for symbol in pyzbar.decode(image):
            text = symbol.data.decode("utf-8", errors="ignore").strip()
            if text:
                return text
        return None
