"""OpenCV camera capture source."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import cv2

from nutriscan.domain.errors import (
    AcquisitionError,
    CameraNotFoundError,
    CameraPermissionDeniedError,
)
from nutriscan.domain.nutrition import ImagePayload

_logger = logging.getLogger(__name__)


@dataclass
class OpenCvFrameStream:
    """Frames read from an open cv2.VideoCapture."""

    capture: cv2.VideoCapture

    def read(self) -> object | None:
        ok, frame = self.capture.read()
        if not ok:
            return None
        return frame


@dataclass
class OpenCvCamera:
    """Camera source backed by OpenCV."""

    index: int = 0
    width: int = 1280
    height: int = 720
    device_root: Path = Path("/dev")

    @contextmanager
    def open(self) -> Iterator[OpenCvFrameStream]:
        """Open the camera and release it on every exit path."""
        self._check_device_permissions()
        capture = cv2.VideoCapture(self.index)
        try:
            if not capture.isOpened():
                raise CameraNotFoundError
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            yield OpenCvFrameStream(capture)
        finally:
            capture.release()
            _logger.info("Released camera %s", self.index)

    def capture_still(self, attempts: int = 10, quality: int = 90) -> ImagePayload:
        """Grab a single frame and encode it as JPEG."""
        with self.open() as stream:
            for _ in range(attempts):
                frame = stream.read()
                if frame is not None:
                    return encode_jpeg(frame, quality=quality)
        raise AcquisitionError("Could not capture a photo. Please try again.")

    def _check_device_permissions(self) -> None:
        device = self.device_root / f"video{self.index}"
        if device.exists() and not os.access(device, os.R_OK | os.W_OK):
            raise CameraPermissionDeniedError


def encode_jpeg(frame: object, quality: int = 90) -> ImagePayload:
    """Encode a frame as a JPEG image payload."""
    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise AcquisitionError("Could not encode the captured photo.")
    return ImagePayload(mime_type="image/jpeg", data=buffer.tobytes())
