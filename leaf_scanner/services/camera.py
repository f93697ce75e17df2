# leaf_scanner/services/camera.py
import logging
from contextlib import contextmanager
from typing import Iterator

import cv2

from leaf_scanner.services.errors import CameraUnavailableError

logger = logging.getLogger(__name__)

# Matches the quality browsers use for canvas.toBlob("image/jpeg", 0.8)
JPEG_QUALITY = 80
FRAME_WIDTH = 1280
FRAME_HEIGHT = 720


@contextmanager
def open_camera(index: int = 0, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> Iterator["cv2.VideoCapture"]:
    """
    Open a capture device for the duration of the ``with`` block.

    The device is released on every exit path, including errors raised by
    the caller inside the block.
    """
    capture = cv2.VideoCapture(index)
    try:
        if not capture.isOpened():
            raise CameraUnavailableError(f"Cannot open camera {index}")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        logger.info(f"Camera {index} opened")
        yield capture
    finally:
        capture.release()
        logger.info(f"Camera {index} released")


def encode_jpeg(frame, quality: int = JPEG_QUALITY) -> bytes:
    success, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not success:
        raise CameraUnavailableError("Failed to encode captured frame")
    return buffer.tobytes()


def capture_jpeg(index: int = 0) -> bytes:
    """Grab a single frame and return it as JPEG bytes."""
    with open_camera(index) as capture:
        ok, frame = capture.read()
        if not ok or frame is None:
            raise CameraUnavailableError(f"Camera {index} did not deliver a frame")
        return encode_jpeg(frame)
