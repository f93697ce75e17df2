# test/test_camera.py
import numpy as np
import pytest

from leaf_scanner.services import camera
from leaf_scanner.services.errors import CameraUnavailableError


class FakeCapture:
    """Minimal cv2.VideoCapture replacement that records its lifecycle."""

    instances = []

    def __init__(self, index, opened=True, frame=True):
        self.index = index
        self.opened = opened
        self.frame = frame
        self.released = False
        self.props = {}
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if not self.frame:
            return False, None
        return True, np.full((48, 64, 3), 120, dtype=np.uint8)

    def release(self):
        self.released = True


@pytest.fixture(autouse=True)
def reset_instances():
    FakeCapture.instances = []


def use_fake(monkeypatch, **kwargs):
    monkeypatch.setattr(camera.cv2, "VideoCapture", lambda index: FakeCapture(index, **kwargs))


def test_capture_returns_jpeg_and_releases_device(monkeypatch):
    use_fake(monkeypatch)

    data = camera.capture_jpeg(2)

    assert data[:2] == b"\xff\xd8"
    [device] = FakeCapture.instances
    assert device.index == 2
    assert device.released is True
    assert device.props[camera.cv2.CAP_PROP_FRAME_WIDTH] == 1280
    assert device.props[camera.cv2.CAP_PROP_FRAME_HEIGHT] == 720


def test_unopened_device_raises_and_is_released(monkeypatch):
    use_fake(monkeypatch, opened=False)

    with pytest.raises(CameraUnavailableError):
        camera.capture_jpeg(0)
    assert FakeCapture.instances[0].released is True


def test_missing_frame_raises_and_is_released(monkeypatch):
    use_fake(monkeypatch, frame=False)

    with pytest.raises(CameraUnavailableError):
        camera.capture_jpeg(0)
    assert FakeCapture.instances[0].released is True


def test_device_is_released_when_caller_fails(monkeypatch):
    use_fake(monkeypatch)

    with pytest.raises(RuntimeError):
        with camera.open_camera(0):
            raise RuntimeError("cancelled")
    assert FakeCapture.instances[0].released is True


def test_encode_jpeg_uses_lower_quality_for_smaller_output():
    rng = np.random.default_rng(1)
    frame = rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)

    assert len(camera.encode_jpeg(frame, quality=80)) < len(camera.encode_jpeg(frame, quality=100))
