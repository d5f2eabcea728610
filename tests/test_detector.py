"""
Tests for the detector module.
"""

import numpy as np
import pytest

import facecrop.detector as detector_module
from facecrop.config import DetectorConfig
from facecrop.detector import Detector
from facecrop.face import Face


class _FakeRect:
    """Stand-in for dlib.rectangle (inclusive right/bottom)."""

    def __init__(self, left, top, right, bottom):
        self._box = (left, top, right, bottom)

    def left(self):
        return self._box[0]

    def top(self):
        return self._box[1]

    def right(self):
        return self._box[2]

    def bottom(self):
        return self._box[3]


class _FakeDlibDetector:
    def __init__(self, rects, scores):
        self.rects = rects
        self.scores = scores
        self.calls = []

    def run(self, image, upsample, threshold):
        self.calls.append((image.shape, upsample, threshold))
        return self.rects, self.scores, [0] * len(self.rects)


class _FakeCascade:
    def __init__(self, rects):
        self.rects = rects
        self.kwargs = None

    def detectMultiScale(self, image, **kwargs):
        self.kwargs = kwargs
        return self.rects


@pytest.fixture
def fake_dlib(monkeypatch):
    fake = _FakeDlibDetector(
        rects=[_FakeRect(50, 40, 149, 139), _FakeRect(10, 10, 29, 29)],
        scores=[1.2, 0.4],
    )
    monkeypatch.setattr(detector_module, "load_frontal_face_detector", lambda: fake)
    return fake


def test_haar_smoke_blank_image():
    """Smoke test: bundled cascade loads and finds nothing in a blank image."""
    detector = Detector()

    faces = detector.detect(np.zeros((240, 320, 3), dtype=np.uint8))

    assert faces == []


def test_haar_passes_parameters(monkeypatch):
    cascade = _FakeCascade(np.array([[30, 60, 40, 40], [10, 5, 80, 80]]))
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: cascade)

    config = DetectorConfig(scale_factor=1.2, min_neighbors=5, min_size=(20, 20))
    faces = Detector(config).detect(np.zeros((200, 200, 3), dtype=np.uint8))

    assert cascade.kwargs == {
        "scaleFactor": 1.2,
        "minNeighbors": 5,
        "minSize": (20, 20),
        "maxSize": (0, 0),
    }
    # Reading order: top row first
    assert faces == [Face(10, 5, 80, 80), Face(30, 60, 40, 40)]
    assert all(isinstance(f.x, int) for f in faces)


def test_haar_empty_result(monkeypatch):
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade(()))
    assert Detector().detect(np.zeros((50, 50, 3), dtype=np.uint8)) == []


def test_dlib_mode(fake_dlib):
    detector = Detector(DetectorConfig(mode="dlib", upsample=2))

    faces = detector.detect(np.zeros((300, 300, 3), dtype=np.uint8))

    assert fake_dlib.calls == [((300, 300, 3), 2, 0.0)]
    assert faces == [
        Face(10, 10, 20, 20, score=0.4),
        Face(50, 40, 100, 100, score=1.2),
    ]


def test_dlib_size_filter(fake_dlib):
    """dlib has no native size limits; the filter applies them."""
    detector = Detector(DetectorConfig(mode="dlib", min_size=(50, 50)))

    faces = detector.detect(np.zeros((300, 300, 3), dtype=np.uint8))

    assert [f.width for f in faces] == [100]


def test_dlib_missing(monkeypatch):
    def _missing():
        raise RuntimeError("dlib not installed")

    monkeypatch.setattr(detector_module, "load_frontal_face_detector", _missing)
    with pytest.raises(RuntimeError, match="dlib"):
        Detector(DetectorConfig(mode="dlib"))


def test_unknown_mode():
    with pytest.raises(ValueError, match="mode"):
        Detector(DetectorConfig(mode="cnn"))


def test_detector_input_validation(monkeypatch):
    """Test strict input validation."""
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: _FakeCascade(()))
    detector = Detector()

    # 1. Wrong type
    with pytest.raises(TypeError):
        detector.detect("not an image")

    # 2. Empty image
    with pytest.raises(ValueError):
        detector.detect(np.array([]))

    # 3. Wrong rank
    with pytest.raises(ValueError, match="dimensional"):
        detector.detect(np.zeros((2, 2, 3, 1), dtype=np.uint8))

    # 4. Wrong channels (BGRA)
    with pytest.raises(ValueError, match="3 channels"):
        detector.detect(np.zeros((100, 100, 4), dtype=np.uint8))

    # Grayscale is accepted
    assert detector.detect(np.zeros((100, 100), dtype=np.uint8)) == []
