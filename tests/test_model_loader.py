"""
Tests for detector backend loading.
"""

import builtins
from pathlib import Path

import cv2
import pytest

from facecrop.config import DetectorConfig
from facecrop.model_loader import load_cascade, load_frontal_face_detector


def test_load_bundled_cascade():
    classifier = load_cascade(DetectorConfig())
    assert not classifier.empty()


def test_load_cascade_from_working_directory(tmp_path, monkeypatch):
    bundled = Path(cv2.data.haarcascades) / "haarcascade_frontalface_alt.xml"
    local = tmp_path / "mine.xml"
    local.write_bytes(bundled.read_bytes())
    monkeypatch.chdir(tmp_path)

    classifier = load_cascade(DetectorConfig(cascade_path="mine.xml"))
    assert not classifier.empty()


def test_missing_cascade(tmp_path):
    config = DetectorConfig(cascade_path=str(tmp_path / "nope.xml"))
    with pytest.raises(FileNotFoundError, match="nope.xml"):
        load_cascade(config)


def test_invalid_cascade(tmp_path):
    broken = tmp_path / "broken.xml"
    broken.write_text("<opencv_storage></opencv_storage>", encoding="utf-8")
    with pytest.raises(RuntimeError, match="failed to load"):
        load_cascade(DetectorConfig(cascade_path=str(broken)))


def test_dlib_not_installed(monkeypatch):
    real_import = builtins.__import__

    def _import(name, *args, **kwargs):
        if name == "dlib":
            raise ImportError("No module named 'dlib'")
        return real_import(name, *args, **kwargs)

    monkeypatch.setattr(builtins, "__import__", _import)
    with pytest.raises(RuntimeError, match="pip install"):
        load_frontal_face_detector()


def test_opencv_major_version_supported():
    assert int(cv2.__version__.split(".")[0]) == 4
    assert hasattr(cv2, "CascadeClassifier")
