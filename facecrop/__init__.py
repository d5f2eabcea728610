"""
facecrop: batch face detection and thumbnail extraction.

Public API:
    - Detector: Face detection over an OpenCV cascade or dlib.
    - Face: Data transfer object representing a detected face.
    - BatchProcessor: Bounded-concurrency detect-and-crop pipeline.
    - load_config: Layered configuration loader.

Usage:
    from facecrop import Detector

    detector = Detector()
    faces = detector.detect(image)
"""

from facecrop.config import AppConfig, load_config
from facecrop.detector import Detector
from facecrop.face import Face
from facecrop.pipeline import BatchProcessor, BatchSummary

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "BatchProcessor",
    "BatchSummary",
    "Detector",
    "Face",
    "load_config",
]
