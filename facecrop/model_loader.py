"""
Detector backend loading.

Responsibility:
    Locate and load the external face detectors: an OpenCV Haar cascade
    or dlib's HOG frontal-face detector.

Non-goals:
    - No preprocessing, inference, or image-level logic.
    - No automatic model downloading.
    - No silent fallback from one backend to the other.

Failure behavior:
    - A missing cascade file raises FileNotFoundError naming every
      location that was searched.
    - An unparsable cascade or a missing dlib install raises RuntimeError.
"""

import logging
from pathlib import Path
from typing import List

import cv2

from facecrop.config import DetectorConfig

logger = logging.getLogger(__name__)


def _cascade_candidates(cascade_path: str) -> List[Path]:
    """Return the locations searched for a cascade file, in order."""
    path = Path(cascade_path).expanduser()
    if path.is_absolute():
        return [path]
    return [Path.cwd() / path, Path(cv2.data.haarcascades) / path]


def load_cascade(config: DetectorConfig) -> cv2.CascadeClassifier:
    """Load the Haar cascade named by the configuration.

    Args:
        config: DetectorConfig holding cascade_path.

    Returns:
        A loaded cv2.CascadeClassifier.

    Raises:
        FileNotFoundError: If the cascade file cannot be found.
        RuntimeError: If OpenCV cannot parse the file.
    """
    candidates = _cascade_candidates(config.cascade_path)
    cascade_file = next((p for p in candidates if p.is_file()), None)

    if cascade_file is None:
        searched = "\n".join(f"  {p}" for p in candidates)
        raise FileNotFoundError(
            f"Cascade file '{config.cascade_path}' not found. Searched:\n"
            f"{searched}\n"
            f"  Provide the file or update 'detector.cascade_path' in your config."
        )

    classifier = cv2.CascadeClassifier()
    try:
        loaded = classifier.load(str(cascade_file))
    except cv2.error as e:
        raise RuntimeError(
            f"OpenCV failed to load cascade classifier from {cascade_file}: {e}"
        ) from e

    if not loaded:
        raise RuntimeError(
            f"OpenCV failed to load cascade classifier from {cascade_file}."
        )

    logger.debug("Cascade loaded: %s", cascade_file)
    return classifier


def load_frontal_face_detector():
    """Return dlib's HOG frontal-face detector.

    Raises:
        RuntimeError: If dlib is not installed.
    """
    try:
        import dlib
    except ImportError as e:
        raise RuntimeError(
            "The 'dlib' detector requires the dlib package. "
            "Install it with: pip install 'facecrop[dlib]'"
        ) from e

    detector = dlib.get_frontal_face_detector()
    logger.debug("dlib frontal face detector loaded.")
    return detector
