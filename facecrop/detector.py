"""
Detector: the single public API for face detection.

Public contract:
    Detector.detect(image: np.ndarray) -> list[Face]

Constraints:
    - Input must be a BGR (or grayscale) numpy array as returned by OpenCV.
    - An instance is not thread-safe; create one per worker thread.

Non-goals:
    - No file reading or writing.
    - No box adjustment or cropping.
"""

import logging
from typing import List, Optional

import numpy as np

from facecrop.config import DetectorConfig
from facecrop.face import Face
from facecrop.model_loader import load_cascade, load_frontal_face_detector
from facecrop.postprocessor import filter_by_size, sort_reading_order
from facecrop.preprocessor import preprocess

logger = logging.getLogger(__name__)


class Detector:
    """Face detector backed by an OpenCV Haar cascade or dlib.

    Usage:
        detector = Detector()                          # Haar cascade defaults
        detector = Detector(DetectorConfig(mode="dlib"))
        faces = detector.detect(image)                 # BGR numpy array

    The constructor loads the backend once; detect() only runs it.
    """

    def __init__(self, config: Optional[DetectorConfig] = None) -> None:
        """Initialize the detector and load its backend.

        Raises:
            FileNotFoundError: If the cascade file is missing.
            RuntimeError: If the backend cannot be loaded.
            ValueError: If the detector mode is unknown.
        """
        if config is None:
            config = DetectorConfig()

        self._config = config

        if config.mode == "haar":
            self._backend = load_cascade(config)
        elif config.mode == "dlib":
            self._backend = load_frontal_face_detector()
        else:
            raise ValueError(f"Unknown detector mode: '{config.mode}'.")

        logger.debug("Detector initialized (mode=%s)", config.mode)

    @property
    def config(self) -> DetectorConfig:
        """Return the active configuration (read-only)."""
        return self._config

    def detect(self, image: np.ndarray) -> List[Face]:
        """Detect faces in a single image.

        Args:
            image: BGR image with shape (H, W, 3) or grayscale (H, W),
                   dtype uint8.

        Returns:
            Faces within the configured size range, in reading order.
            Returns an empty list if no faces are detected.

        Raises:
            TypeError: If image is not a numpy ndarray.
            ValueError: If image has incorrect shape or is empty.
        """
        self._validate_image(image)

        prepared = preprocess(image, self._config.mode)

        if self._config.mode == "haar":
            faces = self._detect_haar(prepared)
        else:
            faces = self._detect_dlib(prepared)

        faces = filter_by_size(faces, self._config.min_size, self._config.max_size)
        return sort_reading_order(faces)

    def _detect_haar(self, gray: np.ndarray) -> List[Face]:
        rects = self._backend.detectMultiScale(
            gray,
            scaleFactor=self._config.scale_factor,
            minNeighbors=self._config.min_neighbors,
            minSize=self._config.min_size or (0, 0),
            maxSize=self._config.max_size or (0, 0),
        )
        return [
            Face(x=int(x), y=int(y), width=int(w), height=int(h))
            for (x, y, w, h) in rects
        ]

    def _detect_dlib(self, rgb: np.ndarray) -> List[Face]:
        rects, scores, _ = self._backend.run(rgb, self._config.upsample, 0.0)
        return [Face.from_dlib(rect, score) for rect, score in zip(rects, scores)]

    @staticmethod
    def _validate_image(image: np.ndarray) -> None:
        """Validate that the input image meets the API contract.

        Raises:
            TypeError: If image is not a numpy ndarray.
            ValueError: If image is empty or has wrong dimensions.
        """
        if not isinstance(image, np.ndarray):
            raise TypeError(
                f"Expected image to be a numpy ndarray, "
                f"got {type(image).__name__}. "
                f"Use cv2.imread() to obtain images."
            )

        if image.size == 0:
            raise ValueError("Image is empty (zero size).")

        if image.ndim == 2:
            return

        if image.ndim != 3:
            raise ValueError(
                f"Expected a 2- or 3-dimensional image, "
                f"got {image.ndim} dimensions with shape {image.shape}."
            )

        if image.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {image.shape[2]} channels. "
                f"Input must be a BGR image as returned by OpenCV."
            )
