"""
Preprocessing for the face detection pipeline.

Responsibility:
    Convert a BGR image (as read by cv2.imread) into the pixel layout the
    selected detector expects.

Non-goals:
    - No file I/O.
    - No detection or coordinate mapping.

Hard-coded:
    - Haar cascades run on an equalized single-channel image.
    - dlib expects RGB channel order.
"""

import cv2
import numpy as np


def preprocess(image: np.ndarray, mode: str) -> np.ndarray:
    """Convert an image into detector input.

    Args:
        image: BGR image (H, W, 3) or grayscale image (H, W).
        mode: Detector backend, 'haar' or 'dlib'.

    Returns:
        An equalized grayscale image for 'haar', an RGB image for 'dlib'.

    Raises:
        ValueError: If the image is empty or the mode is unknown.
    """
    if image is None or image.size == 0:
        raise ValueError(
            "Cannot preprocess an empty image. "
            "Ensure the input file was read successfully."
        )

    grayscale = image.ndim == 2

    if mode == "haar":
        gray = image if grayscale else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return cv2.equalizeHist(gray)

    if mode == "dlib":
        if grayscale:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    raise ValueError(f"Unknown detector mode: '{mode}'.")
