"""
Thumbnail extraction.

Responsibility:
    Cut an adjusted face box out of the source image and resize it to the
    thumbnail size. Pure array work, no I/O.
"""

from typing import Tuple

import cv2
import numpy as np

from facecrop.face import Face


def crop_face(image: np.ndarray, box: Face, size: Tuple[int, int]) -> np.ndarray:
    """Crop a face region and resize it.

    Args:
        image: Source image (H, W, C) or (H, W).
        box: Region to crop; must lie inside the image.
        size: Output (width, height).

    Returns:
        A new array of shape (size[1], size[0], C).

    Raises:
        ValueError: If the box falls outside the image or has no area.
    """
    h, w = image.shape[:2]
    if box.x < 0 or box.y < 0 or box.x2 > w or box.y2 > h or box.area <= 0:
        raise ValueError(f"Crop box {box} does not fit a {w}x{h} image.")

    region = image[box.y:box.y2, box.x:box.x2]

    shrinking = box.width > size[0] or box.height > size[1]
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC

    return cv2.resize(region, size, interpolation=interpolation)
