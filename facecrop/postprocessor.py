"""
Postprocessing for detected face rectangles.

Responsibility:
    Filter detections by size and apply the bounding-box adjustment
    policy that turns a detector rectangle into the crop region.

Non-goals:
    - No detection, cropping, or saving.

Policies:
    - 'none': the detector rectangle, clamped to the image.
    - 'expand': grow each side by padding * face size, clamped.
    - 'square': grow by padding, square up on the longer side around the
      centre, then shift to stay inside the image.
"""

from typing import Iterable, List, Optional, Tuple

from facecrop.face import Face

Size = Tuple[int, int]


def filter_by_size(
    faces: Iterable[Face],
    min_size: Optional[Size] = None,
    max_size: Optional[Size] = None,
) -> List[Face]:
    """Drop faces outside the accepted size range.

    Args:
        faces: Detected faces.
        min_size: Smallest accepted (width, height), or None.
        max_size: Largest accepted (width, height), or None.

    Returns:
        Faces that are at least min_size and at most max_size in both
        dimensions, in their original order.
    """
    kept: List[Face] = []
    for face in faces:
        if min_size is not None and (face.width < min_size[0] or face.height < min_size[1]):
            continue
        if max_size is not None and (face.width > max_size[0] or face.height > max_size[1]):
            continue
        kept.append(face)
    return kept


def sort_reading_order(faces: Iterable[Face]) -> List[Face]:
    """Order faces top to bottom, then left to right."""
    return sorted(faces, key=lambda f: (f.y, f.x))


def _clamp(face: Face, image_width: int, image_height: int) -> Face:
    x1 = max(0, min(face.x, image_width))
    y1 = max(0, min(face.y, image_height))
    x2 = max(0, min(face.x2, image_width))
    y2 = max(0, min(face.y2, image_height))
    return Face(x=x1, y=y1, width=x2 - x1, height=y2 - y1, score=face.score)


def _pad(face: Face, padding: float) -> Face:
    pad_x = int(round(face.width * padding))
    pad_y = int(round(face.height * padding))
    return Face(
        x=face.x - pad_x,
        y=face.y - pad_y,
        width=face.width + 2 * pad_x,
        height=face.height + 2 * pad_y,
        score=face.score,
    )


def _square(face: Face, image_width: int, image_height: int) -> Face:
    side = min(max(face.width, face.height), image_width, image_height)
    centre_x = face.x + face.width / 2.0
    centre_y = face.y + face.height / 2.0

    x = int(round(centre_x - side / 2.0))
    y = int(round(centre_y - side / 2.0))

    # Shift back inside the image instead of shrinking.
    x = max(0, min(x, image_width - side))
    y = max(0, min(y, image_height - side))

    return Face(x=x, y=y, width=side, height=side, score=face.score)


def adjust_box(
    face: Face,
    image_width: int,
    image_height: int,
    policy: str = "none",
    padding: float = 0.0,
) -> Face:
    """Turn a detector rectangle into the region to crop.

    Args:
        face: Detector rectangle.
        image_width: Source image width in pixels.
        image_height: Source image height in pixels.
        policy: 'none', 'expand' or 'square'.
        padding: Fractional margin per side used by 'expand' and 'square'.

    Returns:
        A Face lying entirely inside the image.

    Raises:
        ValueError: If the policy is unknown or the result has no area.
    """
    if policy == "none":
        box = _clamp(face, image_width, image_height)
    elif policy == "expand":
        box = _clamp(_pad(face, padding), image_width, image_height)
    elif policy == "square":
        box = _square(_pad(face, padding), image_width, image_height)
    else:
        raise ValueError(f"Unknown adjustment policy: '{policy}'.")

    if box.width <= 0 or box.height <= 0:
        raise ValueError(
            f"Face {face} lies outside the {image_width}x{image_height} image."
        )

    return box
