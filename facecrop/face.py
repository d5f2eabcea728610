"""
Face rectangle data transfer object.

This module defines the Face dataclass, the single output type returned
by Detector.detect(). It is a frozen container in the (x, y, width,
height) convention used by cv2.CascadeClassifier.

Non-goals:
    - No cropping or file I/O.
    - No box adjustment (that belongs in postprocessor).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Face:
    """A single detected face rectangle.

    Attributes:
        x: Left edge (absolute pixels).
        y: Top edge (absolute pixels).
        width: Rectangle width in pixels.
        height: Rectangle height in pixels.
        score: Detector score when the backend reports one (dlib), else None.
    """

    x: int
    y: int
    width: int
    height: int
    score: Optional[float] = None

    @classmethod
    def from_dlib(cls, rect, score: Optional[float] = None) -> "Face":
        """Build a Face from a dlib.rectangle (inclusive right/bottom)."""
        left, top = int(rect.left()), int(rect.top())
        return cls(
            x=left,
            y=top,
            width=int(rect.right()) - left + 1,
            height=int(rect.bottom()) - top + 1,
            score=None if score is None else float(score),
        )

    @property
    def x2(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "score": None if self.score is None else round(self.score, 4),
        }
