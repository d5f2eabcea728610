"""
Tests for the Face data object.
"""

from facecrop.face import Face


class _Rect:
    def left(self):
        return 10

    def top(self):
        return 20

    def right(self):
        return 59

    def bottom(self):
        return 89


def test_derived_properties():
    face = Face(x=10, y=20, width=30, height=40)
    assert face.x2 == 40
    assert face.y2 == 60
    assert face.area == 1200


def test_from_dlib_inclusive_edges():
    face = Face.from_dlib(_Rect(), 0.51234)
    assert (face.x, face.y, face.width, face.height) == (10, 20, 50, 70)
    assert face.score == 0.51234


def test_to_dict():
    assert Face(1, 2, 3, 4, score=0.123456).to_dict() == {
        "x": 1, "y": 2, "width": 3, "height": 4, "score": 0.1235,
    }
    assert Face(1, 2, 3, 4).to_dict()["score"] is None
