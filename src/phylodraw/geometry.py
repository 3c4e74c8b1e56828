from __future__ import annotations

from typing import NamedTuple

from .utils import parse_color, to_hex, to_rgba


class Point(NamedTuple):
    x: float
    y: float

    def __add__(self, other):
        return Point(self.x + other[0], self.y + other[1])

    def __sub__(self, other):
        return Point(self.x - other[0], self.y - other[1])


class Size(NamedTuple):
    width: float
    height: float


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class Color(NamedTuple):
    """A color as written in a style (CSS name, hex, ``rgb()`` or ``rgba()``).

    The conversion helpers never fail; an unparsable value renders as black.
    """

    value: str

    @property
    def is_valid(self) -> bool:
        return parse_color(self.value) is not None

    def to_rgba(self) -> tuple[int, int, int, int]:
        return to_rgba(self.value)

    def to_rgb(self) -> tuple[int, int, int]:
        return self.to_rgba()[:3]

    def to_hex(self) -> str:
        return to_hex(self.to_rgb())

    def to_svg(self) -> str:
        """Value for an SVG paint attribute (CSS alpha is 0..1, not a byte)."""
        r, g, b, a = self.to_rgba()
        if a != 255:
            return f"rgba({r},{g},{b},{a / 255:.3g})"
        if self.is_valid:
            return str(self.value).strip()
        return to_hex((r, g, b))
