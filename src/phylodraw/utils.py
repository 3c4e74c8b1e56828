from __future__ import annotations

import logging
import math
import re

from PIL import ImageColor

logger = logging.getLogger(__name__)

# Unparsable colors fall back to opaque black.
DEFAULT_RGBA = (0, 0, 0, 255)

_RGB_RE = re.compile(r"^rgb\((\d{1,3}),\s*(\d{1,3}),\s*(\d{1,3})\)$")
_RGBA_RE = re.compile(r"^rgba\((\d{1,3}),\s*(\d{1,3}),\s*(\d{1,3}),\s*(\d{1,3})\)$")


def _bytes_or_none(groups) -> tuple[int, ...] | None:
    values = tuple(int(g) for g in groups)
    if any(v > 255 for v in values):
        return None
    return values


def parse_color(color) -> tuple[int, int, int, int] | None:
    """Parse a color into ``(r, g, b, a)``; ``None`` when it is not a color.

    Accepts CSS color names, ``#rgb``/``#rrggbb``/``#rrggbbaa`` hex forms,
    ``rgb(r,g,b)`` and ``rgba(r,g,b,a)`` where every component (alpha included)
    is a byte.
    """
    if color is None:
        return None
    text = str(color).strip()
    if not text:
        return None

    m = _RGBA_RE.match(text)
    if m:
        values = _bytes_or_none(m.groups())
        if values is None:
            return None
        return (values[0], values[1], values[2], values[3])
    m = _RGB_RE.match(text)
    if m:
        values = _bytes_or_none(m.groups())
        if values is None:
            return None
        return (values[0], values[1], values[2], 255)

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        return None
    if len(rgb) == 3:
        return (rgb[0], rgb[1], rgb[2], 255)
    return (rgb[0], rgb[1], rgb[2], rgb[3])


def to_rgba(color) -> tuple[int, int, int, int]:
    rgba = parse_color(color)
    if rgba is None:
        logger.warning("Unknown color %r, using black", color)
        return DEFAULT_RGBA
    return rgba


def to_rgb(color) -> tuple[int, int, int]:
    r, g, b, _ = to_rgba(color)
    return (r, g, b)


def to_hex(rgb) -> str:
    """Format an RGB triple as ``#rrggbb``, clipping each channel to 0..255."""
    r, g, b = (max(0, min(255, int(round(c)))) for c in rgb[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def format_number(value: float) -> str:
    """Render a number the way Newick text and value labels show it.

    Integral values lose their fractional part (``2.0`` -> ``"2"``).
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)
