from __future__ import annotations

import logging
import sys

from PIL import ImageFont

from ..geometry import Size

logger = logging.getLogger(__name__)


def _platform_families() -> tuple[str, ...]:
    if sys.platform == "win32":
        return ("arial.ttf", "DejaVuSans.ttf")
    if sys.platform == "darwin":
        return ("Arial.ttf", "Helvetica.ttc", "DejaVuSans.ttf")
    return ("DejaVuSans.ttf", "Ubuntu-R.ttf", "LiberationSans-Regular.ttf", "Arial.ttf")


class FontManager:
    """Pillow fonts by size, shared by text measurement and the raster backend.

    Font files are looked up in ``families`` order; when none can be opened
    Pillow's built-in font is used, so measuring never fails.
    """

    def __init__(self, families=None):
        self._families = tuple(families) if families else _platform_families()
        self._cache: dict[float, ImageFont.ImageFont | ImageFont.FreeTypeFont] = {}

    @property
    def families(self) -> tuple[str, ...]:
        return self._families

    @families.setter
    def families(self, value) -> None:
        value = tuple(value)
        if value != self._families:
            self._families = value
            self._cache.clear()

    def get_font(self, font_size: float):
        font_size = max(1, int(font_size))
        font = self._cache.get(font_size)
        if font is None:
            font = self._load(font_size)
            self._cache[font_size] = font
        return font

    def _load(self, font_size: int):
        for family in self._families:
            try:
                return ImageFont.truetype(family, font_size)
            except OSError:
                continue
        logger.warning("None of the fonts %s could be loaded, using Pillow's default font", self._families)
        return ImageFont.load_default(size=font_size)

    def measure_text(self, text: str | None, font_size: float) -> Size:
        """Size of the inked box of ``text``; ``(0, 0)`` for empty text."""
        if not text:
            return Size(0.0, 0.0)
        left, top, right, bottom = self.get_font(font_size).getbbox(text)
        return Size(float(right - left), float(bottom - top))


default_font_manager = FontManager()


def measure_text(text: str | None, font_size: float) -> Size:
    return default_font_manager.measure_text(text, font_size)
