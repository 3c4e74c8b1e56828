from __future__ import annotations

import io
import logging
import math
from pathlib import Path

from PIL import Image, ImageDraw

from ..geometry import Color, Point, Size
from ..styles import BranchDecorationStyle, BranchDecorationType
from ..tree import Clade, Tree
from ..utils import format_number
from .base import TreeDrawer
from .fonts import FontManager, default_font_manager
from .positions import TextMeasurer
from .svg import TREE_AREA_OFFSET

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def _width(thickness: float) -> int:
    return max(1, int(round(thickness)))


class PngDrawer(TreeDrawer):
    """Raster backend painting onto a Pillow RGBA image.

    Text is anchored on its baseline so labels land where the vector backends
    put them.

    Parameters
    ----------
    font_manager:
        Source of the Pillow fonts; also measures text unless
        ``text_measurer`` is given.
    background:
        Fill of the image; transparent by default.
    """

    def __init__(
        self,
        text_measurer: TextMeasurer | None = None,
        font_manager: FontManager | None = None,
        background: str | tuple = (0, 0, 0, 0),
    ):
        self.font_manager = font_manager if font_manager is not None else default_font_manager
        super().__init__(text_measurer if text_measurer is not None else self.font_manager.measure_text)
        self.background = background
        self._image: Image.Image | None = None
        self._draw: ImageDraw.ImageDraw | None = None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError("The image has not been drawn yet")
        return self._image

    def as_png(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def save_png(self, outpath: str | Path) -> None:
        outpath = Path(outpath)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        self.image.save(str(outpath), format="PNG")

    def _area(self, point) -> tuple[float, float]:
        return (point[0] + TREE_AREA_OFFSET[0], point[1] + TREE_AREA_OFFSET[1])

    def _canvas(self) -> ImageDraw.ImageDraw:
        if self._draw is None:
            raise RuntimeError("begin_tree must be called before drawing")
        return self._draw

    def _text(self, text: str, xy, fill, font_size: float, anchor: str = "ls") -> None:
        font = self.font_manager.get_font(font_size)
        self._canvas().text(xy, text, fill=Color(fill).to_rgba(), font=font, anchor=anchor)

    # --- primitives ------------------------------------------------------

    def init_document(self) -> None:
        self._image = None
        self._draw = None

    def begin_tree(self, size: Size, tree: Tree) -> None:
        width = max(1, int(math.ceil(size.width)))
        height = max(1, int(math.ceil(size.height)))
        background = self.background if isinstance(self.background, tuple) else Color(self.background).to_rgba()
        self._image = Image.new("RGBA", (width, height), background)
        self._draw = ImageDraw.Draw(self._image, "RGBA")
        logger.debug("Started %dx%d raster image", width, height)

    def draw_clade_shade(self, area, fill) -> None:
        x, y = self._area(area.point)
        self._canvas().rectangle([x, y, x + area.width, y + area.height], fill=Color(fill).to_rgba())

    def draw_collapsed_triangle(self, left, right_top, right_bottom, stroke, line_thickness) -> None:
        points = [self._area(left), self._area(right_top), self._area(right_bottom)]
        self._canvas().polygon(points, outline=Color(stroke).to_rgba(), width=_width(line_thickness))

    def draw_leaf_label(self, taxon, point, fill, font_size) -> None:
        self._text(taxon, self._area(point), fill, font_size)

    def draw_node_value(self, value, point, fill, font_size) -> None:
        self._text(value, self._area(point), fill, font_size)

    def draw_branch_value(self, value, point, fill, font_size) -> None:
        self._text(value, self._area(point), fill, font_size, anchor="ms")

    def draw_clade_label(self, clade_name, line_begin, line_end, text_point, line_thickness, font_size) -> None:
        if line_thickness > 0:
            self._canvas().line(
                [self._area(line_begin), self._area(line_end)], fill=BLACK, width=_width(line_thickness)
            )
        self._text(clade_name, self._area(text_point), "black", font_size)

    def draw_horizontal_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self._canvas().line(
            [self._area(parent_point), self._area(child_point)], fill=Color(stroke).to_rgba(), width=_width(thickness)
        )

    def draw_vertical_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self._canvas().line(
            [self._area(child_point), self._area(parent_point)], fill=Color(stroke).to_rgba(), width=_width(thickness)
        )

    def draw_branch_decoration(self, target: Clade, decoration: BranchDecorationStyle) -> None:
        canvas = self._canvas()
        color = Color(decoration.shape_color).to_rgba()
        kind = decoration.decoration_type
        if kind in (BranchDecorationType.CLOSED_CIRCLE, BranchDecorationType.OPEN_CIRCLE):
            center, radius = self.position_manager.calc_branch_decoration_circle_area(target, decoration)
            cx, cy = self._area(center)
            box = [cx - radius, cy - radius, cx + radius, cy + radius]
            if kind is BranchDecorationType.CLOSED_CIRCLE:
                canvas.ellipse(box, fill=color)
            else:
                canvas.ellipse(box, fill=WHITE, outline=color, width=1)
        elif kind in (BranchDecorationType.CLOSED_RECTANGLE, BranchDecorationType.OPENED_RECTANGLE):
            area = self.position_manager.calc_branch_decoration_rectangle_area(target, decoration)
            x, y = self._area(area.point)
            box = [x, y, x + area.width, y + area.height]
            if kind is BranchDecorationType.CLOSED_RECTANGLE:
                canvas.rectangle(box, fill=color)
            else:
                canvas.rectangle(box, fill=WHITE, outline=color, width=int(decoration.shape_size) // 5 + 1)
        else:
            raise ValueError(f"Unknown decoration type: {kind!r}")

    def draw_scalebar(self, value, offset, line_begin, line_end, text_point, font_size, line_thickness) -> None:
        self._text(format_number(value), Point(*offset) + text_point, "black", font_size, anchor="ms")
        self._canvas().line(
            [Point(*offset) + line_begin, Point(*offset) + line_end], fill=BLACK, width=_width(line_thickness)
        )

    def finish_tree(self) -> None:
        self._draw = None
