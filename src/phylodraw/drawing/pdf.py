from __future__ import annotations

import logging
from pathlib import Path

import drawsvg as draw

from ..geometry import Color, Size
from ..styles import BranchDecorationStyle, BranchDecorationType
from ..tree import Clade, Tree
from ..utils import format_number
from .base import TreeDrawer
from .positions import TextMeasurer
from .svg import TREE_AREA_OFFSET, decoration_attributes

logger = logging.getLogger(__name__)

# one layout unit is one PDF point
PDF_DPI = 72


class PdfDrawer(TreeDrawer):
    """Paginated backend: each drawn tree becomes one PDF page.

    Primitives are painted onto the page in call order, like on a graphics
    context; the page is converted to PDF with CairoSVG (optional dependency).
    """

    def __init__(self, text_measurer: TextMeasurer | None = None, font_family: str = "Arial"):
        super().__init__(text_measurer)
        self.font_family = font_family
        self.page: draw.Drawing | None = None
        self._canvas: draw.Group | None = None

    @property
    def document(self) -> draw.Drawing:
        if self.page is None:
            raise RuntimeError("The document has not been drawn yet")
        return self.page

    def as_pdf(self) -> bytes:
        try:
            import cairosvg
        except ImportError as e:
            raise ImportError(
                "PDF export requires cairosvg. Install with: pip install 'phylodraw[export]'"
            ) from e

        svg_text = self.document.as_svg()
        return cairosvg.svg2pdf(bytestring=svg_text.encode("utf-8"), dpi=PDF_DPI)

    def save_pdf(self, outpath: str | Path) -> None:
        outpath = Path(outpath)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        outpath.write_bytes(self.as_pdf())

    # --- primitives ------------------------------------------------------

    def init_document(self) -> None:
        self.page = None
        self._canvas = None

    def begin_tree(self, size: Size, tree: Tree) -> None:
        self.page = draw.Drawing(size.width, size.height)
        self.page.append(draw.Rectangle(0, 0, size.width, size.height, fill="white"))
        self._canvas = draw.Group(transform="translate({},{})".format(*TREE_AREA_OFFSET))
        self.page.append(self._canvas)
        logger.debug("Started PDF page of %.1f x %.1f pt", size.width, size.height)

    def _paint(self, element) -> None:
        if self._canvas is None:
            raise RuntimeError("begin_tree must be called before drawing")
        self._canvas.append(element)

    def _text(self, text, point, font_size, fill="black", **kwargs) -> draw.Text:
        return draw.Text(
            text, font_size, point.x, point.y, fill=Color(fill).to_svg(), font_family=self.font_family, **kwargs
        )

    def draw_clade_shade(self, area, fill) -> None:
        self._paint(draw.Rectangle(area.x, area.y, area.width, area.height, fill=Color(fill).to_svg()))

    def draw_collapsed_triangle(self, left, right_top, right_bottom, stroke, line_thickness) -> None:
        path = draw.Path(fill="none", stroke=Color(stroke).to_svg(), stroke_width=line_thickness)
        path.M(*left).L(*right_top).L(*right_bottom).Z()
        self._paint(path)

    def draw_leaf_label(self, taxon, point, fill, font_size) -> None:
        self._paint(self._text(taxon, point, font_size, fill))

    def draw_node_value(self, value, point, fill, font_size) -> None:
        self._paint(self._text(value, point, font_size, fill))

    def draw_branch_value(self, value, point, fill, font_size) -> None:
        self._paint(self._text(value, point, font_size, fill, text_anchor="middle"))

    def draw_clade_label(self, clade_name, line_begin, line_end, text_point, line_thickness, font_size) -> None:
        if line_thickness > 0:
            self._paint(draw.Line(*line_begin, *line_end, stroke="black", stroke_width=line_thickness))
        self._paint(self._text(clade_name, text_point, font_size))

    def draw_horizontal_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self._paint(draw.Line(*parent_point, *child_point, stroke=Color(stroke).to_svg(), stroke_width=thickness))

    def draw_vertical_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self._paint(draw.Line(*child_point, *parent_point, stroke=Color(stroke).to_svg(), stroke_width=thickness))

    def draw_branch_decoration(self, target: Clade, decoration: BranchDecorationStyle) -> None:
        attributes = decoration_attributes(decoration)
        if decoration.decoration_type in (BranchDecorationType.CLOSED_CIRCLE, BranchDecorationType.OPEN_CIRCLE):
            center, radius = self.position_manager.calc_branch_decoration_circle_area(target, decoration)
            self._paint(draw.Circle(center.x, center.y, radius, **attributes))
        else:
            area = self.position_manager.calc_branch_decoration_rectangle_area(target, decoration)
            self._paint(draw.Rectangle(area.x, area.y, area.width, area.height, **attributes))

    def draw_scalebar(self, value, offset, line_begin, line_end, text_point, font_size, line_thickness) -> None:
        group = draw.Group(transform=f"translate({offset.x},{offset.y})")
        group.append(self._text(format_number(value), text_point, font_size, text_anchor="middle"))
        group.append(draw.Line(*line_begin, *line_end, stroke="black", stroke_width=line_thickness))
        self.document.append(group)

    def finish_tree(self) -> None:
        self._canvas = None
