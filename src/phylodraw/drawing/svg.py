from __future__ import annotations

from pathlib import Path

import drawsvg as draw

from ..geometry import Color, Point, Rect, Size
from ..styles import BranchDecorationStyle, BranchDecorationType
from ..tree import Clade, Tree
from ..utils import format_number
from .base import TreeDrawer
from .positions import TextMeasurer

TREE_AREA_OFFSET = (50, 50)


def _paint(color) -> str:
    return Color(color).to_svg()


def decoration_attributes(decoration: BranchDecorationStyle) -> dict:
    """SVG paint attributes of a branch decoration glyph."""
    color = _paint(decoration.shape_color)
    kind = decoration.decoration_type
    if kind in (BranchDecorationType.CLOSED_CIRCLE, BranchDecorationType.CLOSED_RECTANGLE):
        return {"fill": color, "stroke": "none"}
    if kind is BranchDecorationType.OPEN_CIRCLE:
        return {"fill": "white", "stroke": color}
    if kind is BranchDecorationType.OPENED_RECTANGLE:
        return {"fill": "white", "stroke": color, "stroke_width": int(decoration.shape_size) // 5 + 1}
    raise ValueError(f"Unknown decoration type: {kind!r}")


class SvgDrawer(TreeDrawer):
    """Vector backend writing an SVG document with one group per layer.

    The tree area is a ``tree-area`` group holding, in order, the ``shades``,
    ``leaf-labels``, ``clade-labels``, ``branches``, ``node-values``,
    ``branch-values`` and ``branch-decorations`` groups. Optional layers are
    attached to the document only when the tree style shows them. The scale
    bar is a ``scale-bar`` group placed directly in the document.
    """

    def __init__(self, text_measurer: TextMeasurer | None = None, font_family: str = "Arial"):
        super().__init__(text_measurer)
        self.font_family = font_family
        self.d: draw.Drawing | None = None
        self.groups: dict[str, draw.Group] = {}

    @property
    def document(self) -> draw.Drawing:
        if self.d is None:
            raise RuntimeError("The document has not been drawn yet")
        return self.d

    def as_svg(self) -> str:
        return self.document.as_svg()

    def save_svg(self, outpath: str | Path) -> None:
        outpath = Path(outpath)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        self.document.save_svg(str(outpath))

    def save_png(self, outpath: str | Path, scale: float = 1.0) -> None:
        """
        Rasterise the SVG document with CairoSVG (optional dependency).
        scale>1 increases resolution while keeping the same logical size.
        """
        try:
            import cairosvg
        except ImportError as e:
            raise ImportError(
                "PNG export from SVG requires cairosvg. Install with: pip install 'phylodraw[export]'"
            ) from e

        outpath = Path(outpath)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        svg_text = self.as_svg()
        cairosvg.svg2png(
            bytestring=svg_text.encode("utf-8"),
            write_to=str(outpath),
            scale=scale,
        )

    # --- primitives ------------------------------------------------------

    def init_document(self) -> None:
        pass

    def begin_tree(self, size: Size, tree: Tree) -> None:
        style = tree.style
        self.d = draw.Drawing(size.width, size.height)
        tree_area = draw.Group(id="tree-area", transform="translate({},{})".format(*TREE_AREA_OFFSET))
        self.d.append(tree_area)

        layers = [
            ("shades", True),
            ("leaf-labels", style.show_leaf_labels),
            ("clade-labels", style.show_clade_labels),
            ("branches", True),
            ("node-values", style.show_node_values),
            ("branch-values", style.show_branch_values),
            ("branch-decorations", style.show_branch_decorations),
        ]
        # hidden layers still collect their elements but stay out of the document
        self.groups = {"tree-area": tree_area}
        for name, shown in layers:
            group = draw.Group(id=name)
            self.groups[name] = group
            if shown:
                tree_area.append(group)

    def _text(self, text: str, point: Point, font_size: float, **kwargs) -> draw.Text:
        return draw.Text(text, font_size, point.x, point.y, font_family=self.font_family, **kwargs)

    def draw_clade_shade(self, area: Rect, fill: str) -> None:
        self.groups["shades"].append(draw.Rectangle(area.x, area.y, area.width, area.height, fill=_paint(fill)))

    def draw_collapsed_triangle(self, left, right_top, right_bottom, stroke, line_thickness) -> None:
        path = draw.Path(fill="none", stroke=_paint(stroke), stroke_width=line_thickness)
        path.M(*left).L(*right_top).L(*right_bottom).L(*left)
        self.groups["leaf-labels"].append(path)

    def draw_leaf_label(self, taxon, point, fill, font_size) -> None:
        self.groups["leaf-labels"].append(self._text(taxon, point, font_size, fill=_paint(fill)))

    def draw_node_value(self, value, point, fill, font_size) -> None:
        self.groups["node-values"].append(self._text(value, point, font_size, fill=_paint(fill)))

    def draw_branch_value(self, value, point, fill, font_size) -> None:
        self.groups["branch-values"].append(
            self._text(value, point, font_size, fill=_paint(fill), text_anchor="middle")
        )

    def draw_clade_label(self, clade_name, line_begin, line_end, text_point, line_thickness, font_size) -> None:
        group = draw.Group(id=clade_name)
        if line_thickness > 0:
            group.append(draw.Line(*line_begin, *line_end, stroke="black", stroke_width=line_thickness))
        group.append(self._text(clade_name, text_point, font_size))
        self.groups["clade-labels"].append(group)

    def draw_horizontal_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self.groups["branches"].append(
            draw.Line(*parent_point, *child_point, stroke=_paint(stroke), stroke_width=thickness)
        )

    def draw_vertical_branch(self, parent_point, child_point, stroke, thickness) -> None:
        self.groups["branches"].append(
            draw.Line(*child_point, *parent_point, stroke=_paint(stroke), stroke_width=thickness)
        )

    def draw_branch_decoration(self, target: Clade, decoration: BranchDecorationStyle) -> None:
        attributes = decoration_attributes(decoration)
        if decoration.decoration_type in (BranchDecorationType.CLOSED_CIRCLE, BranchDecorationType.OPEN_CIRCLE):
            center, radius = self.position_manager.calc_branch_decoration_circle_area(target, decoration)
            shape = draw.Circle(center.x, center.y, radius, **attributes)
        else:
            area = self.position_manager.calc_branch_decoration_rectangle_area(target, decoration)
            shape = draw.Rectangle(area.x, area.y, area.width, area.height, **attributes)
        self.groups["branch-decorations"].append(shape)

    def draw_scalebar(self, value, offset, line_begin, line_end, text_point, font_size, line_thickness) -> None:
        group = draw.Group(id="scale-bar", transform=f"translate({offset.x},{offset.y})")
        group.append(self._text(format_number(value), text_point, font_size, text_anchor="middle"))
        group.append(draw.Line(*line_begin, *line_end, stroke="black", stroke_width=line_thickness))
        self.document.append(group)
        self.groups["scale-bar"] = group

    def finish_tree(self) -> None:
        pass
