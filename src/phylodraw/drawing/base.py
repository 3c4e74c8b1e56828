from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ..geometry import Point, Rect, Size
from ..styles import BranchColoringType, BranchDecorationStyle, CladeValueType
from ..tree import Clade, Tree
from ..utils import format_number
from .positions import PositionManager, TextMeasurer

logger = logging.getLogger(__name__)

NEUTRAL_COLOR = "black"


@dataclass
class DrawingOptions:
    branch_coloring: BranchColoringType = BranchColoringType.BOTH


def select_show_value(clade: Clade, value_type: CladeValueType) -> str:
    """Text shown for a node or branch value; empty when there is nothing to show."""
    if value_type is CladeValueType.SUPPORTS:
        return (clade.supports or "").strip()
    if value_type is CladeValueType.BRANCH_LENGTH:
        if math.isnan(clade.branch_length):
            return ""
        return format_number(clade.branch_length)
    raise ValueError(f"Unknown value type: {value_type!r}")


class TreeDrawer:
    """Walks a tree and emits drawing primitives to a backend.

    Subclasses implement the primitives (``init_document``, ``begin_tree``,
    ``draw_*`` and ``finish_tree``). :meth:`draw` calls them in a fixed order,
    at most once per element, and never modifies the tree.
    """

    def __init__(self, text_measurer: TextMeasurer | None = None):
        self.position_manager = PositionManager(text_measurer=text_measurer)

    def draw(self, tree: Tree, options: DrawingOptions | None = None) -> None:
        if tree is None:
            raise TypeError("tree must not be None")
        options = options if options is not None else DrawingOptions()
        pm = self.position_manager
        style = tree.style

        pm.reset(tree)
        self.init_document()
        size = pm.calc_document_size()
        self.begin_tree(size, tree)

        color_horizontal = options.branch_coloring in (BranchColoringType.BOTH, BranchColoringType.HORIZONTAL)
        color_vertical = options.branch_coloring in (BranchColoringType.BOTH, BranchColoringType.VERTICAL)
        hide_regex = style.branch_value_hide_regex

        for clade in tree.get_all_clades():
            if clade.is_hidden:
                continue

            if clade.style.shade_color:
                self.draw_clade_shade(pm.calc_clade_shade_position(clade), clade.style.shade_color)

            if clade.is_external and not clade.is_leaf:
                left, right_top, right_bottom = pm.calc_collapse_triangle_positions(clade)
                self.draw_collapsed_triangle(
                    left, right_top, right_bottom, clade.style.branch_color, style.branch_thickness
                )

            if clade.is_leaf:
                if style.show_leaf_labels and clade.taxon:
                    x, y, _, _ = pm.calc_leaf_position(clade)
                    self.draw_leaf_label(clade.taxon, Point(x, y), clade.style.leaf_color, style.leaf_labels_font_size)
            elif style.show_node_values and not clade.is_external:
                value = select_show_value(clade, style.node_value_type)
                if value:
                    point = pm.calc_node_value_position(clade, value)
                    self.draw_node_value(value, point, clade.style.branch_color, style.node_value_font_size)

            if style.show_clade_labels and clade.style.clade_label:
                line_begin, line_end, text_point = pm.calc_clade_label_position(clade)
                self.draw_clade_label(
                    clade.style.clade_label,
                    line_begin,
                    line_end,
                    text_point,
                    style.clade_labels_line_thickness,
                    style.clade_labels_font_size,
                )

            if clade.get_drawn_branch_length() > 0:
                parent_point, child_point = pm.calc_horizontal_branch_positions(clade)
                color = clade.style.branch_color if color_horizontal else NEUTRAL_COLOR
                self.draw_horizontal_branch(parent_point, child_point, color, style.branch_thickness)

                if style.show_branch_decorations and clade.supports:
                    for decoration in style.decoration_styles:
                        if decoration.enabled and decoration.matches(clade.supports):
                            self.draw_branch_decoration(clade, decoration)

                if style.show_branch_values:
                    value = select_show_value(clade, style.branch_value_type)
                    if value and (hide_regex is None or not hide_regex.search(value)):
                        point = pm.calc_branch_value_position(clade, value)
                        self.draw_branch_value(value, point, clade.style.branch_color, style.branch_value_font_size)

            parent = clade.parent
            if parent is not None and len(parent.children) > 1:
                parent_point, child_point = pm.calc_vertical_branch_positions(clade)
                if parent_point.y != child_point.y:
                    color = clade.style.branch_color if color_vertical else NEUTRAL_COLOR
                    self.draw_vertical_branch(parent_point, child_point, color, style.branch_thickness)

        if style.show_scale_bar and style.scale_bar_value > 0:
            offset = pm.calc_scale_bar_offset()
            line_begin, line_end, text_point = pm.calc_scale_bar_positions()
            self.draw_scalebar(
                style.scale_bar_value,
                offset,
                line_begin,
                line_end,
                text_point,
                style.scale_bar_font_size,
                style.scale_bar_thickness,
            )

        self.finish_tree()
        logger.debug("Drew tree with %s (document %.1f x %.1f)", type(self).__name__, size.width, size.height)

    # --- backend primitives ----------------------------------------------

    def init_document(self) -> None:
        raise NotImplementedError

    def begin_tree(self, size: Size, tree: Tree) -> None:
        raise NotImplementedError

    def draw_clade_shade(self, area: Rect, fill: str) -> None:
        raise NotImplementedError

    def draw_collapsed_triangle(
        self, left: Point, right_top: Point, right_bottom: Point, stroke: str, line_thickness: float
    ) -> None:
        raise NotImplementedError

    def draw_leaf_label(self, taxon: str, point: Point, fill: str, font_size: float) -> None:
        raise NotImplementedError

    def draw_node_value(self, value: str, point: Point, fill: str, font_size: float) -> None:
        raise NotImplementedError

    def draw_branch_value(self, value: str, point: Point, fill: str, font_size: float) -> None:
        raise NotImplementedError

    def draw_clade_label(
        self,
        clade_name: str,
        line_begin: Point,
        line_end: Point,
        text_point: Point,
        line_thickness: float,
        font_size: float,
    ) -> None:
        raise NotImplementedError

    def draw_horizontal_branch(self, parent_point: Point, child_point: Point, stroke: str, thickness: float) -> None:
        raise NotImplementedError

    def draw_vertical_branch(self, parent_point: Point, child_point: Point, stroke: str, thickness: float) -> None:
        raise NotImplementedError

    def draw_branch_decoration(self, target: Clade, decoration: BranchDecorationStyle) -> None:
        raise NotImplementedError

    def draw_scalebar(
        self,
        value: float,
        offset: Point,
        line_begin: Point,
        line_end: Point,
        text_point: Point,
        font_size: float,
        line_thickness: float,
    ) -> None:
        raise NotImplementedError

    def finish_tree(self) -> None:
        raise NotImplementedError
