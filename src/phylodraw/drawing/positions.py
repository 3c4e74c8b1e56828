from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import pandas as pd

from ..geometry import Point, Rect, Size
from ..styles import BranchDecorationStyle, CladeCollapseType, TreeStyle
from ..tree import Clade, Tree
from ..utils import format_number
from .fonts import measure_text

logger = logging.getLogger(__name__)

TextMeasurer = Callable[[str, float], Size]

#
# y1   +----clade
#      |
# y2   |
#   parent
#      x1  x2
#


@dataclass
class PositionInfo:
    x1: float | None = None
    x2: float | None = None
    y1: float | None = None
    y2: float | None = None
    total_length: float | None = None
    y_scale: float | None = None


class PositionManager:
    """Lazily computed and cached coordinates of the clades of one tree.

    Coordinates are relative to the tree area: x grows with the cumulative
    branch length, y with the order of the external nodes (leaves and
    collapsed clades). ``reset`` must be called whenever the tree, its
    topology or its style changes.

    Parameters
    ----------
    tree:
        Tree to lay out; may be given later through :meth:`reset`.
    text_measurer:
        ``(text, font_size) -> Size`` used for every label extent. Defaults
        to Pillow font metrics.
    """

    def __init__(self, tree: Tree | None = None, text_measurer: TextMeasurer | None = None):
        self.text_measurer = text_measurer if text_measurer is not None else measure_text
        self._positions: dict[Clade, PositionInfo] = {}
        self._external_nodes: list[Clade] = []
        self._index_table: dict[Clade, int] = {}
        self._style = TreeStyle()
        if tree is not None:
            self.reset(tree)

    @property
    def style(self) -> TreeStyle:
        return self._style

    @property
    def external_nodes(self) -> tuple[Clade, ...]:
        return tuple(self._external_nodes)

    def clear_cache(self) -> None:
        self._positions.clear()

    def reset(self, tree: Tree) -> None:
        if tree is None:
            raise TypeError("tree must not be None")
        self._positions.clear()
        self._style = tree.style
        self._external_nodes = list(tree.get_all_external_nodes())
        self._index_table = {clade: i for i, clade in enumerate(self._external_nodes)}
        logger.debug("Layout reset: %d external node(s)", len(self._external_nodes))

    def _info(self, clade: Clade) -> PositionInfo:
        info = self._positions.get(clade)
        if info is None:
            info = PositionInfo()
            self._positions[clade] = info
        return info

    def calc_text_size(self, text: str | None, font_size: float) -> Size:
        if not text:
            return Size(0.0, 0.0)
        return Size(*self.text_measurer(text, font_size))

    # --- primary coordinates ---------------------------------------------

    def calc_total_branch_length(self, clade: Clade) -> float:
        """Cumulative drawn branch length from the root to ``clade``."""
        info = self._info(clade)
        if info.total_length is None:
            chain = []
            node = clade
            while node is not None and self._info(node).total_length is None:
                chain.append(node)
                node = node.parent
            for node in reversed(chain):
                if node.parent is None:
                    self._info(node).total_length = 0.0
                else:
                    parent_total = self._info(node.parent).total_length
                    self._info(node).total_length = parent_total + node.get_drawn_branch_length()
        return info.total_length

    def calc_x1(self, clade: Clade) -> float:
        info = self._info(clade)
        if info.x1 is None:
            drawn = clade.get_drawn_branch_length()
            info.x1 = (self.calc_total_branch_length(clade) - drawn) * self._style.x_scale
        return info.x1

    def calc_x2(self, clade: Clade) -> float:
        info = self._info(clade)
        if info.x2 is None:
            if clade.get_drawn_branch_length() > 0:
                info.x2 = self.calc_total_branch_length(clade) * self._style.x_scale
            else:
                info.x2 = self.calc_x1(clade)
        return info.x2

    def calc_y_scale(self, clade: Clade) -> float:
        """Vertical room of ``clade``: tree scale times the per-node scales down to it."""
        info = self._info(clade)
        if info.y_scale is None:
            chain = []
            node = clade
            while node is not None and self._info(node).y_scale is None:
                chain.append(node)
                node = node.parent
            for node in reversed(chain):
                if node.parent is None:
                    scale = self._style.y_scale * node.style.y_scale
                else:
                    scale = node.style.y_scale * self._info(node.parent).y_scale
                self._info(node).y_scale = scale
        return info.y_scale

    def calc_y1(self, clade: Clade) -> float:
        """Vertical position of the horizontal branch of ``clade``."""
        info = self._info(clade)
        if info.y1 is None:
            if clade.is_external:
                self._fill_external_y1(clade)
            else:
                self._fill_internal_y1(clade)
        return info.y1

    def _fill_external_y1(self, clade: Clade) -> None:
        try:
            index = self._index_table[clade]
        except KeyError:
            raise ValueError(f"{clade!r} is not a visible external node of the laid out tree") from None

        start = index
        while start > 0 and self._info(self._external_nodes[start - 1]).y1 is None:
            start -= 1
        for i in range(start, index + 1):
            current = self._external_nodes[i]
            if i == 0:
                y1 = 0.0
            else:
                prev = self._external_nodes[i - 1]
                prev_scale = self.calc_y_scale(prev)
                y1 = self._info(prev).y1 + (prev_scale / 2 if prev.style.collapsed else prev_scale)
            if current.style.collapsed:
                y1 += self.calc_y_scale(current) / 2
            self._info(current).y1 = y1

    def _fill_internal_y1(self, clade: Clade) -> None:
        # Post-order over the visible internal nodes, so that every child line
        # is known before its parent is centred on it.
        stack = [(clade, False)]
        while stack:
            node, expanded = stack.pop()
            info = self._info(node)
            if expanded:
                children = node.children
                if len(children) == 1:
                    info.y1 = self.calc_y2(children[0])
                else:
                    info.y1 = (self.calc_y2(children[0]) + self.calc_y2(children[-1])) / 2
                continue
            if info.y1 is not None:
                continue
            if node.is_external:
                self._fill_external_y1(node)
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)

    def calc_y2(self, clade: Clade) -> float:
        """Vertical end of the connector drawn from ``clade`` toward its parent's line."""
        info = self._info(clade)
        if info.y2 is None:
            info.y2 = self._y2_core(clade, self.calc_y1(clade))
        return info.y2

    def _y2_core(self, clade: Clade, y1: float) -> float:
        parent = clade.parent
        if parent is None:
            return y1

        sisters = parent.children
        index = next(i for i, sister in enumerate(sisters) if sister is clade)
        half_count, count_rem = divmod(len(sisters), 2)

        if count_rem == 1 and index == half_count:
            return y1
        if index < half_count:
            length = self.calc_y1(sisters[index + 1]) - y1
            if count_rem == 0 and index + 1 == half_count:
                length /= 2
            return y1 + length
        length = y1 - self.calc_y1(sisters[index - 1])
        if count_rem == 0 and index == half_count:
            length /= 2
        return y1 - length

    # --- derived geometry ------------------------------------------------

    def _max_leaf_total(self, clade: Clade) -> float:
        return max(
            (self.calc_total_branch_length(c) for c in clade.get_descendants() if c.is_leaf),
            default=self.calc_total_branch_length(clade),
        )

    def _min_leaf_total(self, clade: Clade) -> float:
        return min(
            (self.calc_total_branch_length(c) for c in clade.get_descendants() if c.is_leaf),
            default=self.calc_total_branch_length(clade),
        )

    def calc_document_size(self) -> Size:
        style = self._style
        if not self._external_nodes:
            return Size(0.0, 100.0)

        root = self._external_nodes[0].find_root()
        width = self._max_leaf_total(root) * style.x_scale + 100

        if style.show_leaf_labels:
            width += max(
                self.calc_text_size(c.taxon, style.leaf_labels_font_size).width for c in self._external_nodes
            )
        if style.show_clade_labels:
            max_length = max(
                self.calc_text_size(c.style.clade_label, style.clade_labels_font_size).width
                for c in (root, *root.get_descendants())
            )
            if max_length > 0:
                width += max_length + style.clade_labels_line_thickness + 20

        height = sum(self.calc_y_scale(c) for c in self._external_nodes) + 100
        if style.show_scale_bar:
            height += self.calc_text_size(format_number(style.scale_bar_value), style.scale_bar_font_size).height + 20

        return Size(width, height)

    def calc_clade_shade_position(self, clade: Clade) -> Rect:
        def x_right_of(external: Clade) -> float:
            x, _, width, _ = self.calc_leaf_position(external)
            return x + width

        x_left = (self.calc_x1(clade) + self.calc_x2(clade)) / 2
        half_leaf_height = self.calc_y_scale(clade) / 2

        if clade.is_external:
            if clade.is_leaf:
                x_right = x_right_of(clade)
            else:
                max_length = self._max_leaf_total(clade)
                x_right = self.calc_x2(clade) + (max_length - self.calc_total_branch_length(clade)) * self._style.x_scale
            y1 = self.calc_y1(clade)
            y_top = y1 - half_leaf_height
            y_bottom = y1 + half_leaf_height
        else:
            externals = list(clade.get_all_external_descendants())
            x_right = max(x_right_of(c) for c in externals)
            y_top = self.calc_y1(externals[0]) - half_leaf_height
            y_bottom = self.calc_y1(externals[-1]) + half_leaf_height

        return Rect(x_left, y_top, x_right - x_left + 5, y_bottom - y_top)

    def calc_collapse_triangle_positions(self, clade: Clade) -> tuple[Point, Point, Point]:
        """Left tip, right-top and right-bottom corners of a collapsed clade's triangle."""
        style = self._style
        collapse_type = style.collapse_type
        if collapse_type is CladeCollapseType.CONSTANT:
            right_top = right_bottom = style.collapsed_constant_width
        else:
            max_length = self._max_leaf_total(clade)
            min_length = self._min_leaf_total(clade)
            if collapse_type is CladeCollapseType.TOP_MAX:
                right_top, right_bottom = max_length, min_length
            elif collapse_type is CladeCollapseType.BOTTOM_MAX:
                right_top, right_bottom = min_length, max_length
            else:
                right_top = right_bottom = max_length
            total = self.calc_total_branch_length(clade)
            right_top -= total
            right_bottom -= total

        x_left, y, _, _ = self.calc_leaf_position(clade)
        x_left -= 5
        y_offset = max(self.calc_y_scale(clade) / 2 - 7, 0)
        return (
            Point(x_left, y),
            Point(right_top * style.x_scale + x_left, y - y_offset),
            Point(right_bottom * style.x_scale + x_left, y + y_offset),
        )

    def calc_leaf_position(self, clade: Clade) -> Rect:
        """Baseline origin and extent of the leaf label of ``clade``."""
        width, height = self.calc_text_size(clade.taxon, self._style.leaf_labels_font_size)
        x = self.calc_total_branch_length(clade) * self._style.x_scale + 5
        y = self.calc_y1(clade) + height / 2
        return Rect(x, y, width, height)

    def calc_clade_label_position(self, clade: Clade) -> tuple[Point, Point, Point]:
        """Top and bottom of the clade label bar, then the label's text origin."""
        style = self._style
        if clade.is_leaf:
            x, y, width, height = self.calc_leaf_position(clade)
            if style.show_leaf_labels:
                x += width + 10
            y_top = y - height
            y_bottom = y_top + self.calc_y_scale(clade)
        elif clade.style.collapsed:
            max_length = self._max_leaf_total(clade)
            x = self.calc_x2(clade) + (max_length - self.calc_total_branch_length(clade)) * style.x_scale + 10
            height = self.calc_text_size(clade.style.clade_label, style.clade_labels_font_size).height
            y1 = self.calc_y1(clade)
            half = self.calc_y_scale(clade) / 2
            y_top = y1 - half
            y_bottom = y1 + half
            y = (y_top + y_bottom) / 2 + height / 2
        else:
            height = self.calc_text_size(clade.style.clade_label, style.clade_labels_font_size).height

            def reach(external: Clade) -> float:
                result = self.calc_total_branch_length(external) * style.x_scale
                if style.show_leaf_labels and external.taxon:
                    result += self.calc_text_size(external.taxon, style.leaf_labels_font_size).width + 15
                return result

            externals = list(clade.get_all_external_descendants())
            x = max(reach(c) for c in externals)
            half = self.calc_y_scale(clade) / 2
            y_top = self.calc_y1(externals[0]) - half
            y_bottom = self.calc_y1(externals[-1]) + half
            y = (y_top + y_bottom) / 2 + height / 2

        thickness = style.clade_labels_line_thickness
        line_x = x + thickness / 2
        return Point(line_x, y_top), Point(line_x, y_bottom), Point(x + thickness + 5, y)

    def calc_horizontal_branch_positions(self, clade: Clade) -> tuple[Point, Point]:
        thickness = self._style.branch_thickness
        x_parent = self.calc_x1(clade) - thickness / 2
        x_child = self.calc_x2(clade)
        if clade.is_leaf:
            x_child += thickness / 2
        y = self.calc_y1(clade)
        return Point(x_parent, y), Point(x_child, y)

    def calc_vertical_branch_positions(self, clade: Clade) -> tuple[Point, Point]:
        x = self.calc_x1(clade)
        return Point(x, self.calc_y2(clade)), Point(x, self.calc_y1(clade))

    def calc_node_value_position(self, clade: Clade, text: str) -> Point:
        x = self.calc_total_branch_length(clade) * self._style.x_scale + 5
        height = self.calc_text_size(text, self._style.node_value_font_size).height
        y = self.calc_y1(clade) + height / 2
        # an odd child count puts the middle branch on the node's line
        if len(clade.children) % 2 == 1:
            y += self._style.branch_thickness / 2 + height / 2 + 3
        return Point(x, y)

    def calc_node_decoration_rectangle_area(self, clade: Clade) -> Rect:
        size = 5
        return Rect(self.calc_x2(clade) - size, self.calc_y1(clade) - size, size * 2, size * 2)

    def calc_branch_value_position(self, clade: Clade, text: str) -> Point:
        x = (self.calc_x1(clade) + self.calc_x2(clade)) / 2
        height = self.calc_text_size(text, self._style.branch_value_font_size).height
        y = self.calc_y1(clade) - height / 2 - self._style.branch_thickness / 2
        return Point(x, y)

    def calc_branch_decoration_rectangle_area(self, clade: Clade, decoration_style: BranchDecorationStyle) -> Rect:
        if decoration_style is None:
            raise TypeError("decoration_style must not be None")
        size = decoration_style.shape_size
        x = (self.calc_x1(clade) + self.calc_x2(clade)) / 2 - size
        return Rect(x, self.calc_y1(clade) - size, size * 2, size * 2)

    def calc_branch_decoration_circle_area(
        self, clade: Clade, decoration_style: BranchDecorationStyle
    ) -> tuple[Point, float]:
        if decoration_style is None:
            raise TypeError("decoration_style must not be None")
        x = (self.calc_x1(clade) + self.calc_x2(clade)) / 2
        return Point(x, self.calc_y1(clade)), decoration_style.shape_size

    def calc_scale_bar_offset(self) -> Point:
        """Document position of the scale bar group."""
        text_size = self.calc_text_size(format_number(self._style.scale_bar_value), self._style.scale_bar_font_size)
        y = sum(self.calc_y_scale(c) for c in self._external_nodes) + 30 + text_size.height
        return Point(50 + text_size.width / 2, 20 + y)

    def calc_scale_bar_positions(self) -> tuple[Point, Point, Point]:
        """Bar start, bar end and text origin, relative to the scale bar offset."""
        bar_width = self._style.scale_bar_value * self._style.x_scale
        return Point(0, 10), Point(bar_width, 10), Point(bar_width / 2, 0)

    # --- tabular dump ----------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """One row per visible clade with its computed coordinates."""
        if not self._external_nodes:
            return pd.DataFrame(
                columns=["taxon", "supports", "x1", "x2", "y1", "y2", "total_length", "y_scale", "external"]
            )
        root = self._external_nodes[0].find_root()
        rows = []
        for clade in (root, *root.get_descendants()):
            if clade.is_hidden:
                continue
            rows.append(
                {
                    "taxon": clade.taxon,
                    "supports": clade.supports,
                    "x1": self.calc_x1(clade),
                    "x2": self.calc_x2(clade),
                    "y1": self.calc_y1(clade),
                    "y2": self.calc_y2(clade),
                    "total_length": self.calc_total_branch_length(clade),
                    "y_scale": self.calc_y_scale(clade),
                    "external": clade.is_external,
                }
            )
        return pd.DataFrame(rows)
