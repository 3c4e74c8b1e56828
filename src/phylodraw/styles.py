from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from functools import lru_cache

logger = logging.getLogger(__name__)


class BranchDecorationType(Enum):
    CLOSED_CIRCLE = "closed_circle"
    OPEN_CIRCLE = "open_circle"
    CLOSED_RECTANGLE = "closed_rectangle"
    OPENED_RECTANGLE = "opened_rectangle"


class CladeCollapseType(Enum):
    """Which leaf depths bound the triangle drawn for a collapsed clade."""

    TOP_MAX = "top_max"
    BOTTOM_MAX = "bottom_max"
    ALL_MAX = "all_max"
    CONSTANT = "constant"


class CladeValueType(Enum):
    SUPPORTS = "supports"
    BRANCH_LENGTH = "branch_length"


class BranchColoringType(Enum):
    """Which branch axes use the clade's branch color."""

    BOTH = "both"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@lru_cache(maxsize=256)
def compile_pattern(pattern: str | None) -> re.Pattern | None:
    """Compile ``pattern``; empty or invalid patterns give ``None``."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Ignoring invalid regular expression %r: %s", pattern, e)
        return None


def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value, member.name.lower()):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}")


@dataclass
class CladeStyle:
    branch_color: str = "black"
    leaf_color: str = "black"
    collapsed: bool = False
    clade_label: str | None = None
    shade_color: str | None = None
    y_scale: float = 1.0

    def clone(self) -> "CladeStyle":
        return replace(self)

    def apply_values(self, other: "CladeStyle") -> None:
        """Copy every value of ``other`` into this style."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))


@dataclass
class BranchDecorationStyle:
    regex_pattern: str | None = None
    enabled: bool = True
    shape_size: float = 5
    decoration_type: BranchDecorationType = BranchDecorationType.CLOSED_CIRCLE
    shape_color: str = "black"

    @property
    def regex(self) -> re.Pattern | None:
        return compile_pattern(self.regex_pattern)

    def matches(self, supports: str | None) -> bool:
        regex = self.regex
        if regex is None or supports is None:
            return False
        return regex.search(supports) is not None

    def clone(self) -> "BranchDecorationStyle":
        return replace(self)

    def apply_values(self, other: "BranchDecorationStyle") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    @classmethod
    def from_dict(cls, data: dict) -> "BranchDecorationStyle":
        data = dict(data)
        if "decoration_type" in data:
            data["decoration_type"] = _coerce_enum(BranchDecorationType, data["decoration_type"])
        _check_keys(cls, data)
        return cls(**data)

    def to_dict(self) -> dict:
        return {
            "regex_pattern": self.regex_pattern,
            "enabled": self.enabled,
            "shape_size": self.shape_size,
            "decoration_type": self.decoration_type.value,
            "shape_color": self.shape_color,
        }


@dataclass
class TreeStyle:
    """Tree-wide drawing settings.

    Scales are in document units per unit of branch length (``x_scale``) and
    per external node (``y_scale``).
    """

    x_scale: float = 300
    y_scale: float = 30
    branch_thickness: float = 1
    default_branch_length: float = 0.1

    show_leaf_labels: bool = True
    leaf_labels_font_size: float = 20

    show_clade_labels: bool = True
    clade_labels_font_size: float = 20
    clade_labels_line_thickness: float = 5

    show_node_values: bool = True
    node_value_type: CladeValueType = CladeValueType.SUPPORTS
    node_value_font_size: float = 15

    show_branch_values: bool = True
    branch_value_type: CladeValueType = CladeValueType.BRANCH_LENGTH
    branch_value_font_size: float = 15
    branch_value_hide_regex_pattern: str | None = None

    show_branch_decorations: bool = True
    decoration_styles: list[BranchDecorationStyle] = field(default_factory=list)

    show_scale_bar: bool = True
    scale_bar_value: float = 0.1
    scale_bar_font_size: float = 25
    scale_bar_thickness: float = 5

    collapse_type: CladeCollapseType = CladeCollapseType.TOP_MAX
    collapsed_constant_width: float = 1

    @property
    def branch_value_hide_regex(self) -> re.Pattern | None:
        return compile_pattern(self.branch_value_hide_regex_pattern)

    def clone(self) -> "TreeStyle":
        return replace(self, decoration_styles=[d.clone() for d in self.decoration_styles])

    @classmethod
    def from_dict(cls, data: dict) -> "TreeStyle":
        """Build a style from plain (JSON) values; enums may be given by name."""
        data = dict(data)
        _check_keys(cls, data)
        for key, enum_cls in (
            ("node_value_type", CladeValueType),
            ("branch_value_type", CladeValueType),
            ("collapse_type", CladeCollapseType),
        ):
            if key in data:
                data[key] = _coerce_enum(enum_cls, data[key])
        if "decoration_styles" in data:
            data["decoration_styles"] = [
                d if isinstance(d, BranchDecorationStyle) else BranchDecorationStyle.from_dict(d)
                for d in data["decoration_styles"] or []
            ]
        return cls(**data)

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif f.name == "decoration_styles":
                value = [d.to_dict() for d in value]
            result[f.name] = value
        return result


def _check_keys(cls, data: dict) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {', '.join(unknown)}")
