import logging

import pytest

from phylodraw import (
    BranchDecorationStyle,
    BranchDecorationType,
    CladeCollapseType,
    CladeStyle,
    CladeValueType,
    TreeStyle,
)


def test_tree_style_defaults():
    style = TreeStyle()
    assert (style.x_scale, style.y_scale) == (300, 30)
    assert style.default_branch_length == 0.1
    assert style.node_value_type is CladeValueType.SUPPORTS
    assert style.branch_value_type is CladeValueType.BRANCH_LENGTH
    assert style.collapse_type is CladeCollapseType.TOP_MAX
    assert style.decoration_styles == []
    assert style.branch_value_hide_regex is None


def test_clone_is_deep_for_decorations():
    style = TreeStyle(decoration_styles=[BranchDecorationStyle(regex_pattern="100")])
    copy = style.clone()
    assert copy == style
    copy.decoration_styles[0].shape_color = "red"
    copy.decoration_styles.append(BranchDecorationStyle())
    assert style.decoration_styles[0].shape_color == "black"
    assert len(style.decoration_styles) == 1


def test_from_dict_coerces_enums():
    style = TreeStyle.from_dict(
        {
            "x_scale": 50,
            "node_value_type": "BRANCH_LENGTH",
            "collapse_type": "constant",
            "decoration_styles": [{"regex_pattern": "^9", "decoration_type": "open_circle"}],
        }
    )
    assert style.x_scale == 50
    assert style.node_value_type is CladeValueType.BRANCH_LENGTH
    assert style.collapse_type is CladeCollapseType.CONSTANT
    assert style.decoration_styles[0].decoration_type is BranchDecorationType.OPEN_CIRCLE


def test_dict_roundtrip():
    style = TreeStyle(
        branch_value_hide_regex_pattern="100/100",
        decoration_styles=[BranchDecorationStyle(regex_pattern="^9", shape_size=3)],
    )
    data = style.to_dict()
    assert data["collapse_type"] == "top_max"
    assert data["decoration_styles"][0]["decoration_type"] == "closed_circle"
    assert TreeStyle.from_dict(data) == style


@pytest.mark.parametrize(
    "data",
    [
        {"x_scal": 1},
        {"collapse_type": "sideways"},
        {"decoration_styles": [{"shape": "star"}]},
    ],
)
def test_from_dict_rejects_unknown_values(data):
    with pytest.raises(ValueError):
        TreeStyle.from_dict(data)


def test_decoration_matching():
    decoration = BranchDecorationStyle(regex_pattern=r"^([8-9]\d|100)/([8-9]\d|100)$")
    assert decoration.matches("85/95")
    assert decoration.matches("100/100")
    assert not decoration.matches("20/30")
    assert not decoration.matches(None)
    assert not BranchDecorationStyle().matches("100/100")


def test_decoration_matching_searches():
    assert BranchDecorationStyle(regex_pattern="00").matches("100/100")


def test_invalid_regex_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        decoration = BranchDecorationStyle(regex_pattern="([")
        assert decoration.regex is None
        assert not decoration.matches("([")
    assert TreeStyle(branch_value_hide_regex_pattern="(").branch_value_hide_regex is None


def test_clade_style_apply_values():
    style = CladeStyle()
    other = CladeStyle(branch_color="red", collapsed=True, clade_label="hoge", y_scale=2)
    style.apply_values(other)
    assert style == other
    assert style is not other
    copy = style.clone()
    copy.branch_color = "blue"
    assert style.branch_color == "red"


def test_decoration_apply_values():
    decoration = BranchDecorationStyle()
    decoration.apply_values(BranchDecorationStyle(regex_pattern="x", enabled=False, shape_size=9))
    assert (decoration.regex_pattern, decoration.enabled, decoration.shape_size) == ("x", False, 9)
