import logging

import pytest

from phylodraw import BranchDecorationStyle, BranchDecorationType, CladeCollapseType, CladeValueType, TreeStyle
from phylodraw.geometry import Size
from phylodraw.parsers import parse_newick

DUMMY_NEWICK = "(A:2,((BAA:5,BAB:3)20/30:1,((BBAA:2,BBAB:1)85/95:1,BBB:3)100/100:2)30/45:2,C:1);"


def pytest_configure(config):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def fake_measure(text, font_size):
    # Monospace-ish heuristic: average character ~0.6*font_size
    return Size(0.6 * font_size * len(text), font_size)


@pytest.fixture
def measurer():
    return fake_measure


@pytest.fixture
def dummy_tree():
    """
    Root children: A, B (30/45), C.
    B = (BA 20/30: BAA, BAB), (BB 100/100: (BBA 85/95: BBAA, BBAB), BBB).
    """
    return parse_newick(DUMMY_NEWICK)[0]


@pytest.fixture
def small_style():
    """Round numbers: 10 units per branch length unit and per leaf, no labels."""
    return TreeStyle(
        x_scale=10,
        y_scale=10,
        branch_thickness=1,
        default_branch_length=1,
        show_leaf_labels=False,
        show_clade_labels=False,
        show_node_values=False,
        show_branch_values=False,
        show_branch_decorations=False,
        show_scale_bar=False,
    )


@pytest.fixture
def dummy_style():
    return TreeStyle(
        x_scale=10,
        y_scale=10,
        branch_thickness=10,
        default_branch_length=1,
        show_leaf_labels=False,
        leaf_labels_font_size=1,
        show_clade_labels=False,
        clade_labels_font_size=1,
        clade_labels_line_thickness=1,
        show_node_values=False,
        node_value_type=CladeValueType.BRANCH_LENGTH,
        node_value_font_size=1,
        show_branch_values=False,
        branch_value_type=CladeValueType.SUPPORTS,
        branch_value_font_size=1,
        branch_value_hide_regex_pattern="100/100",
        show_branch_decorations=False,
        decoration_styles=[
            BranchDecorationStyle(
                regex_pattern="100/100",
                shape_size=1,
                decoration_type=BranchDecorationType.OPEN_CIRCLE,
                shape_color="red",
            )
        ],
        show_scale_bar=False,
        scale_bar_value=3,
        scale_bar_font_size=50,
        scale_bar_thickness=10,
        collapse_type=CladeCollapseType.CONSTANT,
        collapsed_constant_width=2,
    )


def clade_named(tree, label):
    """Find a clade by taxon or support label."""
    for clade in tree.get_all_clades():
        if label in (clade.taxon, clade.supports):
            return clade
    raise KeyError(label)
