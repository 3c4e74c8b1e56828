import math

import pytest

from phylodraw import Clade, TreeStyle
from phylodraw.parsers import TreeFormatError, parse_newick, read_newick, write_newick

from conftest import DUMMY_NEWICK


def test_parse_labels_and_lengths():
    tree = parse_newick(DUMMY_NEWICK)[0]
    root = tree.root
    assert len(root.children) == 3
    a, b, c = root.children
    assert (a.taxon, a.supports, a.branch_length) == ("A", None, 2)
    # internal labels are supports
    assert (b.taxon, b.supports, b.branch_length) == (None, "30/45", 2)
    assert c.branch_length == 1
    assert math.isnan(root.branch_length)


def test_missing_lengths_are_nan():
    tree = parse_newick("((A,B)90,C:0);")[0]
    a = tree.root.children[0].children[0]
    assert math.isnan(a.branch_length)
    assert math.isnan(tree.root.children[0].branch_length)
    assert tree.root.children[1].branch_length == 0
    assert tree.to_newick() == "((A,B)90,C:0);"


def test_unspecified_lengths_use_default_length():
    tree = parse_newick("((A,B:1)X,C:2);", TreeStyle(default_branch_length=0.5))[0]
    x, c = tree.root.children
    assert x.get_drawn_branch_length() == 0.5
    assert x.children[0].get_drawn_branch_length() == 0.5
    assert x.children[1].get_drawn_branch_length() == 1
    assert c.get_drawn_branch_length() == 2


def test_root_without_length_writes_no_length():
    tree = parse_newick(DUMMY_NEWICK)[0]
    assert math.isnan(tree.root.branch_length)
    assert tree.to_newick() == DUMMY_NEWICK
    assert not tree.to_newick().endswith(":0;")


def test_several_trees_get_their_own_style():
    style = TreeStyle(x_scale=10)
    trees = parse_newick("(A,B);\n(C,(D,E));", style)
    assert [len(list(t.get_all_leaves())) for t in trees] == [2, 3]
    assert trees[0].style == style
    assert trees[0].style is not style
    assert trees[0].style is not trees[1].style


def test_comments_are_ignored():
    tree = parse_newick("(A[&&NHX:x=1]:1,B:2);")[0]
    assert tree.to_newick() == "(A:1,B:2);"


def test_quoted_labels():
    tree = parse_newick("('A B':1,C:2);")[0]
    assert tree.root.children[0].taxon == "A B"
    assert tree.to_newick() == "('A B':1,C:2);"


def test_special_characters_are_quoted():
    root = Clade()
    root.add_child(Clade("it's", branch_length=1))
    root.add_child(Clade("x,y"))
    assert root.to_newick() == "('it''s':1,'x,y')"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "((A,B);",
        "(A,B));",
        "('A,B);",
        "(A:x,B);",
    ],
)
def test_malformed_input(text):
    with pytest.raises(TreeFormatError):
        parse_newick(text)


def test_format_error_is_value_error():
    with pytest.raises(ValueError):
        parse_newick("((A,B);")
    with pytest.raises(TypeError):
        parse_newick(None)


def test_read_write_roundtrip(tmp_path):
    path = tmp_path / "trees" / "dummy.nwk"
    trees = parse_newick(DUMMY_NEWICK + "\n(X:1,Y:2);")
    write_newick(trees, path)
    assert path.read_text(encoding="utf-8").splitlines() == [DUMMY_NEWICK, "(X:1,Y:2);"]

    loaded = read_newick(path, TreeStyle(y_scale=5))
    assert [t.to_newick() for t in loaded] == [DUMMY_NEWICK, "(X:1,Y:2);"]
    assert loaded[1].style.y_scale == 5


def test_write_single_tree(tmp_path):
    path = tmp_path / "one.nwk"
    write_newick(parse_newick("(A,B);")[0], path)
    assert path.read_text(encoding="utf-8") == "(A,B);\n"


def test_read_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_newick(tmp_path / "missing.nwk")
