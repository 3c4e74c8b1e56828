import json

import pytest

from phylodraw import __version__
from phylodraw.cli import get_phylodraw_parser, phylodraw_main

from conftest import DUMMY_NEWICK


@pytest.fixture
def newick_file(tmp_path):
    path = tmp_path / "dummy.nwk"
    path.write_text(DUMMY_NEWICK + "\n(X:1,Y:2);\n", encoding="utf-8")
    return path


def test_parser_requires_subcommand():
    with pytest.raises(SystemExit):
        get_phylodraw_parser().parse_args([])


def test_version(capsys):
    with pytest.raises(SystemExit):
        phylodraw_main(["--version"])
    assert __version__ in capsys.readouterr().out


def test_newick_roundtrip(newick_file, capsys):
    phylodraw_main(["newick", str(newick_file)])
    assert capsys.readouterr().out.strip() == DUMMY_NEWICK


def test_newick_index(newick_file, capsys):
    phylodraw_main(["newick", str(newick_file), "-i", "1"])
    assert capsys.readouterr().out.strip() == "(X:1,Y:2);"


def test_newick_order(newick_file, capsys):
    phylodraw_main(["newick", str(newick_file), "--order", "desc"])
    assert capsys.readouterr().out.strip() == (
        "(((BAA:5,BAB:3)20/30:1,((BBAA:2,BBAB:1)85/95:1,BBB:3)100/100:2)30/45:2,A:2,C:1);"
    )


def test_newick_reroot(newick_file, capsys):
    phylodraw_main(["newick", str(newick_file), "--reroot", "BBAA", "BBB"])
    assert capsys.readouterr().out.strip() == (
        "((BBAA:2,BBAB:1)85/95:1,BBB:3,((BAA:5,BAB:3)20/30:1,(A:2,C:1)30/45:2)100/100:2);"
    )


def test_newick_reroot_rooted(newick_file, capsys):
    phylodraw_main(["newick", str(newick_file), "--reroot", "BAA", "BBB", "--rooted"])
    assert capsys.readouterr().out.strip() == (
        "(((BAA:5,BAB:3)20/30:1,((BBAA:2,BBAB:1)85/95:1,BBB:3)100/100:2)30/45:1,(A:2,C:1)30/45:1);"
    )


@pytest.mark.parametrize(
    "args, message",
    [
        (["--index", "5"], "Load error"),
        (["--reroot", "nope"], "Edit error"),
        (["--reroot", "A"], "Edit error"),
    ],
)
def test_errors_exit_with_message(newick_file, args, message):
    with pytest.raises(SystemExit) as info:
        phylodraw_main(["newick", str(newick_file), *args])
    assert message in str(info.value.code)


def test_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit) as info:
        phylodraw_main(["info", str(tmp_path / "missing.nwk")])
    assert "Load error" in str(info.value.code)


def test_malformed_file_exits(tmp_path):
    path = tmp_path / "bad.nwk"
    path.write_text("((A,B);", encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        phylodraw_main(["info", str(path)])
    assert "Load error" in str(info.value.code)


def test_info(newick_file, capsys):
    phylodraw_main(["info", str(newick_file)])
    out = capsys.readouterr().out
    lines = [line.rsplit(maxsplit=1) for line in out.splitlines()]
    assert lines == [
        ["leaves:", "7"],
        ["clades:", "12"],
        ["internal (incl. root):", "5"],
        ["rooted:", "False"],
    ]


def test_layout_csv(newick_file, capsys):
    phylodraw_main(["layout", str(newick_file)])
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "taxon,supports,x1,x2,y1,y2,total_length,y_scale,external"
    assert len(lines) == 13


def test_render_svg_with_style(tmp_path, newick_file):
    style_path = tmp_path / "style.json"
    style_path.write_text(json.dumps({"x_scale": 10, "show_scale_bar": False}), encoding="utf-8")
    out = tmp_path / "tree.svg"
    phylodraw_main(["render", str(newick_file), str(out), "--style", str(style_path)])
    text = out.read_text(encoding="utf-8")
    assert 'id="tree-area"' in text
    assert 'id="scale-bar"' not in text


def test_render_png_with_format(tmp_path, newick_file):
    out = tmp_path / "tree.out"
    phylodraw_main(["render", str(newick_file), str(out), "--format", "png", "--background", "white"])
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_unknown_extension(tmp_path, newick_file):
    with pytest.raises(SystemExit) as info:
        phylodraw_main(["render", str(newick_file), str(tmp_path / "tree.gif")])
    assert "export format" in str(info.value.code)


def test_render_bad_style(tmp_path, newick_file):
    style_path = tmp_path / "style.json"
    style_path.write_text(json.dumps({"colour": "red"}), encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        phylodraw_main(["render", str(newick_file), str(tmp_path / "t.svg"), "--style", str(style_path)])
    assert "Style error" in str(info.value.code)
