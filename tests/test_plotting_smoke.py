import pytest


def test_svg_plot_full_style_smoke():
    """SvgDrawer should draw every element kind with the real font metrics."""
    from phylodraw import BranchDecorationStyle, BranchDecorationType, TreeStyle, parse_newick
    from phylodraw.drawing import SvgDrawer

    style = TreeStyle(
        decoration_styles=[
            BranchDecorationStyle(regex_pattern="100", decoration_type=t) for t in BranchDecorationType
        ]
    )
    tree = parse_newick("((A:1,B:1)100:1,((C:1,D:2)100:1,E:2)80:1,F:2);", style)[0]
    tree.root.children[1].style.collapsed = True
    tree.root.children[0].style.clade_label = "AB"
    tree.root.children[0].style.shade_color = "rgba(0,0,255,64)"

    drawer = SvgDrawer()
    drawer.draw(tree)
    assert "AB" in drawer.as_svg()


def test_png_plot_rerooted_smoke():
    """Drawing a rerooted copy should not crash and keep the original drawable."""
    from phylodraw import parse_newick
    from phylodraw.drawing import PngDrawer

    tree = parse_newick("((A:1,B:1):1,C:2,D:1);")[0]
    rerooted = tree.rerooted(tree.root.children[0], True)
    for t in (tree, rerooted):
        drawer = PngDrawer()
        drawer.draw(t)
        assert drawer.image.getbbox() is not None


def test_pdf_plot_smoke():
    """PdfDrawer should produce a PDF when cairosvg is installed."""
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        pytest.skip("cairosvg (with the cairo library) is not available")
    from phylodraw import parse_newick
    from phylodraw.drawing import PdfDrawer

    tree = parse_newick("((A:1,B:1)90:1,C:2);")[0]
    drawer = PdfDrawer()
    drawer.draw(tree)
    assert drawer.as_pdf().startswith(b"%PDF")
