import math

import pytest
from phylodraw.geometry import Color, Point, Rect
from phylodraw.utils import format_number, parse_color, to_hex, to_rgb, to_rgba

def test_to_rgb():
    assert to_rgb("#ffffff") == (255, 255, 255)
    assert to_rgb("#000") == (0, 0, 0)
    assert to_rgb("red") == (255, 0, 0)
    assert to_rgb("rgb(1, 2, 3)") == (1, 2, 3)
    assert to_rgb("invalid") == (0, 0, 0)

def test_to_rgba():
    assert to_rgba("rgba(10,20,30,128)") == (10, 20, 30, 128)
    assert to_rgba("#ff000080") == (255, 0, 0, 128)
    assert to_rgba("lightblue") == (173, 216, 230, 255)
    assert to_rgba(None) == (0, 0, 0, 255)

def test_parse_color_rejects_out_of_range():
    assert parse_color("rgb(256,0,0)") is None
    assert parse_color("rgba(0,0,0,300)") is None
    assert parse_color("") is None
    assert parse_color("not-a-color") is None

def test_to_hex():
    assert to_hex((255, 255, 255)) == "#ffffff"
    assert to_hex((0, 0, 0)) == "#000000"
    # Test clipping
    assert to_hex((300, -10, 100)) == "#ff0064"

def test_format_number():
    assert format_number(2) == "2"
    assert format_number(2.0) == "2"
    assert format_number(0.1) == "0.1"
    assert format_number(-1.5) == "-1.5"
    assert format_number(math.nan) == "NaN"

def test_color_to_svg():
    assert Color("red").to_svg() == "red"
    assert Color(" #00ff00 ").to_svg() == "#00ff00"
    assert Color("rgba(255,0,0,51)").to_svg() == "rgba(255,0,0,0.2)"
    # unknown colors render black rather than failing
    assert Color("nonsense").to_svg() == "#000000"
    assert not Color("nonsense").is_valid

def test_color_conversions():
    assert Color("blue").to_rgb() == (0, 0, 255)
    assert Color("blue").to_hex() == "#0000ff"

def test_point_and_rect():
    assert Point(1, 2) + Point(3, 4) == Point(4, 6)
    assert Point(1, 2) - (1, 1) == Point(0, 1)
    rect = Rect(1, 2, 3, 4)
    assert rect.point == Point(1, 2)
    assert (rect.right, rect.bottom) == (4, 6)
    assert pytest.approx(rect.size.width) == 3
