import pytest

from leaf_generator.stem import BROWN, DARK_GREEN, bezier_point, stem_color, stem_layer, stem_width

CONTROLS = ((-50.0, 15.0), (120.0, -15.0), (340.0, -40.0), (560.0, -15.0))


def test_bezier_hits_end_points():
    p = CONTROLS
    assert bezier_point(*p, 0.0) == pytest.approx(p[0])
    assert bezier_point(*p, 1.0) == pytest.approx(p[3])


def test_stem_color_segments_meet_at_threshold():
    assert stem_color(0.0) == pytest.approx(BROWN)
    assert stem_color(0.3) == pytest.approx(DARK_GREEN)
    assert stem_color(0.2999) == pytest.approx(DARK_GREEN, abs=0.1)
    r, g, b = stem_color(0.99)
    assert g > r > b


def test_stem_width_tapers():
    assert stem_width(0.0) == 6.0
    assert stem_width(1.0) == 0.5
    assert stem_width(0.5) == pytest.approx(3.25)


def test_stem_layer_is_drawn_from_origin():
    layer = stem_layer(1000, 700, (125.0, 350.0), CONTROLS, steps=100)
    # base of the stem sits at origin + (-50, 15)
    assert layer.get(78, 365)[3] == 255
    r, g, b, _ = layer.get(78, 365)
    assert r > g > b
    # far away from the curve nothing is painted
    assert layer.get(500, 650)[3] == 0
