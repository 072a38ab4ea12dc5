import numpy as np
import pytest

from leaf_generator.raster import Layer, composite, draw_circle, draw_line, inside, rasterize_mask, stroke_path


def test_layer_get_set_clamps():
    layer = Layer(4, 3)
    layer.set(2, 1, (300, -5, 10, 128))
    assert layer.get(2, 1) == (255, 0, 10, 128)
    assert layer.get(0, 0) == (0, 0, 0, 0)
    assert layer.pixels.shape == (3, 4, 4)


def test_layer_rejects_wrong_shape():
    with pytest.raises(ValueError):
        Layer(4, 3, np.zeros((4, 3, 4), dtype=np.float32))


def test_mask_fills_square():
    mask = rasterize_mask([(10, 10), (30, 10), (30, 30), (10, 30)], 40, 40)
    assert mask.dtype == bool
    assert mask[20, 20]
    assert not mask[5, 5]
    assert not mask[35, 20]
    assert 400 <= int(mask.sum()) <= 450


def test_mask_of_degenerate_outline_is_empty():
    assert not rasterize_mask([(1, 1), (5, 5)], 10, 10).any()


def test_inside_handles_out_of_canvas():
    mask = np.ones((5, 5), dtype=bool)
    assert inside(mask, 4.9, 0.0)
    assert not inside(mask, 5.0, 0.0)
    assert not inside(mask, -1.0, 2.0)


def test_over_blends_half_alpha():
    bottom = Layer(2, 2)
    bottom.pixels[:] = (255, 0, 0, 255)
    top = Layer(2, 2)
    top.pixels[:] = (0, 0, 255, 127.5)
    out = composite(2, 2, [bottom, top])
    r, g, b, a = out.pixels[0, 0]
    assert r == pytest.approx(127.5)
    assert b == pytest.approx(127.5)
    assert a == pytest.approx(255.0)


def test_over_transparent_keeps_bottom():
    bottom = Layer(2, 2)
    bottom.pixels[:] = (10, 20, 30, 200)
    out = composite(2, 2, [bottom, Layer(2, 2)])
    assert out.get(1, 1) == (10, 20, 30, 200)


def test_over_two_translucent_layers():
    a = Layer(1, 1)
    a.set(0, 0, (255, 255, 255, 127.5))
    b = Layer(1, 1)
    b.set(0, 0, (0, 0, 0, 127.5))
    out = composite(1, 1, [a, b])
    assert out.pixels[0, 0, 3] == pytest.approx(255 * 0.75)
    # white contributes 0.25 of 0.75 coverage
    assert out.pixels[0, 0, 0] == pytest.approx(255 / 3, rel=1e-4)


def test_draw_line_paints_along_segment():
    layer = Layer(30, 30)
    draw_line(layer, (5, 15), (25, 15), (200, 100, 50, 255), weight=3)
    assert layer.get(15, 15) == (200, 100, 50, 255)
    assert layer.get(15, 2)[3] == 0


def test_primitives_clip_at_canvas_edge():
    layer = Layer(10, 10)
    draw_circle(layer, (-0.5, -0.5), 4.0, (255, 255, 255, 255))
    draw_line(layer, (-20, 5), (50, 5), (255, 255, 255, 255), weight=1)
    assert layer.pixels[..., 3].max() > 0


def test_ring_leaves_center_open():
    layer = Layer(40, 40)
    draw_circle(layer, (20, 20), 20.0, (255, 255, 255, 255), weight=1)
    assert layer.get(20, 20)[3] == 0
    assert layer.get(30, 20)[3] > 0


def test_thin_ring_scales_coverage_by_weight():
    full = Layer(40, 40)
    thin = Layer(40, 40)
    draw_circle(full, (20, 20), 10.0, (255, 255, 255, 255), weight=1)
    draw_circle(thin, (20, 20), 10.0, (255, 255, 255, 255), weight=0.5)
    a_full = full.pixels[..., 3]
    a_thin = thin.pixels[..., 3]
    assert a_thin.sum() == pytest.approx(0.5 * a_full.sum(), rel=1e-4)
    assert a_thin.max() <= 128


def test_blur_spreads_alpha_keeps_colour():
    layer = Layer(60, 60)
    stroke_path(layer, [((30, 10), (30, 50))], (255, 255, 255, 255), 3)
    layer.blur(4.0)
    assert layer.pixels[30, 30, 3] < 255
    assert layer.pixels[30, 40, 3] > 0
    visible = layer.pixels[..., 3] > 1
    assert np.allclose(layer.pixels[visible][:, :3], 255, atol=1.0)


def test_clip_to_mask():
    layer = Layer(3, 3)
    layer.pixels[:] = 255
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True
    layer.clip_to(mask)
    assert layer.get(1, 1) == (255, 255, 255, 255)
    assert layer.pixels[..., 3].sum() == 255


def test_to_rgba8():
    layer = Layer(2, 1)
    layer.set(0, 0, (1.4, 1.6, 254.6, 255))
    out = layer.to_rgba8()
    assert out.dtype == np.uint8
    assert tuple(out[0, 0]) == (1, 2, 255, 255)
