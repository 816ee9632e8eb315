import itertools
import logging
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from pixeldiff.core.canvas import Canvas
from pixeldiff.core.engine import DiffEngine, Different, Identical, compare

R = (255, 0, 0)
G = (0, 255, 0)
B = (0, 0, 255)
W = (255, 255, 255)

# translucent red blended over each opaque color
R_OVER_R = (255, 0, 0, 255)
R_OVER_G = (55, 200, 0, 255)
R_OVER_B = (55, 0, 200, 255)
R_ALONE = (255, 0, 0, 55)


def gen_base(w, h):
    """Cycle ``[R, G, B]`` over a ``w`` x ``h`` canvas, row-major."""
    pattern = itertools.cycle([R, G, B])
    return Canvas.from_pixels(w, h, [next(pattern) for _ in range(w * h)])


def gen_img(rows):
    return Canvas.from_pixels(len(rows[0]), len(rows), [p for row in rows for p in row])


def opaque():
    return DiffEngine(alpha_aware=False)


@pytest.mark.parametrize("alpha_aware", [True, False])
@pytest.mark.parametrize("size", [(0, 0), (1, 1), (3, 1), (6, 6)])
def test_identical_returns_reference_object(alpha_aware, size):
    a = gen_base(*size)
    b = gen_base(*size)
    result = DiffEngine(alpha_aware=alpha_aware).compare(a, b)
    assert isinstance(result, Identical)
    assert result.is_identical
    assert result.reference is a


@pytest.mark.parametrize("alpha_aware", [True, False])
def test_zero_area_canvases_of_different_size_are_different(alpha_aware):
    a = Canvas(np.zeros((3, 0, 3), dtype=np.uint8))
    b = Canvas(np.zeros((5, 0, 3), dtype=np.uint8))
    assert a != b
    result = DiffEngine(alpha_aware=alpha_aware).compare(a, b)
    assert isinstance(result, Different)
    assert not result.is_identical
    assert result.canvas.size == (0, 5)
    assert len(result.differences) == 0


def test_scenario_a_opaque():
    result = opaque().compare(gen_base(3, 1), gen_img([[G, G, B]]))
    assert isinstance(result, Different)
    assert result.differences.coordinates() == {(0, 0)}
    assert result.canvas == gen_img([[R, G, B]])


def test_scenario_a_alpha():
    result = DiffEngine().compare(gen_base(3, 1), gen_img([[G, G, B]]))
    assert result.differences.coordinates() == {(0, 0)}
    assert result.canvas.pixels() == [R_OVER_R, G + (255,), B + (255,)]


def test_last_two_pixels_opaque():
    result = opaque().compare(gen_base(3, 1), gen_img([[R, G, G]]))
    assert result.canvas == gen_img([[R, G, R]])


def test_scenario_b_opaque():
    result = opaque().compare(gen_base(3, 1), gen_img([[R, G, B, B]]))
    assert result.differences.coordinates() == {(3, 0)}
    assert result.canvas == gen_img([[R, G, B, R]])


def test_scenario_b_alpha():
    result = DiffEngine().compare(gen_base(3, 1), gen_img([[R, G, B, B]]))
    assert result.differences.coordinates() == {(3, 0)}
    assert result.canvas.pixels() == [R + (255,), G + (255,), B + (255,), R_ALONE]


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (gen_base(3, 1), gen_img([[R, G, B], [R, G, B]]), [[R, G, B], [R, R, R]]),
        (gen_base(3, 1), gen_img([[R, G, B, B], [R, G, B, B]]), [[R, G, B, R], [R, R, R, R]]),
        (gen_base(4, 1), gen_img([[R, G, B]]), [[R, G, B, R]]),
        (gen_base(4, 1), gen_img([[R, B, B]]), [[R, R, B, R]]),
        (gen_base(3, 2), gen_img([[R, G, B]]), [[R, G, B], [R, R, R]]),
        (gen_base(3, 2), gen_img([[R, B, B]]), [[R, R, B], [R, R, R]]),
        (gen_base(4, 2), gen_img([[R, G, B]]), [[R, G, B, R], [R, R, R, R]]),
    ],
)
def test_size_mismatch_opaque(a, b, expected):
    result = opaque().compare(a, b)
    assert result.canvas == gen_img(expected)


def test_scenario_c_opaque():
    result = opaque().compare(gen_base(6, 6), gen_img([[B, G], [R, G]]))
    expected = [[R, G, R, R, R, R], [R, G, R, R, R, R]] + [[R] * 6 for _ in range(4)]
    assert result.canvas == gen_img(expected)
    assert len(result.differences) == 36 - 3


def test_scenario_c_alpha():
    ref = gen_base(6, 6)
    result = DiffEngine().compare(ref, gen_img([[B, G], [R, G]]))
    diff = result.differences
    assert (0, 0) in diff
    assert (1, 0) not in diff and (0, 1) not in diff and (1, 1) not in diff
    assert len(diff) == 33
    assert result.canvas.pixel(1, 0) == G + (255,)
    assert result.canvas.pixel(2, 0) == R_OVER_B
    assert result.canvas.pixel(1, 5) == R_OVER_G


def test_base_is_reference_not_current():
    x = gen_img([[R, G]])
    y = gen_img([[G, G]])
    xy = opaque().compare(x, y)
    yx = opaque().compare(y, x)
    assert xy.differences == yx.differences
    hl = DiffEngine(alpha_aware=True)
    assert hl.compare(x, y).canvas != hl.compare(y, x).canvas


@pytest.mark.parametrize("alpha_aware", [True, False])
def test_padding_always_flagged(alpha_aware):
    small = gen_base(3, 2)
    arr = np.zeros((4, 5, 3), dtype=np.uint8)
    arr[:2, :3] = small.array
    # fill the extension with the padding colors themselves
    arr[2:, :] = 255
    arr[:, 3:] = 255
    large = Canvas(arr)
    result = DiffEngine(alpha_aware=alpha_aware).compare(small, large)
    outside = {(x, y) for y in range(4) for x in range(5) if x >= 3 or y >= 2}
    assert result.differences.coordinates() == outside


def test_asymmetric_growth_flags_corner_in_alpha_mode():
    wide = Canvas.from_pixels(2, 1, [(0, 0, 0, 0), (0, 0, 0, 0)])
    tall = Canvas.from_pixels(1, 2, [(0, 0, 0, 0), (0, 0, 0, 0)])
    result = DiffEngine().compare(wide, tall)
    assert result.differences.coordinates() == {(1, 0), (0, 1), (1, 1)}


def test_alpha_only_difference_is_detected():
    a = Canvas.from_pixels(1, 1, [(10, 10, 10, 255)])
    b = Canvas.from_pixels(1, 1, [(10, 10, 10, 0)])
    assert not opaque().compare(a, b).is_identical
    assert not DiffEngine().compare(a, b).is_identical


def test_rgb_and_opaque_rgba_with_same_colors_are_identical():
    rgb = gen_base(3, 1)
    result = DiffEngine().compare(rgb, rgb.to_rgba())
    assert result.is_identical
    assert result.reference is rgb


def test_opaque_mode_keeps_rgb_output():
    result = opaque().compare(gen_base(3, 1), gen_img([[G, G, B]]))
    assert result.canvas.channels == 3
    assert DiffEngine().compare(gen_base(3, 1), gen_img([[G, G, B]])).canvas.channels == 4


def test_custom_highlight_color():
    engine = DiffEngine(alpha_aware=False, highlight_color=(1, 2, 3))
    result = engine.compare(gen_base(3, 1), gen_img([[G, G, B]]))
    assert result.canvas.pixel(0, 0) == (1, 2, 3)


def test_parallel_engine_matches_serial():
    rng = np.random.default_rng(3)
    a = Canvas(rng.integers(0, 4, size=(120, 40, 3), dtype=np.uint8))
    b = Canvas(rng.integers(0, 4, size=(100, 50, 3), dtype=np.uint8))
    serial = DiffEngine().compare(a, b)
    parallel = DiffEngine(workers=3, band_rows=16).compare(a, b)
    assert serial.differences == parallel.differences
    assert serial.canvas == parallel.canvas


@pytest.mark.parametrize(
    "kwargs",
    [{"highlight_color": (1, 2)}, {"highlight_color": (0, 0, 300)}, {"workers": -1}, {"band_rows": 0}],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        DiffEngine(**kwargs)


def test_engine_logs_state_transitions(caplog):
    with caplog.at_level(logging.DEBUG, logger="pixeldiff.core.engine"):
        compare(gen_base(3, 1), gen_img([[R, G, B, B]]))
    for state in ("comparing-equal", "reconciling", "comparing-pixels", "compositing", "result"):
        assert f"compare: {state}" in caplog.text
