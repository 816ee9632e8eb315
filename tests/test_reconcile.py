import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from pixeldiff.core.canvas import Canvas
from pixeldiff.core.reconcile import extend, padding_mask, reconcile, target_size, TRANSPARENT

R = (255, 0, 0, 255)
G = (0, 255, 0, 255)


def test_target_size_is_elementwise_max():
    a = Canvas.filled(4, 1, R)
    b = Canvas.filled(3, 2, G)
    assert target_size(a, b) == (4, 2)


def test_extend_returns_same_object_when_size_matches():
    a = Canvas.filled(3, 3, R)
    assert extend(a, 3, 3, TRANSPARENT) is a


def test_extend_keeps_top_left_and_fills_border():
    a = Canvas.from_pixels(2, 1, [R, G])
    out = extend(a, 3, 2, TRANSPARENT)
    assert out.size == (3, 2)
    assert out.pixels() == [R, G, TRANSPARENT, TRANSPARENT, TRANSPARENT, TRANSPARENT]


def test_extend_rejects_shrinking():
    with pytest.raises(ValueError):
        extend(Canvas.filled(3, 3, R), 2, 3, TRANSPARENT)


def test_reconcile_asymmetric_growth():
    a = Canvas.filled(4, 1, R)
    b = Canvas.filled(3, 2, G)
    ra, rb = reconcile(a, b, TRANSPARENT)
    assert ra.size == rb.size == (4, 2)
    assert ra.pixel(3, 0) == R
    assert ra.pixel(0, 1) == TRANSPARENT
    assert rb.pixel(3, 0) == TRANSPARENT
    assert rb.pixel(2, 1) == G


def test_reconcile_rejects_mixed_channels():
    with pytest.raises(ValueError):
        reconcile(Canvas.filled(1, 1, R), Canvas.filled(1, 1, (1, 2, 3)), TRANSPARENT)


def test_padding_mask_marks_area_outside_any_original():
    mask = padding_mask(4, 2, (4, 1), (3, 2))
    expected = np.array(
        [
            [False, False, False, True],
            [True, True, True, True],
        ]
    )
    assert np.array_equal(mask, expected)


def test_padding_mask_empty_when_sizes_match():
    assert not padding_mask(3, 3, (3, 3), (3, 3)).any()
