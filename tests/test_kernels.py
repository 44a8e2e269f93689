import math

import pytest

from haarface.cascade import Cascade, Stage
from haarface.kernels import (
    classify_window,
    evaluate_cascade,
    integral_image,
    resize_bilinear,
    rounded_isqrt,
    squared_integral_image,
    window_sum,
)


def _checkerboard(width, height):
    return bytes(255 if (x + y) % 2 else 0 for y in range(height) for x in range(width))


def _cascade(weight=1, classifier_threshold=0, alpha1=-5, alpha2=7, stage_threshold=3):
    stage = Stage(
        thresholds=[classifier_threshold],
        alpha1=[alpha1],
        alpha2=[alpha2],
        rect_num=[0, 1],
        weights=[weight],
        rectangles=[0, 0, 2, 2],
    )
    return Cascade(stages=[stage], thresholds=[stage_threshold])


def _tables(image, width, height):
    return integral_image(image, width, height), squared_integral_image(image, width, height)


def test_resize_constant_image_stays_constant():
    image = bytes([77] * (10 * 8))
    out = resize_bilinear(image, 10, 8, 4, 3)
    assert len(out) == 12
    assert set(out) == {77}


def test_resize_first_pixel_is_copied():
    image = bytes(range(30))
    out = resize_bilinear(image, 6, 5, 3, 2)
    assert out[0] == image[0]


def test_resize_values_within_input_range():
    image = _checkerboard(12, 12)
    out = resize_bilinear(image, 12, 12, 7, 5)
    assert all(0 <= v <= 255 for v in out)


def test_resize_rejects_tiny_input():
    with pytest.raises(ValueError):
        resize_bilinear(bytes([1, 2]), 1, 2, 1, 1)


def test_resize_rejects_short_buffer():
    with pytest.raises(ValueError):
        resize_bilinear(bytes(5), 3, 3, 2, 2)


def test_integral_of_ones_counts_pixels():
    width, height = 5, 4
    table = integral_image(bytes([1] * (width * height)), width, height)
    for y in range(height):
        for x in range(width):
            assert table[y * width + x] == (x + 1) * (y + 1)


def test_integral_last_entry_is_total():
    image = bytes(range(0, 60, 2))
    table = integral_image(image, 6, 5)
    assert table[-1] == sum(image)


def test_squared_integral_last_entry_is_sum_of_squares():
    image = bytes(range(20))
    table = squared_integral_image(image, 5, 4)
    assert table[-1] == sum(v * v for v in image)


def test_integral_rejects_short_buffer():
    with pytest.raises(ValueError):
        integral_image(bytes(3), 2, 2)


@pytest.mark.parametrize("root", [0, 1, 2, 3, 17, 255, 1000, 65535])
def test_rounded_isqrt_of_perfect_squares(root):
    assert rounded_isqrt(root * root) == root


def test_rounded_isqrt_rounds_to_nearest():
    for value in range(0, 5000):
        assert abs(rounded_isqrt(value) - math.sqrt(value)) <= 0.5


def test_rounded_isqrt_rejects_out_of_range():
    with pytest.raises(ValueError):
        rounded_isqrt(-1)
    with pytest.raises(ValueError):
        rounded_isqrt(1 << 32)


def test_window_sum_of_ones_is_area():
    width, height = 6, 6
    table = integral_image(bytes([1] * 36), width, height)
    assert window_sum(table, 0, 0, 3, 2, width) == 6
    assert window_sum(table, 1, 2, 4, 3, width) == 12


def test_window_sum_outside_raises():
    table = integral_image(bytes([1] * 16), 4, 4)
    with pytest.raises(IndexError):
        window_sum(table, 2, 2, 3, 3, 4)


def test_classify_homogeneous_window_is_rejected():
    image = bytes([200] * 64)
    ii, sq = _tables(image, 8, 8)
    assert classify_window(ii, sq, _cascade(), 4, 4, 8, 0, 0) == 0


def test_classify_passing_stage_returns_margin():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    cascade = _cascade(alpha2=7, stage_threshold=3)
    assert classify_window(ii, sq, cascade, 4, 4, 8, 0, 0) == 7 - 3


def test_classify_negative_weight_uses_alpha1():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    cascade = _cascade(weight=-1, alpha1=9, alpha2=-9, stage_threshold=2)
    assert classify_window(ii, sq, cascade, 4, 4, 8, 0, 0) == 9 - 2


def test_classify_failing_stage_rejects():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    cascade = _cascade(alpha2=7, stage_threshold=10)
    assert classify_window(ii, sq, cascade, 4, 4, 8, 0, 0) == 0


def test_classify_scores_accumulate_across_stages():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    one = _cascade(alpha2=7, stage_threshold=3)
    two = Cascade(stages=one.stages * 2, thresholds=(3, 5))
    assert classify_window(ii, sq, two, 4, 4, 8, 0, 0) == (7 - 3) + (7 - 5)


def test_evaluate_cascade_map_shape_and_values():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    result = evaluate_cascade(ii, sq, 8, 8, _cascade(), 4, 4, 1)
    assert len(result) == 25
    assert result[0] == classify_window(ii, sq, _cascade(), 4, 4, 8, 0, 0)
    assert result[-1] == 0


def test_evaluate_cascade_stride_skips_positions():
    image = _checkerboard(8, 8)
    ii, sq = _tables(image, 8, 8)
    result = evaluate_cascade(ii, sq, 8, 8, _cascade(), 4, 4, 2)
    assert result[1] == 0
    assert result[5] == 0
    assert result[0] == 7 - 3


def test_evaluate_cascade_constant_image_is_all_zero():
    image = bytes([50] * 100)
    ii, sq = _tables(image, 10, 10)
    assert set(evaluate_cascade(ii, sq, 10, 10, _cascade(), 4, 4, 1)) == {0}


def test_evaluate_cascade_rejects_oversized_window():
    image = _checkerboard(4, 4)
    ii, sq = _tables(image, 4, 4)
    with pytest.raises(ValueError):
        evaluate_cascade(ii, sq, 4, 4, _cascade(), 5, 5, 1)