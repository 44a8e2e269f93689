"""Image kernels for Haar-cascade detection: resize, integral images and cascade scoring."""

from __future__ import annotations

from itertools import accumulate
from typing import Sequence

from haarface.cascade import DETECT_STRIDE, Cascade, Stage

_MASK32 = 0xFFFFFFFF
_MIN_VARIANCE = 50 * 50
_WEIGHT_SHIFT = 12


def _u32(value: int) -> int:
    return value & _MASK32


def _i32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _check_size(buffer: Sequence[int], needed: int, name: str) -> None:
    if len(buffer) < needed:
        raise ValueError(f"{name} holds {len(buffer)} values, needs {needed}")


def resize_bilinear(
    image: Sequence[int],
    in_width: int,
    in_height: int,
    out_width: int,
    out_height: int,
) -> bytearray:
    """Resize a gray image with 16.16 fixed-point bilinear interpolation."""
    if in_width < 2 or in_height < 2:
        raise ValueError("input image must be at least 2x2")
    if out_width < 1 or out_height < 1:
        raise ValueError("output image must be at least 1x1")
    _check_size(image, in_width * in_height, "image")

    w_step = _u32((in_width - 1) << 16) // out_width
    h_step = _u32((in_height - 1) << 16) // out_height
    out = bytearray(out_width * out_height)

    for y in range(out_height):
        h_coeff = _u32(h_step * y)
        row = (h_coeff >> 16) * in_width
        below = row + in_width
        hc2 = (h_coeff >> 9) & 127
        hc1 = 128 - hc2
        base = y * out_width
        for x in range(out_width):
            w_coeff = _u32(w_step * x)
            col = w_coeff >> 16
            wc2 = (w_coeff >> 9) & 127
            wc1 = 128 - wc2
            p1 = image[row + col]
            p2 = image[below + col]
            p3 = image[row + col + 1]
            p4 = image[below + col + 1]
            value = ((p1 * hc1 + p2 * hc2) * wc1 + (p3 * hc1 + p4 * hc2) * wc2) >> 14
            out[base + x] = value & 0xFF
    return out


def _integral(image: Sequence[int], width: int, height: int, squared: bool) -> list[int]:
    if width < 1 or height < 1:
        raise ValueError("image must be at least 1x1")
    _check_size(image, width * height, "image")
    out: list[int] = []
    above = [0] * width
    for y in range(height):
        row = image[y * width : (y + 1) * width]
        values = (v * v for v in row) if squared else iter(row)
        current = [_u32(a + p) for a, p in zip(above, accumulate(values))]
        out.extend(current)
        above = current
    return out


def integral_image(image: Sequence[int], width: int, height: int) -> list[int]:
    """Inclusive integral image: each entry sums the pixels above and left of it."""
    return _integral(image, width, height, squared=False)


def squared_integral_image(image: Sequence[int], width: int, height: int) -> list[int]:
    """Inclusive integral image of the squared pixel values."""
    return _integral(image, width, height, squared=True)


def rounded_isqrt(value: int) -> int:
    """Square root of a 32-bit unsigned value, rounded to the nearest integer."""
    if not 0 <= value <= _MASK32:
        raise ValueError(f"value {value} outside the 32-bit unsigned range")
    op = value
    res = 0
    one = 1 << 30
    while one > op:
        one >>= 2
    while one:
        if op >= res + one:
            op -= res + one
            res += 2 * one
        res >>= 1
        one >>= 2
    if op > res:
        res += 1
    return res


def window_sum(
    integral: Sequence[int], x: int, y: int, w: int, h: int, image_width: int
) -> int:
    """Four-corner lookup of an integral image over a ``w`` x ``h`` window."""
    corners = (
        (h + y) * image_width + w + x,
        y * image_width + x,
        y * image_width + w + x,
        (h + y) * image_width + x,
    )
    for index in corners:
        if not 0 <= index < len(integral):
            raise IndexError("window lies outside the integral image")
    d, a, b, c = (integral[i] for i in corners)
    return _i32(_u32(d + a - b - c))


def _weak_classifier(
    integral: Sequence[int],
    image_width: int,
    stage: Stage,
    std: int,
    index: int,
    off_x: int,
    off_y: int,
) -> int:
    limit = _i32(stage.thresholds[index] * std)
    start, end = stage.rect_num[index], stage.rect_num[index + 1]
    rects = stage.rectangles[4 * start : 4 * end]
    total = 0
    for k, weight in enumerate(stage.weights[start:end]):
        x, y, w, h = rects[4 * k : 4 * k + 4]
        area = window_sum(integral, off_x + x, off_y + y, w, h, image_width)
        total = _i32(total + _i32(area * (weight << _WEIGHT_SHIFT)))
    return stage.alpha2[index] if total >= limit else stage.alpha1[index]


def classify_window(
    integral: Sequence[int],
    squared: Sequence[int],
    cascade: Cascade,
    win_w: int,
    win_h: int,
    image_width: int,
    off_x: int,
    off_y: int,
) -> int:
    """Run the cascade on one window; 0 if rejected, else the summed stage margins."""
    count = win_w * win_h
    if count <= 0:
        raise ValueError("window must have a positive area")
    total = window_sum(integral, off_x, off_y, win_w, win_h, image_width)
    total_sq = window_sum(squared, off_x, off_y, win_w, win_h, image_width)
    mean = _cdiv(total, count)
    variance = _i32(_cdiv(total_sq, count) - _i32(mean * mean))
    if variance < _MIN_VARIANCE:
        return 0

    std = rounded_isqrt(_u32(total_sq * count - total * total))

    score = 0
    for stage, stage_threshold in zip(cascade.stages, cascade.thresholds):
        stage_sum = _i32(
            sum(
                _weak_classifier(integral, image_width, stage, std, i, off_x, off_y)
                for i in range(len(stage.thresholds))
            )
        )
        score = _i32(score + stage_sum - stage_threshold)
        if stage_sum < stage_threshold:
            return 0
    return score


def evaluate_cascade(
    integral: Sequence[int],
    squared: Sequence[int],
    width: int,
    height: int,
    cascade: Cascade,
    win_w: int,
    win_h: int,
    stride: int = DETECT_STRIDE,
) -> list[int]:
    """Score every window position; returns a row-major map of
    ``(height - win_h + 1)`` rows by ``(width - win_w + 1)`` columns.

    Positions off the stride, and windows whose corner lookup would fall
    past the end of the integral image, score 0.
    """
    if win_w < 1 or win_h < 1:
        raise ValueError("window must be at least 1x1")
    if win_w > width or win_h > height:
        raise ValueError("window is larger than the image")
    if stride < 1:
        raise ValueError("stride must be positive")
    _check_size(integral, width * height, "integral")
    _check_size(squared, width * height, "squared")

    cols = width - win_w + 1
    rows = height - win_h + 1
    limit = min(len(integral), len(squared))
    out = [0] * (rows * cols)
    for line in range(0, rows, stride):
        for col in range(0, cols, stride):
            if (line + win_h) * width + col + win_w >= limit:
                continue
            out[line * cols + col] = classify_window(
                integral, squared, cascade, win_w, win_h, width, col, line
            )
    return out