"""Drawing of lines and rectangles into gray and RGB byte images."""

from __future__ import annotations

from collections.abc import Iterator, MutableSequence, Sequence


def _check_buffer(image: Sequence[int], needed: int) -> None:
    if len(image) < needed:
        raise ValueError(f"image buffer holds {len(image)} values, needs {needed}")


def gray_to_rgb(pixels: Sequence[int], width: int, height: int) -> bytearray:
    """Return an RGB image whose three channels each copy the gray image."""
    count = width * height
    _check_buffer(pixels, count)
    out = bytearray(3 * count)
    for index, value in enumerate(pixels[:count]):
        out[3 * index : 3 * index + 3] = bytes((value, value, value))
    return out


def _line_offsets(width: int, x0: int, y0: int, x1: int, y1: int) -> Iterator[int]:
    """Yield pixel offsets along a line, stepping one column or row at a time."""
    if x1 < x0:
        x0, y0, x1, y1 = x1, y1, x0, y0
    step = -1 if y1 < y0 else 1
    h = abs(y1 - y0) + 1
    w = x1 - x0 + 1
    rem = 0
    if w < h:
        y = y0
        for i in range(x0, x1 + 1):
            for _ in range((h + rem) // w):
                yield i + y * width
                y += step
            rem = (h + rem) % w
    else:
        x = x0
        for j in range(y0, y1 + step, step):
            for _ in range((w + rem) // h):
                yield x + j * width
                x += 1
            rem = (w + rem) % h


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def draw_line(
    image: MutableSequence[int],
    height: int,
    width: int,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    value: int,
) -> None:
    """Draw a line into a gray image; end points are clamped to the image."""
    total = height * width
    _check_buffer(image, total)
    x0 = _clamp(x0, 0, width - 1)
    y0 = _clamp(y0, 0, height - 1)
    x1 = _clamp(x1, 0, width - 1)
    y1 = _clamp(y1, 0, height - 1)
    for offset in _line_offsets(width, x0, y0, x1, y1):
        if 0 <= offset < total:
            image[offset] = value


def draw_line_rgb(
    image: MutableSequence[int],
    height: int,
    width: int,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    color: Sequence[int],
) -> None:
    """Draw a line into an RGB image; points outside the buffer are skipped."""
    red, green, blue = color
    total = height * width
    _check_buffer(image, 3 * total)
    for offset in _line_offsets(width, x0, y0, x1, y1):
        if 0 <= offset < total:
            image[3 * offset : 3 * offset + 3] = (red, green, blue)


def _rectangle_offsets(
    height: int, width: int, x: int, y: int, w: int, h: int
) -> Iterator[int]:
    x1 = min(x + w - 1, width - 1)
    y1 = min(y + h - 1, height - 1)
    x = _clamp(x, 0, width - 1)
    y = _clamp(y, 0, height - 1)
    for i in range(x, x1):
        yield y * width + i
        yield y1 * width + i
    for i in range(y, y1 + 1):
        yield i * width + x
        yield i * width + x1


def draw_rectangle(
    image: MutableSequence[int],
    height: int,
    width: int,
    x: int,
    y: int,
    w: int,
    h: int,
    value: int,
) -> None:
    """Draw the outline of a rectangle into a gray image, clipped to it."""
    total = height * width
    _check_buffer(image, total)
    for offset in _rectangle_offsets(height, width, x, y, w, h):
        if 0 <= offset < total:
            image[offset] = value


def draw_rectangle_rgb(
    image: MutableSequence[int],
    height: int,
    width: int,
    x: int,
    y: int,
    w: int,
    h: int,
    color: Sequence[int],
) -> None:
    """Draw the outline of a rectangle into an RGB image, clipped to it."""
    red, green, blue = color
    total = height * width
    _check_buffer(image, 3 * total)
    for offset in _rectangle_offsets(height, width, x, y, w, h):
        if 0 <= offset < total:
            image[3 * offset : 3 * offset + 3] = (red, green, blue)