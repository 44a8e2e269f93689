import pytest

from haarface.drawing import (
    draw_line,
    draw_line_rgb,
    draw_rectangle,
    draw_rectangle_rgb,
    gray_to_rgb,
)


def set_points(image, width):
    return {(i % width, i // width) for i, v in enumerate(image) if v}


def test_gray_to_rgb_copies_each_channel():
    gray = bytes(range(12))
    rgb = gray_to_rgb(gray, 4, 3)
    assert len(rgb) == 3 * len(gray)
    assert [tuple(rgb[3 * i : 3 * i + 3]) for i in range(12)] == [(v, v, v) for v in gray]


def test_gray_to_rgb_short_input():
    with pytest.raises(ValueError):
        gray_to_rgb(bytes(5), 3, 2)


def test_horizontal_line():
    img = bytearray(16)
    draw_line(img, 4, 4, 0, 2, 3, 2, 9)
    assert set_points(img, 4) == {(0, 2), (1, 2), (2, 2), (3, 2)}
    assert set(img) == {0, 9}


def test_vertical_line():
    img = bytearray(20)
    draw_line(img, 5, 4, 1, 0, 1, 4, 1)
    assert set_points(img, 4) == {(1, y) for y in range(5)}


def test_diagonal_line():
    img = bytearray(25)
    draw_line(img, 5, 5, 0, 0, 4, 4, 1)
    assert set_points(img, 5) == {(i, i) for i in range(5)}


def test_line_upward_diagonal():
    img = bytearray(25)
    draw_line(img, 5, 5, 0, 4, 4, 0, 1)
    assert set_points(img, 5) == {(i, 4 - i) for i in range(5)}


@pytest.mark.parametrize(
    "points",
    [(0, 0, 3, 7), (7, 1, 0, 6), (2, 7, 5, 0), (0, 3, 7, 5), (6, 0, 1, 2)],
)
def test_line_is_symmetric_and_connected(points):
    x0, y0, x1, y1 = points
    forward = bytearray(64)
    backward = bytearray(64)
    draw_line(forward, 8, 8, x0, y0, x1, y1, 1)
    draw_line(backward, 8, 8, x1, y1, x0, y0, 1)
    assert forward == backward
    drawn = set_points(forward, 8)
    assert len(drawn) == max(abs(x1 - x0), abs(y1 - y0)) + 1
    assert (x0, y0) in drawn and (x1, y1) in drawn


def test_line_endpoints_are_clamped():
    img = bytearray(16)
    draw_line(img, 4, 4, -5, 0, 10, 0, 1)
    assert set_points(img, 4) == {(x, 0) for x in range(4)}


def test_rgb_line_matches_gray_line():
    gray = bytearray(36)
    draw_line(gray, 6, 6, 1, 5, 4, 0, 200)
    rgb = bytearray(3 * 36)
    draw_line_rgb(rgb, 6, 6, 1, 5, 4, 0, (200, 200, 200))
    assert rgb == gray_to_rgb(gray, 6, 6)


def test_rgb_line_sets_colour():
    rgb = bytearray(3 * 9)
    draw_line_rgb(rgb, 3, 3, 0, 1, 2, 1, (1, 2, 3))
    assert rgb[9:18] == bytes((1, 2, 3) * 3)
    assert not any(rgb[:9]) and not any(rgb[18:])


def test_rectangle_outline():
    img = bytearray(25)
    draw_rectangle(img, 5, 5, 1, 1, 3, 3, 7)
    border = {(x, y) for x in range(1, 4) for y in range(1, 4)} - {(2, 2)}
    assert set_points(img, 5) == border


def test_rectangle_is_clipped():
    img = bytearray(16)
    draw_rectangle(img, 4, 4, -2, -2, 10, 10, 1)
    edge = {(x, y) for x in range(4) for y in range(4) if x in (0, 3) or y in (0, 3)}
    assert set_points(img, 4) == edge


def test_rgb_rectangle_matches_gray_rectangle():
    gray = bytearray(48)
    draw_rectangle(gray, 6, 8, 2, 1, 5, 4, 50)
    rgb = bytearray(3 * 48)
    draw_rectangle_rgb(rgb, 6, 8, 2, 1, 5, 4, (50, 50, 50))
    assert rgb == gray_to_rgb(gray, 8, 6)


def test_buffer_too_small():
    with pytest.raises(ValueError):
        draw_rectangle(bytearray(10), 4, 4, 0, 0, 2, 2, 1)
    with pytest.raises(ValueError):
        draw_line_rgb(bytearray(16), 4, 4, 0, 0, 3, 3, (1, 1, 1))


def test_colour_needs_three_channels():
    with pytest.raises(ValueError):
        draw_rectangle_rgb(bytearray(48), 4, 4, 0, 0, 2, 2, (1, 2))