"""Multi-scale face detection with a Haar cascade and non-maximum suppression."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, MutableSequence, Protocol, Sequence

from haarface.cascade import DETECT_STRIDE, MAX_NUM_OUT_WINS, NON_MAX_THRES, Cascade
from haarface.drawing import draw_rectangle
from haarface.kernels import (
    evaluate_cascade,
    integral_image,
    resize_bilinear,
    squared_integral_image,
)

PYRAMID_FACTOR = 1.25
DEFAULT_WINDOW = 24
DEFAULT_BASE_SIZE = (64, 48)
DEFAULT_LEVELS = 3
_MARK_RINGS = 5


class _Box(Protocol):
    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class Detection:
    """A detected window in input-image coordinates, with its cascade score."""

    x: int
    y: int
    w: int
    h: int
    score: int


def pyramid_sizes(
    width: int, height: int, levels: int, factor: float = PYRAMID_FACTOR
) -> list[tuple[int, int]]:
    """Sizes of the pyramid levels: the base size, then each divided by ``factor``.

    Each division truncates toward zero, as an integer size would.
    """
    if levels < 1:
        raise ValueError("levels must be at least 1")
    if factor <= 1:
        raise ValueError("factor must be greater than 1")
    if width < 1 or height < 1:
        raise ValueError("base size must be positive")
    sizes = [(width, height)]
    for _ in range(levels - 1):
        width = int(width / factor)
        height = int(height / factor)
        sizes.append((width, height))
    return sizes


def intersect_area(a: _Box, b: _Box) -> int:
    """Area shared by two rectangles, 0 if they do not overlap."""
    x = max(a.x, b.x)
    y = max(a.y, b.y)
    size_x = min(a.x + a.w, b.x + b.w) - x
    size_y = min(a.y + a.h, b.y + b.h) - y
    if size_x <= 0 or size_y <= 0:
        return 0
    return size_x * size_y


def non_max_suppress(
    detections: Iterable[Detection], threshold: int = NON_MAX_THRES
) -> list[Detection]:
    """Drop detections that overlap a better one by at least ``threshold`` pixels.

    Of two overlapping detections the one with the lower score goes; on a tie
    the later one goes. Survivors keep their original order.
    """
    items = list(detections)
    removed = [False] * len(items)
    for idx, current in enumerate(items):
        if removed[idx]:
            continue
        for other_idx, other in enumerate(items):
            if removed[other_idx] or other_idx == idx:
                continue
            if intersect_area(current, other) >= threshold:
                if other.score > current.score:
                    removed[idx] = True
                    break
                removed[other_idx] = True
    return [item for item, gone in zip(items, removed) if not gone]


class FaceDetector:
    """Runs a cascade over a small image pyramid built from a gray image."""

    def __init__(
        self,
        cascade: Cascade,
        window: int = DEFAULT_WINDOW,
        stride: int = DETECT_STRIDE,
        nms_threshold: int = NON_MAX_THRES,
        max_detections: int = MAX_NUM_OUT_WINS,
        base_size: tuple[int, int] = DEFAULT_BASE_SIZE,
        levels: int = DEFAULT_LEVELS,
    ) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        if stride < 1:
            raise ValueError("stride must be positive")
        if max_detections < 0:
            raise ValueError("max_detections must not be negative")
        self.cascade = cascade
        self.window = window
        self.stride = stride
        self.nms_threshold = nms_threshold
        self.max_detections = max_detections
        self.sizes = pyramid_sizes(base_size[0], base_size[1], levels)

    def _candidates(self, image: Sequence[int], width: int, height: int) -> list[Detection]:
        found: list[Detection] = []
        win = self.window
        for out_w, out_h in self.sizes:
            if out_w < win or out_h < win:
                continue
            resized = resize_bilinear(image, width, height, out_w, out_h)
            integral = integral_image(resized, out_w, out_h)
            squared = squared_integral_image(resized, out_w, out_h)
            scores = evaluate_cascade(
                integral, squared, out_w, out_h, self.cascade, win, win, self.stride
            )
            cols = out_w - win + 1
            for i in range(0, out_h - win + 1, self.stride):
                for j in range(0, cols, self.stride):
                    score = scores[i * cols + j]
                    if score == 0:
                        continue
                    if len(found) >= self.max_detections:
                        return found
                    found.append(
                        Detection(
                            x=(j * width) // out_w,
                            y=(i * height) // out_h,
                            w=(win * width) // out_w,
                            h=(win * height) // out_h,
                            score=score,
                        )
                    )
        return found

    def detect(self, image: Sequence[int], width: int, height: int) -> list[Detection]:
        """Detect faces in a row-major gray image of ``width`` x ``height``.

        At most ``max_detections`` raw candidates are kept, in scan order,
        before non-maximum suppression.
        """
        if width < 2 or height < 2:
            raise ValueError("image must be at least 2x2")
        if len(image) < width * height:
            raise ValueError(f"image holds {len(image)} values, needs {width * height}")
        candidates = self._candidates(image, width, height)
        return non_max_suppress(candidates, self.nms_threshold)

    def mark(
        self,
        image: MutableSequence[int],
        width: int,
        height: int,
        detections: Iterable[Detection],
    ) -> int:
        """Draw a thick black frame around each detection; return how many were drawn."""
        count = 0
        for det in detections:
            for ring in range(_MARK_RINGS):
                draw_rectangle(
                    image,
                    height,
                    width,
                    det.x - ring,
                    det.y - ring,
                    det.w + 2 * ring,
                    det.h + 2 * ring,
                    0,
                )
            count += 1
        return count