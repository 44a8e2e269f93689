"""Haar cascade model: stages of weak classifiers and their thresholds."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

DETECT_STRIDE = 1
MAX_NUM_OUT_WINS = 20
NON_MAX_THRES = 250
CASCADE_STAGES_L1 = 5
CASCADE_TOTAL_STAGES = 25

_POINTER_BYTES = 4
_SHORT_BYTES = 2

_SHORT = (-32768, 32767)
_USHORT = (0, 65535)
_SCHAR = (-128, 127)
_UCHAR = (0, 255)


def _int_tuple(values: Iterable[Any], name: str, bounds: tuple[int, int]) -> tuple[int, ...]:
    low, high = bounds
    if isinstance(values, (str, bytes)):
        raise ValueError(f"{name}: expected a sequence of integers")
    try:
        items = tuple(int(v) for v in values)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name}: expected a sequence of integers") from exc
    for value in items:
        if not low <= value <= high:
            raise ValueError(f"{name}: value {value} outside [{low}, {high}]")
    return items


def _field(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError as exc:
        raise ValueError(f"missing field {key!r}") from exc
    except TypeError as exc:
        raise ValueError("expected a mapping") from exc


@dataclass(frozen=True)
class Stage:
    """One cascade stage: a set of weak classifiers built from weighted rectangles.

    Classifier ``i`` uses the weights ``weights[rect_num[i]:rect_num[i + 1]]``
    and, for each weight, four entries ``x, y, w, h`` of ``rectangles``.
    """

    thresholds: tuple[int, ...]
    alpha1: tuple[int, ...]
    alpha2: tuple[int, ...]
    rect_num: tuple[int, ...]
    weights: tuple[int, ...]
    rectangles: tuple[int, ...]

    def __post_init__(self) -> None:
        thresholds = _int_tuple(self.thresholds, "thresholds", _SHORT)
        alpha1 = _int_tuple(self.alpha1, "alpha1", _SHORT)
        alpha2 = _int_tuple(self.alpha2, "alpha2", _SHORT)
        rect_num = _int_tuple(self.rect_num, "rect_num", _USHORT)
        weights = _int_tuple(self.weights, "weights", _SCHAR)
        rectangles = _int_tuple(self.rectangles, "rectangles", _UCHAR)

        size = len(thresholds)
        if size > _USHORT[1]:
            raise ValueError("too many classifiers in a stage")
        if len(alpha1) != size or len(alpha2) != size:
            raise ValueError("alpha1 and alpha2 must have one entry per threshold")
        if len(rect_num) != size + 1:
            raise ValueError("rect_num must have one entry more than thresholds")
        if any(b < a for a, b in zip(rect_num, rect_num[1:])):
            raise ValueError("rect_num must be non-decreasing")
        if len(rectangles) != 4 * len(weights):
            raise ValueError("rectangles must hold four values per weight")
        if len(rectangles) > _USHORT[1]:
            raise ValueError("too many rectangles in a stage")
        if rect_num[-1] > len(weights):
            raise ValueError("rect_num refers past the end of weights")

        for name, value in (
            ("thresholds", thresholds),
            ("alpha1", alpha1),
            ("alpha2", alpha2),
            ("rect_num", rect_num),
            ("weights", weights),
            ("rectangles", rectangles),
        ):
            object.__setattr__(self, name, value)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Stage":
        """Build a stage from a mapping of its six integer lists."""
        return Stage(
            thresholds=_field(data, "thresholds"),
            alpha1=_field(data, "alpha1"),
            alpha2=_field(data, "alpha2"),
            rect_num=_field(data, "rect_num"),
            weights=_field(data, "weights"),
            rectangles=_field(data, "rectangles"),
        )

    def to_dict(self) -> dict[str, list[int]]:
        """Return the stage as a JSON-ready mapping."""
        return {
            "thresholds": list(self.thresholds),
            "alpha1": list(self.alpha1),
            "alpha2": list(self.alpha2),
            "rect_num": list(self.rect_num),
            "weights": list(self.weights),
            "rectangles": list(self.rectangles),
        }


@dataclass(frozen=True)
class Cascade:
    """A sequence of stages, each with the score it must reach to pass."""

    stages: tuple[Stage, ...]
    thresholds: tuple[int, ...]

    def __post_init__(self) -> None:
        stages = tuple(self.stages)
        if not all(isinstance(stage, Stage) for stage in stages):
            raise ValueError("stages must be Stage instances")
        thresholds = _int_tuple(self.thresholds, "thresholds", _SHORT)
        if len(thresholds) != len(stages):
            raise ValueError("a cascade needs one threshold per stage")
        object.__setattr__(self, "stages", stages)
        object.__setattr__(self, "thresholds", thresholds)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Cascade":
        """Build a cascade from a mapping with ``stages`` and ``thresholds``."""
        raw_stages = _field(data, "stages")
        if isinstance(raw_stages, (str, bytes, Mapping)):
            raise ValueError("stages must be a list")
        try:
            stages = tuple(Stage.from_dict(item) for item in raw_stages)
        except TypeError as exc:
            raise ValueError("stages must be a list") from exc
        return Cascade(stages=stages, thresholds=_field(data, "thresholds"))

    def to_dict(self) -> dict[str, Any]:
        """Return the cascade as a JSON-ready mapping."""
        return {
            "thresholds": list(self.thresholds),
            "stages": [stage.to_dict() for stage in self.stages],
        }

    def largest_stage_bytes(self) -> int:
        """Size in bytes of the buffer needed for the biggest stage, 0 if none."""
        largest = 0
        for stage in self.stages:
            size = len(stage.thresholds)
            rects = len(stage.rectangles)
            current = (
                2 * _SHORT_BYTES
                + size * 4 * _POINTER_BYTES
                + rects * _POINTER_BYTES
                + (rects // 4) * _POINTER_BYTES
            )
            largest = max(largest, current)
        return largest


def load_cascade(path: str | Path) -> Cascade:
    """Read a cascade stored as JSON."""
    with open(path, encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}: not a valid cascade file") from exc
    return Cascade.from_dict(data)


def save_cascade(cascade: Cascade, path: str | Path) -> None:
    """Write a cascade as JSON."""
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(cascade.to_dict(), handle)
        handle.write("\n")