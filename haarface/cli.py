"""Command line face detection on PGM images."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from haarface.cascade import DETECT_STRIDE, MAX_NUM_OUT_WINS, NON_MAX_THRES, load_cascade
from haarface.detector import DEFAULT_WINDOW, FaceDetector
from haarface.kernels import resize_bilinear

_WHITESPACE = b" \t\r\n\v\f"
_MAGICS = (b"P2", b"P5")


def _header_tokens(data: bytes, count: int) -> tuple[list[bytes], int]:
    """Read ``count`` header tokens, skipping comments; return them and the end offset."""
    tokens: list[bytes] = []
    pos = 0
    size = len(data)
    while len(tokens) < count:
        while pos < size and data[pos] in _WHITESPACE:
            pos += 1
        if pos >= size:
            raise ValueError("truncated PGM header")
        if data[pos] == ord("#"):
            while pos < size and data[pos] not in b"\r\n":
                pos += 1
            continue
        start = pos
        while pos < size and data[pos] not in _WHITESPACE and data[pos] != ord("#"):
            pos += 1
        tokens.append(data[start:pos])
    return tokens, pos


def _header_int(token: bytes, name: str) -> int:
    try:
        value = int(token)
    except ValueError as exc:
        raise ValueError(f"invalid PGM {name}: {token!r}") from exc
    if value < 1:
        raise ValueError(f"invalid PGM {name}: {value}")
    return value


def read_pgm(path: str | Path) -> tuple[bytearray, int, int]:
    """Read an 8-bit PGM file (binary P5 or plain P2); return pixels, width, height."""
    data = Path(path).read_bytes()
    if data[:2] not in _MAGICS:
        raise ValueError(f"{path}: not a PGM file")
    tokens, pos = _header_tokens(data, 4)
    magic = tokens[0]
    if magic not in _MAGICS:
        raise ValueError(f"{path}: not a PGM file")
    width = _header_int(tokens[1], "width")
    height = _header_int(tokens[2], "height")
    maxval = _header_int(tokens[3], "maximum value")
    if maxval > 255:
        raise ValueError(f"{path}: only 8-bit PGM images are supported")
    count = width * height

    if magic == b"P5":
        raster = data[pos + 1 : pos + 1 + count]
        if pos >= len(data) or len(raster) < count:
            raise ValueError(f"{path}: truncated PGM raster")
        pixels = bytearray(raster)
    else:
        lines = data[pos:].split(b"\n")
        words = [
            word
            for line in lines
            for word in line.split(b"#", 1)[0].split()
        ]
        if len(words) < count:
            raise ValueError(f"{path}: truncated PGM raster")
        try:
            values = [int(word) for word in words[:count]]
        except ValueError as exc:
            raise ValueError(f"{path}: invalid PGM pixel value") from exc
        pixels = bytearray(count)
        for index, value in enumerate(values):
            if not 0 <= value <= maxval:
                raise ValueError(f"{path}: pixel value {value} outside [0, {maxval}]")
            pixels[index] = value
    if any(value > maxval for value in pixels):
        raise ValueError(f"{path}: pixel value above {maxval}")
    return pixels, width, height


def write_pgm(path: str | Path, pixels: Sequence[int], width: int, height: int) -> None:
    """Write a gray image as a binary 8-bit PGM file."""
    if width < 1 or height < 1:
        raise ValueError("image must be at least 1x1")
    count = width * height
    if len(pixels) < count:
        raise ValueError(f"image holds {len(pixels)} values, needs {count}")
    header = f"P5\n{width} {height}\n255\n".encode("ascii")
    Path(path).write_bytes(header + bytes(pixels[:count]))


def _size(text: str) -> tuple[int, int]:
    try:
        width_text, height_text = text.lower().split("x")
        width, height = int(width_text), int(height_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from exc
    if width < 1 or height < 1:
        raise argparse.ArgumentTypeError("sizes must be positive")
    return width, height


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="haarface", description="Detect faces in PGM images with a Haar cascade."
    )
    parser.add_argument("cascade", help="cascade model stored as JSON")
    parser.add_argument("images", nargs="+", help="gray PGM images to scan")
    parser.add_argument(
        "--output-dir", type=Path, help="write each image with detections framed here"
    )
    parser.add_argument(
        "--output-size", type=_size, help="resize written images to WIDTHxHEIGHT"
    )
    parser.add_argument("--window", type=int, default=DEFAULT_WINDOW)
    parser.add_argument("--stride", type=int, default=DETECT_STRIDE)
    parser.add_argument("--nms-threshold", type=int, default=NON_MAX_THRES)
    parser.add_argument("--max-detections", type=int, default=MAX_NUM_OUT_WINS)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run detection on each image and report the number of faces found."""
    args = _build_parser().parse_args(argv)
    try:
        cascade = load_cascade(args.cascade)
        detector = FaceDetector(
            cascade,
            window=args.window,
            stride=args.stride,
            nms_threshold=args.nms_threshold,
            max_detections=args.max_detections,
        )
        if args.output_dir is not None:
            args.output_dir.mkdir(parents=True, exist_ok=True)
        for name in args.images:
            pixels, width, height = read_pgm(name)
            detections = detector.detect(pixels, width, height)
            print(f"{name}: faces detected: {len(detections)}")
            if args.output_dir is None:
                continue
            detector.mark(pixels, width, height, detections)
            out_w, out_h = args.output_size or (width, height)
            if (out_w, out_h) != (width, height):
                pixels = resize_bilinear(pixels, width, height, out_w, out_h)
            write_pgm(args.output_dir / f"{Path(name).stem}.pgm", pixels, out_w, out_h)
    except (OSError, ValueError) as exc:
        print(f"haarface: {exc}", file=sys.stderr)
        return 1
    return 0