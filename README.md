# haarface

Face detection on 8-bit grayscale images with a Haar-feature cascade
classifier. The input image is scaled down into a small pyramid. For each
level the package builds an integral image and a squared integral image,
then passes every window through the cascade. Overlapping hits are reduced
with non-maximum suppression.

The package is pure Python and has no third-party dependencies.

## Installation

```
pip install .
```

## Command line

```
haarface CASCADE.json IMAGE.pgm [IMAGE.pgm ...] [options]
```

For each image the command prints a line of the form
`photo.pgm: faces detected: N`. Images must be 8-bit PGM files, either
binary (`P5`) or plain (`P2`).

Options:

- `--output-dir DIR` writes a copy of each image to `DIR/<name>.pgm`, with a
  thick black frame drawn around every detection. The directory is created if
  it does not exist.
- `--output-size WIDTHxHEIGHT` resizes the written copies.
- `--window N` sets the side of the square detection window. The default is 24.
- `--stride N` sets the step between window positions. The default is 1.
- `--nms-threshold N` sets the minimum overlap, in pixels, at which the
  weaker of two detections is dropped. The default is 250.
- `--max-detections N` caps how many raw candidates are kept before
  suppression. The default is 20.

On a missing file, an unreadable image or an invalid cascade, the command
prints a message to standard error and exits with status 1.

## Library use

```python
from haarface.cascade import load_cascade
from haarface.detector import FaceDetector
from haarface.cli import read_pgm, write_pgm

cascade = load_cascade("face_cascade.json")
pixels, width, height = read_pgm("photo.pgm")

detector = FaceDetector(cascade)
detections = detector.detect(pixels, width, height)
for d in detections:
    print(d.x, d.y, d.w, d.h, d.score)

detector.mark(pixels, width, height, detections)
write_pgm("marked.pgm", pixels, width, height)
```

By default `FaceDetector` scans three pyramid levels of 64x48, 51x38 and
40x30 pixels with a 24x24 window. Detections are reported in the coordinates
of the input image. `base_size`, `levels`, `window`, `stride`,
`nms_threshold` and `max_detections` can all be changed.

### Cascade files

`load_cascade` and `save_cascade` read and write cascades as JSON:

```json
{
  "thresholds": [-5],
  "stages": [
    {
      "thresholds": [10],
      "alpha1": [-3],
      "alpha2": [4],
      "rect_num": [0, 2],
      "weights": [-1, 2],
      "rectangles": [0, 0, 24, 24, 8, 8, 8, 8]
    }
  ]
}
```

The top-level `thresholds` has one entry per stage: the score that stage must
reach. Weak classifier `i` of a stage uses the weights
`weights[rect_num[i]:rect_num[i+1]]`, and each weight takes four
`rectangles` entries: `x`, `y`, `w` and `h`. Values are checked against the
integer ranges of the model, and malformed data raises `ValueError`.

### Modules

- `haarface.cascade` provides the `Stage` and `Cascade` model types, with
  `from_dict` and `to_dict`, plus `Cascade.largest_stage_bytes`. It also
  provides `load_cascade` and `save_cascade`.
- `haarface.kernels` holds the building blocks:
  - `resize_bilinear` scales an image using fixed-point arithmetic.
  - `integral_image` and `squared_integral_image` build the summed tables.
  - `window_sum` looks up the sum over a rectangle.
  - `rounded_isqrt` is an integer square root rounded to the nearest value.
  - `classify_window` scores one window with the cascade.
  - `evaluate_cascade` scores every window position of a pyramid level.
- `haarface.detector` provides:
  - `Detection` and `FaceDetector`.
  - `pyramid_sizes`, which gives the size of each pyramid level.
  - `intersect_area`, the overlap of two boxes.
  - `non_max_suppress`, which drops overlapping hits.
- `haarface.drawing` draws on grayscale and RGB byte images with
  `draw_line`, `draw_line_rgb`, `draw_rectangle` and `draw_rectangle_rgb`,
  and converts grayscale to RGB with `gray_to_rgb`.
- `haarface.cli` provides the command, along with `read_pgm` and `write_pgm`.

## What it does not do

- No trained face cascade is included. You must supply one as a JSON file in
  the format above.
- It reads still PGM images only. It does not capture frames from a camera,
  stream video, or read other image formats.

## Tests

```
pip install .[test]
pytest
```