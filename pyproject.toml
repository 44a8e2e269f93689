[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "haarface"
version = "0.1.0"
description = "Haar-cascade face detection on grayscale images with integral images, an image pyramid and non-maximum suppression"
requires-python = ">=3.10"
dependencies = []
keywords = ["face detection", "haar cascade", "integral image", "computer vision", "pgm"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
haarface = "haarface.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["haarface"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
