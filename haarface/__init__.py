"""Haar-cascade face detection on grayscale images, with drawing helpers and a PGM command line tool."""

__version__ = "0.1.0"
__all__ = ["cascade", "drawing", "kernels", "detector", "cli"]