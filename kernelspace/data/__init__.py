"""Synthetic data generators."""

from .simulation import (
    make_blobs,
    make_xor,
    make_rings,
    make_sine_regression,
    make_line,
    to_frame,
)

__all__ = [
    "make_blobs",
    "make_xor",
    "make_rings",
    "make_sine_regression",
    "make_line",
    "to_frame",
]
