"""Mapping from screen pixels to the fixed-point complex constant ``c``."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .fixed_point import Q3_9, arith_shift, from_unsigned, truncate

COORD_WIDTH = 12
FRAC_BITS = 9
CENTER_WIDTH = 16
CENTER_SHIFT = 4
OFFSET_WIDTH = 21
MAX_ZOOM = 15

SCREEN_WIDTH = 640
SCREEN_HEIGHT = 480
SCREEN_CENTER_X = 320
SCREEN_CENTER_Y = 240


@dataclass(frozen=True)
class ViewParameters:
    """One request: a pixel, the view it is seen through, and an iteration cap."""

    pixel_x: int
    pixel_y: int
    center_x: int
    center_y: int
    zoom_level: int
    max_iter_limit: int

    def __post_init__(self) -> None:
        for name in ("pixel_x", "pixel_y", "zoom_level", "max_iter_limit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} is unsigned, got {getattr(self, name)}")


@dataclass(frozen=True)
class ComplexConstant:
    """A pair of Q3.9 values forming ``c = c_real + i*c_imag``."""

    c_real: int
    c_imag: int

    def as_complex(self) -> complex:
        return complex(Q3_9.to_real(self.c_real), Q3_9.to_real(self.c_imag))


def clamp_zoom(zoom_level: int) -> int:
    return min(zoom_level, MAX_ZOOM)


def pixel_scale(zoom_level: int) -> int:
    """Per-pixel step in Q3.9 before the final rescale: ``1.0 >> zoom``."""

    return (1 << FRAC_BITS) >> clamp_zoom(zoom_level)


def _map_axis(pixel, screen_center: int, center, scale: int):
    offset = truncate((pixel - screen_center) * scale, OFFSET_WIDTH)
    base = arith_shift(from_unsigned(center, CENTER_WIDTH), CENTER_SHIFT)
    return truncate(base + arith_shift(offset, CENTER_SHIFT), COORD_WIDTH)


def map_pixel(pixel_x: int, pixel_y: int, center_x: int, center_y: int, zoom_level: int) -> ComplexConstant:
    """Convert a pixel and view into ``c``.

    Out-of-range inputs wrap instead of raising: the scaled offset is cut to
    21 bits, the center loses its low four bits, and the sum is cut to 12 bits.
    """

    scale = pixel_scale(zoom_level)
    return ComplexConstant(
        c_real=int(_map_axis(pixel_x, SCREEN_CENTER_X, center_x, scale)),
        c_imag=int(_map_axis(pixel_y, SCREEN_CENTER_Y, center_y, scale)),
    )


def map_request(params: ViewParameters) -> ComplexConstant:
    return map_pixel(params.pixel_x, params.pixel_y, params.center_x, params.center_y, params.zoom_level)


def map_grid(
    width: int,
    height: int,
    center_x: int,
    center_y: int,
    zoom_level: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Map every pixel of a ``width`` x ``height`` grid at once.

    Returns ``(c_real, c_imag)`` as ``int64`` arrays of shape ``(height, width)``
    holding exactly what :func:`map_pixel` would return per pixel.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"grid size must be positive, got {width}x{height}")

    scale = pixel_scale(zoom_level)
    xs = np.arange(width, dtype=np.int64)
    ys = np.arange(height, dtype=np.int64)
    c_real_row = _map_axis(xs, SCREEN_CENTER_X, np.int64(center_x), scale)
    c_imag_col = _map_axis(ys, SCREEN_CENTER_Y, np.int64(center_y), scale)
    c_real = np.broadcast_to(c_real_row[np.newaxis, :], (height, width)).copy()
    c_imag = np.broadcast_to(c_imag_col[:, np.newaxis], (height, width)).copy()
    return c_real, c_imag
