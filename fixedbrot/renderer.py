"""Whole-frame rendering with the fixed-point engine vectorised in TensorFlow."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .coordinates import COORD_WIDTH, FRAC_BITS, SCREEN_HEIGHT, SCREEN_WIDTH, map_grid
from .engine import ESCAPE_THRESHOLD, PRODUCT_WIDTH, SUM_WIDTH
from .fixed_point import Q3_9

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameView:
    """Parameters shared by every pixel of one frame."""

    center_x: int
    center_y: int
    zoom_level: int
    max_iter_limit: int
    width: int = SCREEN_WIDTH
    height: int = SCREEN_HEIGHT

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"frame size must be positive, got {self.width}x{self.height}")
        if self.zoom_level < 0 or self.max_iter_limit < 0:
            raise ValueError("zoom_level and max_iter_limit are unsigned")


@dataclass(frozen=True)
class RenderResult:
    """Per-pixel iteration counts together with the constants they came from."""

    iterations: np.ndarray
    c_real: np.ndarray
    c_imag: np.ndarray
    view: FrameView

    @property
    def inside(self) -> np.ndarray:
        return self.iterations >= self.view.max_iter_limit


def _wrap(x: tf.Tensor, width: int) -> tf.Tensor:
    half = tf.constant(1 << (width - 1), dtype=x.dtype)
    mask = tf.constant((1 << width) - 1, dtype=x.dtype)
    return tf.bitwise.bitwise_and(x + half, mask) - half


def _shift(x: tf.Tensor, bits: int) -> tf.Tensor:
    # Arithmetic shift for signed dtypes.
    return tf.bitwise.right_shift(x, tf.constant(bits, dtype=x.dtype))


@tf.function
def _escape_step(
    zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, ns: tf.Tensor, active: tf.Tensor
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Escape test plus one update for every pixel still running."""

    zr_sq = zr * zr
    zi_sq = zi * zi
    mag = _shift(zr_sq, FRAC_BITS) + _shift(zi_sq, FRAC_BITS)
    still = tf.logical_and(active, mag <= ESCAPE_THRESHOLD)

    diff = _wrap(_shift(_wrap(zr_sq, PRODUCT_WIDTH), FRAC_BITS) - _shift(_wrap(zi_sq, PRODUCT_WIDTH), FRAC_BITS), SUM_WIDTH)
    cross = _wrap(_shift(_wrap(zr * zi * 2, PRODUCT_WIDTH), FRAC_BITS), SUM_WIDTH)
    zr_new = _wrap(diff + cr, COORD_WIDTH)
    zi_new = _wrap(cross + ci, COORD_WIDTH)

    zr = tf.where(still, zr_new, zr)
    zi = tf.where(still, zi_new, zi)
    ns = ns + tf.cast(still, ns.dtype)
    return zr, zi, ns, still


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Run the escape loop on all pixels until each one exits or the cap is reached."""

    i = tf.constant(0, dtype=tf.int64)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr)
    active = tf.ones_like(cr, tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def render_frame(view: FrameView, *, device: Optional[str] = None) -> RenderResult:
    """Render ``view``; every pixel matches :func:`fixedbrot.engine.iterate_point`."""

    started = time.perf_counter()
    c_real, c_imag = map_grid(view.width, view.height, view.center_x, view.center_y, view.zoom_level)

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(c_real, dtype=tf.int64)
        ci = tf.convert_to_tensor(c_imag, dtype=tf.int64)
        ns = _escape_run(cr, ci, tf.constant(view.max_iter_limit, dtype=tf.int64))

    iterations = ns.numpy()
    logger.debug("rendered %dx%d frame in %.3fs", view.width, view.height, time.perf_counter() - started)
    return RenderResult(iterations=iterations, c_real=c_real, c_imag=c_imag, view=view)


def float_frame(view: FrameView) -> np.ndarray:
    """Floating-point escape counts on the same per-pixel constants."""

    c_real, c_imag = map_grid(view.width, view.height, view.center_x, view.center_y, view.zoom_level)
    c = Q3_9.to_real(c_real.astype(np.float64)) + 1j * Q3_9.to_real(c_imag.astype(np.float64))
    z = np.zeros_like(c)
    ns = np.zeros(c.shape, dtype=np.int64)
    active = np.ones(c.shape, dtype=bool)
    for _ in range(view.max_iter_limit):
        active &= np.abs(z) <= 2.0
        if not active.any():
            break
        z = np.where(active, z * z + c, z)
        ns += active
    return ns
