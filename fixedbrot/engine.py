"""Bit-exact escape-time iteration on Q3.9 values."""

from __future__ import annotations

from dataclasses import dataclass

from .coordinates import COORD_WIDTH, FRAC_BITS, ViewParameters, map_request
from .fixed_point import arith_shift, truncate

PRODUCT_WIDTH = 24
SUM_WIDTH = 13
# 4.0 in Q3.9, compared against |z|^2.
ESCAPE_THRESHOLD = 4 << FRAC_BITS


@dataclass(frozen=True)
class IterationState:
    """The iterate ``z`` and the number of updates applied so far."""

    z_real: int = 0
    z_imag: int = 0
    iteration: int = 0


def magnitude(state: IterationState) -> int:
    """``|z|^2`` in Q3.9 units; each square is rescaled before the sum."""

    return arith_shift(state.z_real * state.z_real, FRAC_BITS) + arith_shift(state.z_imag * state.z_imag, FRAC_BITS)


def has_escaped(state: IterationState, max_iter_limit: int) -> bool:
    """Shared exit test: divergence or the iteration cap, whichever comes first."""

    return magnitude(state) > ESCAPE_THRESHOLD or state.iteration >= max_iter_limit


def next_iterate(state: IterationState, c_real: int, c_imag: int) -> IterationState:
    """Apply one ``z <- z^2 + c`` update with the datapath's truncation points."""

    z_real_sq = truncate(state.z_real * state.z_real, PRODUCT_WIDTH)
    z_imag_sq = truncate(state.z_imag * state.z_imag, PRODUCT_WIDTH)
    z_cross = truncate((state.z_real * state.z_imag) << 1, PRODUCT_WIDTH)

    diff = truncate(arith_shift(z_real_sq, FRAC_BITS) - arith_shift(z_imag_sq, FRAC_BITS), SUM_WIDTH)
    cross = truncate(arith_shift(z_cross, FRAC_BITS), SUM_WIDTH)

    return IterationState(
        z_real=truncate(diff + c_real, COORD_WIDTH),
        z_imag=truncate(cross + c_imag, COORD_WIDTH),
        iteration=state.iteration + 1,
    )


def iterate_point(c_real: int, c_imag: int, max_iter_limit: int) -> int:
    """Return the escape iteration of ``c``, or ``max_iter_limit`` if it stays bounded.

    The escape test runs before every update, so a limit of zero returns zero
    without touching ``z``.
    """

    state = IterationState()
    while not has_escaped(state, max_iter_limit):
        state = next_iterate(state, c_real, c_imag)
    return state.iteration


def compute_iterations(params: ViewParameters) -> int:
    c = map_request(params)
    return iterate_point(c.c_real, c.c_imag, params.max_iter_limit)


def float_iterations(params: ViewParameters) -> int:
    """Floating-point reference on the same ``c``, for diagnostics only."""

    c = map_request(params).as_complex()
    z = complex(0, 0)
    for i in range(params.max_iter_limit):
        if abs(z) > 2.0:
            return i
        z = z * z + c
    return params.max_iter_limit
