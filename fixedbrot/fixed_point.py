"""Signed fixed-point primitives with two's-complement wraparound.

All helpers accept Python ints as well as numpy integer arrays, so the same
code path serves the scalar engine and the vectorised coordinate grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar, Union

import numpy as np

IntLike = TypeVar("IntLike", bound=Union[int, np.integer, np.ndarray])


def truncate(value: IntLike, width: int) -> IntLike:
    """Wrap ``value`` to a signed ``width``-bit integer.

    High bits are discarded and the sign is taken from the new top bit. The
    operation is total; it never saturates.
    """

    if width < 1:
        raise ValueError(f"width must be at least 1, got {width}")
    half = 1 << (width - 1)
    return ((value + half) & ((1 << width) - 1)) - half


def arith_shift(value: IntLike, bits: int) -> IntLike:
    """Sign-extending right shift (floor division by ``2**bits``)."""

    return value >> bits


def from_unsigned(raw: IntLike, width: int) -> IntLike:
    """Reinterpret a raw ``width``-bit pattern as a signed integer."""

    return truncate(raw, width)


@dataclass(frozen=True)
class FixedFormat:
    """A signed fixed-point format with ``width`` total and ``frac_bits`` fractional bits."""

    width: int
    frac_bits: int

    def __post_init__(self) -> None:
        if self.width < 1:
            raise ValueError(f"width must be at least 1, got {self.width}")
        if not 0 <= self.frac_bits <= self.width:
            raise ValueError(f"frac_bits must lie in [0, {self.width}], got {self.frac_bits}")

    @property
    def one(self) -> int:
        return 1 << self.frac_bits

    def wrap(self, value: IntLike) -> IntLike:
        return truncate(value, self.width)

    def to_real(self, stored) -> float:
        return stored / self.one

    def from_real(self, real: float) -> int:
        return self.wrap(int(round(real * self.one)))


# Complex constant and iterate format.
Q3_9 = FixedFormat(width=12, frac_bits=9)
# View-center input format; its low four bits are dropped on the way to Q3.9.
Q3_13 = FixedFormat(width=16, frac_bits=13)
