"""
Random sampling primitives for network relaxation.

``RandomSource`` is the single source of randomness threaded through the
stochastic update rule and the randomized traversals.  It is an explicit
value built by the caller (seedable for reproducible runs), never a hidden
process-wide generator.

Three primitives are provided:
    - ``uniform()``: an integer spanning the full range of the target width,
      built by concatenating several native draws.
    - ``trial(x)``: a dual-mode Bernoulli trial ("1 in x" odds when x > 1,
      a plain probability when 0 <= x < 1, certain success when x == 1).
    - ``permutation(n)``: a uniform Fisher-Yates shuffle of ``0..n-1``.

The native generator's output width is probed once, lazily, the first time a
draw is needed.  A native maximum that is not of the form ``2**k - 1`` cannot
be concatenated without bias and raises ``CalibrationFailure``.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional

import numpy as np

from hopfield_errors import CalibrationFailure

logger = logging.getLogger("hopfield.random")

# Mirrors the classic RAND_MAX of 31-bit C generators.
DEFAULT_NATIVE_MAX = 0x7FFFFFFF
DEFAULT_TARGET_BITS = 64


def probe_native_width(native_max: int) -> int:
    """Return the number of randomized low bits in ``native_max``.

    Raises:
        CalibrationFailure: If ``native_max`` is not a contiguous run of set
            bits starting at bit 0 (e.g. ``0b1011``), or is not positive.
    """
    if native_max <= 0:
        raise CalibrationFailure(
            f"native generator maximum must be positive, got {native_max}"
        )
    width = 0
    done = False
    bit_pos = 1
    while bit_pos <= native_max:
        if native_max & bit_pos:
            if done:
                raise CalibrationFailure(
                    f"native generator maximum {native_max:#x} is not of the form 2**k - 1"
                )
            width += 1
        else:
            done = True
        bit_pos <<= 1
    return width


class RandomSource:
    """Seedable randomness for the relaxation engine.

    Args:
        seed: Seed for the underlying numpy ``Generator`` (``None`` = fresh
            OS entropy).
        native_max: Largest value a single native draw can return.
        target_bits: Width of the integers produced by ``uniform()``.
        native: Optional zero-argument callable replacing the numpy-backed
            native draw.  Must return integers in ``[0, native_max]``.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        native_max: int = DEFAULT_NATIVE_MAX,
        target_bits: int = DEFAULT_TARGET_BITS,
        native: Optional[Callable[[], int]] = None,
    ):
        if target_bits <= 0:
            raise ValueError(f"target_bits must be positive, got {target_bits}")
        self._rng = np.random.default_rng(seed)
        self._native_max = native_max
        self._native = native
        self._target_bits = target_bits
        self._max_value = (1 << target_bits) - 1
        self._native_width: Optional[int] = None

    def __repr__(self) -> str:
        return (
            f"RandomSource(native_max={self._native_max:#x}, "
            f"target_bits={self._target_bits})"
        )

    @property
    def max_value(self) -> int:
        """Largest value ``uniform()`` can return."""
        return self._max_value

    @property
    def native_width(self) -> int:
        """Bits contributed by one native draw (calibrated on first access)."""
        if self._native_width is None:
            self._native_width = probe_native_width(self._native_max)
            logger.debug(
                "Calibrated native generator: %d bits per draw, %d draws per value",
                self._native_width,
                math.ceil(self._target_bits / self._native_width),
            )
        return self._native_width

    def _draw_native(self) -> int:
        if self._native is not None:
            return int(self._native())
        return int(self._rng.integers(0, self._native_max, endpoint=True))

    def uniform(self) -> int:
        """Draw an integer uniformly from ``[0, max_value]``."""
        width = self.native_width
        result = 0
        bits_left = self._target_bits
        while bits_left > 0:
            result = (result << width) | self._draw_native()
            bits_left -= width
        return result & self._max_value

    def index(self, n: int) -> int:
        """Draw an index uniformly from ``[0, n)``."""
        if n <= 0:
            raise ValueError(f"cannot draw an index from an empty range (n={n})")
        return self.uniform() % n

    def trial(self, x: float) -> bool:
        """Perform a Bernoulli trial.

        ``x == 1`` always succeeds.  ``x > 1`` is read as odds and succeeds
        about once in ``x`` tries.  ``0 <= x < 1`` is read as the probability
        of success.
        """
        if math.isnan(x) or x < 0:
            raise ValueError(f"trial parameter must be a non-negative number, got {x}")
        if x == 1:
            return True
        if x > 1:
            threshold = self._max_value / x
        else:
            threshold = self._max_value * x
        return threshold >= self.uniform()

    def permutation(self, n: int) -> List[int]:
        """Return a uniformly random permutation of ``0..n-1`` (Fisher-Yates)."""
        order = list(range(n))
        for i in range(n - 1, 0, -1):
            j = self.index(i + 1)
            order[i], order[j] = order[j], order[i]
        return order
