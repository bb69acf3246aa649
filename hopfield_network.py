"""
Hopfield Network - binary recurrent network relaxation engine.

Implements a network of binary units connected by a symmetric weight matrix
and relaxes it toward a fixed point by recomputing each unit from its
potential.  An optional temperature schedule turns the deterministic sign
rule into a stochastic (simulated annealing) one while it is hot.

Conventions:
    - ``weights[i][j] == weights[j][i]`` for every pair; the diagonal entry
      ``weights[i][i]`` is the negated bias of unit i and is added to the
      potential unconditionally.
    - State is a vector of booleans, coerced to 0/1 in weighted sums.
    - Energy: E = -1/2 * sum_{i != j} w_ij s_i s_j - sum_i w_ii s_i.

Traversal strategies (all accept an optional step budget, ``None`` or 0
meaning unbounded):
    sequential   round-robin 0..n-1; exact equilibrium after a full pass
                 without a flip.
    random       uniform random sampling with a two-stage heuristic
                 equilibrium test.
    random-seq   random permutation epochs; equilibrium after an epoch with
                 no flip.

The random strategies detect equilibrium heuristically; neither they nor a
stochastic update rule guarantee termination or a global energy minimum.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

try:
    import msgpack
except ImportError:
    msgpack = None

from hopfield_errors import (
    DimensionMismatch,
    HopfieldError,
    MalformedInput,
    NonSymmetricWeights,
    OutOfBounds,
)
from hopfield_random import RandomSource
from hopfield_temperature import TemperatureSchedule

logger = logging.getLogger("hopfield.network")

CHECKPOINT_VERSION = "1.0.0"

STRATEGIES = ("sequential", "random", "random-seq")


@dataclass
class RelaxationResult:
    """Result returned from a traversal.

    Truthy exactly when equilibrium was reached.

    Attributes:
        equilibrium: Whether the strategy's equilibrium condition fired.
        steps: Number of single-neuron updates performed.
        strategy: Name of the traversal that produced this result.
    """

    equilibrium: bool
    steps: int
    strategy: str

    def __bool__(self) -> bool:
        return self.equilibrium


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


def _budget(max_steps: Optional[int]) -> int:
    if max_steps is None:
        return 0
    if max_steps < 0:
        raise ValueError(f"max_steps must be non-negative, got {max_steps}")
    return int(max_steps)


class HopfieldNetwork:
    """Binary Hopfield network with pluggable annealing.

    Args:
        weights: Square symmetric weight matrix.  ``None`` creates an empty
            network.
        state: Initial unit values (default: all on).
        count: Number of units (default: derived from ``weights``).
        schedule: Optional temperature schedule to attach.  The network only
            references it; the caller keeps ownership.
        rng: Default ``RandomSource`` for stochastic updates and randomized
            traversals.  Each traversal also accepts its own.

    Raises:
        DimensionMismatch, NonSymmetricWeights: if the initial triple is
            inconsistent.
    """

    def __init__(
        self,
        weights: Optional[Sequence[Sequence[float]]] = None,
        state: Optional[Sequence[bool]] = None,
        count: int = 0,
        schedule: Optional[TemperatureSchedule] = None,
        rng: Optional[RandomSource] = None,
    ):
        self._weights = np.zeros((0, 0), dtype=np.float64)
        self._state = np.zeros(0, dtype=bool)
        self._count = 0
        self._schedule: Optional[TemperatureSchedule] = schedule
        self.rng = rng if rng is not None else RandomSource()

        if weights is not None:
            self.replace_state(weights, state, count)

    def __repr__(self) -> str:
        return (
            f"HopfieldNetwork(count={self._count}, active={self.active_count()}, "
            f"schedule={self._schedule!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HopfieldNetwork):
            return NotImplemented
        return (
            self._count == other._count
            and np.array_equal(self._state, other._state)
            and np.array_equal(self._weights, other._weights)
        )

    __hash__ = None  # type: ignore[assignment]

    # -----------------------------------------------------------------------
    # State management
    # -----------------------------------------------------------------------

    @property
    def count(self) -> int:
        return self._count

    @property
    def weights(self) -> np.ndarray:
        """Read-only view of the weight matrix."""
        return _read_only(self._weights)

    @property
    def state(self) -> np.ndarray:
        """Read-only view of the unit values."""
        return _read_only(self._state)

    @staticmethod
    def check_consistency(
        weights: Sequence[Sequence[float]],
        state: Sequence[bool],
        count: int,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Validate a (weights, state, count) triple.

        Returns:
            The weights and state as fresh numpy arrays.

        Raises:
            DimensionMismatch: If sizes disagree.
            NonSymmetricWeights: If the matrix is not symmetric.
        """
        if count != len(state):
            raise DimensionMismatch(
                f"state has {len(state)} values but the network has {count} units"
            )
        if count != len(weights):
            raise DimensionMismatch(
                f"weight matrix has {len(weights)} rows but the network has {count} units"
            )
        for i, row in enumerate(weights):
            if len(row) != count:
                raise DimensionMismatch(
                    f"weight matrix row {i} has {len(row)} entries, expected {count}"
                )

        matrix = np.array(weights, dtype=np.float64).reshape(count, count)
        values = np.array(state, dtype=bool).reshape(count)

        asymmetric = np.argwhere(matrix != matrix.T)
        if asymmetric.size:
            i, j = (int(k) for k in asymmetric[0])
            raise NonSymmetricWeights(
                f"weights[{i}][{j}]={matrix[i, j]!r} differs from weights[{j}][{i}]={matrix[j, i]!r}"
            )
        return matrix, values

    def replace_state(
        self,
        weights: Sequence[Sequence[float]],
        state: Optional[Sequence[bool]] = None,
        count: int = 0,
    ) -> None:
        """Replace weights, state and count after validating them together.

        Either all three are committed or the network is left untouched.

        Args:
            weights: Square symmetric weight matrix.
            state: Unit values (default: all on).
            count: Number of units (default: ``len(weights)``).
        """
        count = count or len(weights)
        if state is None or len(state) == 0:
            state = [True] * len(weights)
        try:
            matrix, values = self.check_consistency(weights, state, count)
        except (DimensionMismatch, NonSymmetricWeights) as exc:
            logger.warning("Rejected network update (%s): %s", type(exc).__name__, exc)
            raise

        self._weights = matrix
        self._state = values
        self._count = count

    # -----------------------------------------------------------------------
    # Temperature schedule
    # -----------------------------------------------------------------------

    @property
    def schedule(self) -> Optional[TemperatureSchedule]:
        return self._schedule

    def attach_schedule(self, schedule: Optional[TemperatureSchedule]) -> None:
        """Attach a temperature schedule, or detach with ``None``."""
        self._schedule = schedule

    def set_temperature(self, temperature: float) -> None:
        """Restart the attached schedule at ``temperature``; no-op without one."""
        if self._schedule is not None:
            self._schedule.set_temperature(temperature)

    # -----------------------------------------------------------------------
    # Potential and update rule
    # -----------------------------------------------------------------------

    def _check_index(self, neuron: int) -> None:
        if not 0 <= neuron < self._count:
            raise OutOfBounds(f"neuron {neuron} outside [0, {self._count})")

    def _potential(self, neuron: int) -> float:
        # State as 0/1 with the neuron's own slot forced to 1 so the diagonal
        # (bias) term enters unconditionally.
        coefficients = self._state.astype(np.float64)
        coefficients[neuron] = 1.0
        return float(self._weights[neuron] @ coefficients)

    def potential(self, neuron: int) -> float:
        """Weighted sum of the other units' values plus the bias of ``neuron``."""
        self._check_index(neuron)
        return self._potential(neuron)

    def _update(self, neuron: int, rng: RandomSource) -> bool:
        potential = self._potential(neuron)
        # Ties keep the current value.
        if potential == 0:
            return False

        prior = bool(self._state[neuron])
        schedule = self._schedule
        if schedule is not None and schedule.is_hot():
            try:
                one_in_x = 1.0 + math.exp(-2.0 * potential / schedule.get_temperature())
            except OverflowError:
                one_in_x = math.inf
            value = rng.trial(one_in_x)
            schedule.cool_down()
        else:
            value = potential >= 0

        self._state[neuron] = value
        return prior != value

    def update_one(self, neuron: int, rng: Optional[RandomSource] = None) -> bool:
        """Recompute one unit from its potential.

        Deterministic (``state = potential >= 0``) unless a hot schedule is
        attached, in which case the new value is a Bernoulli trial with odds
        ``1 + exp(-2 * potential / T)`` and the schedule cools by one tick.

        Returns:
            Whether the unit's value changed.

        Raises:
            OutOfBounds: If ``neuron`` is not in ``[0, count)``.
        """
        self._check_index(neuron)
        return self._update(neuron, rng if rng is not None else self.rng)

    # -----------------------------------------------------------------------
    # Traversal strategies
    # -----------------------------------------------------------------------

    def _finish(self, strategy: str, equilibrium: bool, steps: int) -> RelaxationResult:
        if equilibrium:
            logger.debug("%s traversal reached equilibrium after %d steps", strategy, steps)
        else:
            logger.info("%s traversal used its budget of %d steps without equilibrium", strategy, steps)
        return RelaxationResult(equilibrium=equilibrium, steps=steps, strategy=strategy)

    def compute_sequentially(
        self,
        max_steps: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ) -> RelaxationResult:
        """Visit units 0, 1, ..., n-1, 0, ... until a full pass flips nothing.

        Equilibrium fires when the traversal comes back to the most recently
        changed unit without any change in between.

        Args:
            max_steps: Step budget; ``None`` or 0 runs until equilibrium.
            rng: Randomness for stochastic updates (default: ``self.rng``).
        """
        budget = _budget(max_steps)
        rng = rng if rng is not None else self.rng
        n = self._count
        if n == 0:
            return self._finish("sequential", True, 0)

        steps = 0
        neuron = 0
        unchanged = 0
        while not budget or steps < budget:
            steps += 1
            if self._update(neuron, rng):
                unchanged = 0
            else:
                unchanged += 1
                if unchanged == n:
                    return self._finish("sequential", True, steps)
            neuron = (neuron + 1) % n

        return self._finish("sequential", False, steps)

    def compute_randomly(
        self,
        max_steps: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ) -> RelaxationResult:
        """Update uniformly sampled units until the network appears stable.

        Two-stage heuristic: once more than 2n consecutive updates changed
        nothing, every further unchanged unit is marked as checked and a
        countdown (initially 2n) runs.  When it reaches zero the unchecked
        units are counted; none left means equilibrium, otherwise the
        countdown restarts at that remaining count.  A change that ends a
        streak longer than 2n clears all marks and restarts the countdown at
        2n.  This is an approximation, not a proof of a fixed point.

        Args:
            max_steps: Step budget; ``None`` or 0 runs until equilibrium.
            rng: Randomness for sampling and stochastic updates.
        """
        budget = _budget(max_steps)
        rng = rng if rng is not None else self.rng
        n = self._count
        if n == 0:
            return self._finish("random", True, 0)

        stall_threshold = 2 * n
        unchanged = 0
        unchecked = np.ones(n, dtype=bool)
        next_check = 2 * n
        check_steps = 0

        steps = 0
        while not budget or steps < budget:
            steps += 1
            neuron = rng.index(n)
            if self._update(neuron, rng):
                if unchanged > stall_threshold:
                    unchecked[:] = True
                    check_steps = 0
                    next_check = 2 * n
                unchanged = 0
                continue

            unchanged += 1
            if unchanged <= stall_threshold:
                continue
            unchecked[neuron] = False
            check_steps += 1
            if check_steps == next_check:
                check_steps = 0
                remaining = int(np.count_nonzero(unchecked))
                if remaining == 0:
                    return self._finish("random", True, steps)
                next_check = remaining

        return self._finish("random", False, steps)

    def compute_random_seq(
        self,
        max_steps: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ) -> RelaxationResult:
        """Process units in fresh random permutations until an epoch flips nothing.

        Args:
            max_steps: Step budget; ``None`` or 0 runs until equilibrium.
            rng: Randomness for permutations and stochastic updates.
        """
        budget = _budget(max_steps)
        rng = rng if rng is not None else self.rng
        n = self._count
        if n == 0:
            return self._finish("random-seq", True, 0)

        steps = 0
        while True:
            changed = False
            for neuron in rng.permutation(n):
                if budget and steps >= budget:
                    return self._finish("random-seq", False, steps)
                steps += 1
                if self._update(neuron, rng):
                    changed = True
            if not changed:
                return self._finish("random-seq", True, steps)

    def relax(
        self,
        strategy: str = "sequential",
        max_steps: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ) -> RelaxationResult:
        """Run the traversal named ``strategy`` (one of ``STRATEGIES``)."""
        if strategy == "sequential":
            return self.compute_sequentially(max_steps, rng)
        if strategy == "random":
            return self.compute_randomly(max_steps, rng)
        if strategy == "random-seq":
            return self.compute_random_seq(max_steps, rng)
        raise ValueError(f"Unknown traversal strategy: {strategy!r}")

    # -----------------------------------------------------------------------
    # Reporting
    # -----------------------------------------------------------------------

    def energy(self) -> float:
        """E = -1/2 * sum_{i != j} w_ij s_i s_j - sum_i w_ii s_i."""
        s = self._state.astype(np.float64)
        diagonal = np.diag(self._weights)
        pairwise = float(s @ self._weights @ s) - float(diagonal @ (s * s))
        return -0.5 * pairwise - float(diagonal @ s)

    def active_count(self) -> int:
        """Number of units that are on."""
        return int(np.count_nonzero(self._state))

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": CHECKPOINT_VERSION,
            "count": self._count,
            "state": [bool(v) for v in self._state],
            "weights": self._weights.tolist(),
        }

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Replace the network from a ``to_dict`` payload (validated, atomic)."""
        try:
            weights = data["weights"]
            state = data["state"]
            count = int(data["count"])
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedInput(f"invalid network payload: {exc}") from exc
        try:
            self.replace_state(weights, state, count)
        except HopfieldError:
            raise
        except (TypeError, ValueError) as exc:
            # Non-sequence rows or non-numeric entries.
            raise MalformedInput(f"invalid network payload: {exc}") from exc

    def checkpoint(self, path: str) -> None:
        """Save weights and state (extension picks the format: .json or .msgpack)."""
        data = self.to_dict()
        if path.endswith(".msgpack"):
            if msgpack is None:
                raise ImportError("msgpack required for .msgpack serialization")
            with open(path, "wb") as f:
                msgpack.pack(data, f, use_bin_type=True)
        else:
            with open(path, "w") as f:
                json.dump(data, f, indent=2)

    def restore(self, path: str) -> None:
        """Load weights and state from a checkpoint written by ``checkpoint``."""
        if path.endswith(".msgpack"):
            if msgpack is None:
                raise ImportError("msgpack required for .msgpack deserialization")
            with open(path, "rb") as f:
                data = msgpack.unpack(f, raw=False)
        else:
            with open(path, "r") as f:
                data = json.load(f)

        if not isinstance(data, dict):
            raise MalformedInput(f"checkpoint {path} does not hold a network payload")
        self.from_dict(data)
