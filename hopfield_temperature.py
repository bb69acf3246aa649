"""
Temperature schedules for simulated annealing of a Hopfield network.

A schedule is a small strategy object exposing four capabilities:

    get_temperature()   current temperature
    set_temperature(T)  restart the schedule from temperature T
    is_hot()            whether the update rule should still be stochastic
    cool_down()         advance the schedule by one tick

The network only reads the temperature and advances the schedule on each
stochastic update; it never owns it.  Each schedule keeps its own clock;
cached schedules share only their ln(1 + t) lookup table.

Variants:
    NoTemperatureSchedule         never hot, the update rule stays deterministic
    ExponentialSchedule           T *= factor every ``period`` ticks
    LogarithmicSchedule           T(t) = T0 / ln(1 + t)
    CachedLogarithmicSchedule     same values as LogarithmicSchedule, with
                                  ln(1 + t) memoized in a shared table
"""

from __future__ import annotations

import math
import threading
from typing import List, Optional

# Above this temperature the update rule is stochastic.
ZERO_THRESHOLD = 0.5


class TemperatureSchedule:
    """Base class for pluggable temperature schedules.

    Subclass and override ``get_temperature``, ``set_temperature`` and
    ``cool_down``.  ``is_hot`` compares against ``ZERO_THRESHOLD`` unless a
    variant says otherwise.
    """

    def get_temperature(self) -> float:
        raise NotImplementedError

    def set_temperature(self, temperature: float) -> None:
        raise NotImplementedError

    def cool_down(self) -> None:
        raise NotImplementedError

    def is_hot(self) -> bool:
        return self.get_temperature() > ZERO_THRESHOLD

    @property
    def temperature(self) -> float:
        return self.get_temperature()


class NoTemperatureSchedule(TemperatureSchedule):
    """A schedule that is never hot.

    Attaching it is equivalent to attaching nothing: every update follows the
    deterministic sign rule.  The stored temperature is kept only so callers
    can read back what they set.
    """

    def __init__(self, temperature: float = 0.0):
        self._temperature = temperature

    def __repr__(self) -> str:
        return f"NoTemperatureSchedule(temperature={self._temperature})"

    def get_temperature(self) -> float:
        return self._temperature

    def set_temperature(self, temperature: float) -> None:
        self._temperature = temperature

    def is_hot(self) -> bool:
        return False

    def cool_down(self) -> None:
        pass


class ExponentialSchedule(TemperatureSchedule):
    """Multiply the temperature by ``factor`` once every ``period`` ticks.

    After t ticks: T(t) = T(0) * factor ** (t // period).

    Args:
        factor: Multiplicative decay applied at each cooling event (``n``).
        period: Ticks between cooling events (``q``), at least 1.
        temperature: Initial temperature.
    """

    def __init__(self, factor: float, period: int, temperature: float = 0.0):
        if period < 1:
            raise ValueError(f"period must be at least 1, got {period}")
        self.factor = factor
        self.period = period
        self._temperature = temperature
        self.elapsed = 0
        self._next_cool_down = period

    def __repr__(self) -> str:
        return (
            f"ExponentialSchedule(factor={self.factor}, period={self.period}, "
            f"temperature={self._temperature}, elapsed={self.elapsed})"
        )

    def get_temperature(self) -> float:
        return self._temperature

    def set_temperature(self, temperature: float) -> None:
        self._temperature = temperature
        self.elapsed = 0
        self._next_cool_down = self.period

    def cool_down(self) -> None:
        self.elapsed += 1
        if self.elapsed == self._next_cool_down:
            self._next_cool_down += self.period
            self._temperature *= self.factor


class LogarithmicSchedule(TemperatureSchedule):
    """Classic annealing schedule T(t) = T0 / ln(1 + t), recomputed each tick.

    Args:
        temperature: Initial temperature ``T0``.
    """

    def __init__(self, temperature: float):
        self.initial_temperature = temperature
        self._temperature = temperature
        self.elapsed = 0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(initial_temperature={self.initial_temperature}, "
            f"elapsed={self.elapsed})"
        )

    def get_temperature(self) -> float:
        return self._temperature

    def set_temperature(self, temperature: float) -> None:
        self.initial_temperature = temperature
        self._temperature = temperature
        self.elapsed = 0

    def _log1p_elapsed(self) -> float:
        return math.log1p(self.elapsed)

    def cool_down(self) -> None:
        self.elapsed += 1
        self._temperature = self.initial_temperature / self._log1p_elapsed()


# ln(1 + t) for t = 0, 1, 2, ...; shared by every cached schedule and only
# ever appended to.  Extensions happen under _LOG1P_LOCK so that slot t
# always holds math.log1p(t) even when schedules cool down in parallel
# threads.
_LOG1P_TABLE: List[float] = [math.log1p(0), math.log1p(1), math.log1p(2)]
_LOG1P_LOCK = threading.Lock()


def cached_log1p(t: int) -> float:
    """Return ln(1 + t), extending the shared table up to ``t`` if needed."""
    table = _LOG1P_TABLE
    if t < len(table):
        return table[t]
    with _LOG1P_LOCK:
        # Another thread may have extended the table while we waited.
        while len(table) <= t:
            table.append(math.log1p(len(table)))
    return table[t]


class CachedLogarithmicSchedule(LogarithmicSchedule):
    """``LogarithmicSchedule`` with ln(1 + t) looked up in a shared table.

    Produces exactly the same temperatures as ``LogarithmicSchedule``; the
    table only saves the transcendental call when several schedules (or
    several restarts of one schedule) walk over the same ticks.

    The table is filled with ``math.log1p(t)`` directly rather than with the
    ``ln(2k) = ln 2 + ln k`` doubling identity: in IEEE doubles the sum is not
    always bit-identical to ``ln(2k)``, and bit-identity with the plain
    schedule matters more than the saved call.
    """

    def _log1p_elapsed(self) -> float:
        return cached_log1p(self.elapsed)


SCHEDULE_KINDS = ("none", "exp", "log", "log-cached")


def build_schedule(
    kind: str,
    temperature: float = 0.0,
    factor: float = 0.995,
    period: int = 1,
) -> Optional[TemperatureSchedule]:
    """Construct a schedule by name.

    Args:
        kind: One of ``SCHEDULE_KINDS``.  ``"none"`` returns ``None`` so the
            network runs without any schedule attached.
        temperature: Initial temperature.
        factor: Decay factor for ``"exp"``.
        period: Ticks between decays for ``"exp"``.
    """
    if kind == "none":
        return None
    if kind == "exp":
        return ExponentialSchedule(factor, period, temperature)
    if kind == "log":
        return LogarithmicSchedule(temperature)
    if kind == "log-cached":
        return CachedLogarithmicSchedule(temperature)
    raise ValueError(f"Unknown temperature schedule: {kind!r}")
