"""Tests for temperature schedules."""

import math
import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from hopfield_temperature import (
    ZERO_THRESHOLD,
    CachedLogarithmicSchedule,
    ExponentialSchedule,
    LogarithmicSchedule,
    NoTemperatureSchedule,
    TemperatureSchedule,
    build_schedule,
    cached_log1p,
)


class TestNoSchedule:

    def test_never_hot(self):
        s = NoTemperatureSchedule(100.0)
        assert not s.is_hot()
        s.cool_down()
        assert s.get_temperature() == 100.0

    def test_set_temperature(self):
        s = NoTemperatureSchedule()
        s.set_temperature(5.0)
        assert s.temperature == 5.0
        assert not s.is_hot()


class TestHotThreshold:

    def test_strictly_greater(self):
        s = ExponentialSchedule(1.0, 1, ZERO_THRESHOLD)
        assert not s.is_hot()
        s.set_temperature(0.51)
        assert s.is_hot()

    def test_base_is_abstract(self):
        with pytest.raises(NotImplementedError):
            TemperatureSchedule().cool_down()


class TestExponential:

    def test_decays_every_period(self):
        s = ExponentialSchedule(0.5, 3, 8.0)
        temperatures = []
        for _ in range(7):
            s.cool_down()
            temperatures.append(s.get_temperature())
        assert temperatures == [8.0, 8.0, 4.0, 4.0, 4.0, 2.0, 2.0]
        assert s.elapsed == 7

    def test_set_temperature_restarts_clock(self):
        s = ExponentialSchedule(0.5, 2, 8.0)
        s.cool_down()
        s.set_temperature(10.0)
        assert s.elapsed == 0
        s.cool_down()
        assert s.get_temperature() == 10.0
        s.cool_down()
        assert s.get_temperature() == 5.0

    def test_period_must_be_positive(self):
        with pytest.raises(ValueError):
            ExponentialSchedule(0.9, 0, 1.0)

    def test_cools_below_threshold(self):
        s = ExponentialSchedule(0.9, 1, 40.0)
        ticks = 0
        while s.is_hot():
            s.cool_down()
            ticks += 1
        # 40 * 0.9**k <= 0.5  ->  k = ceil(ln(80) / ln(1/0.9))
        assert ticks == math.ceil(math.log(80) / math.log(1 / 0.9))


class TestLogarithmic:

    def test_formula(self):
        s = LogarithmicSchedule(30.0)
        assert s.get_temperature() == 30.0
        for t in range(1, 50):
            s.cool_down()
            assert s.get_temperature() == 30.0 / math.log1p(t)

    def test_first_tick(self):
        s = LogarithmicSchedule(30.0)
        s.cool_down()
        assert s.get_temperature() == pytest.approx(30.0 / math.log(2))

    def test_set_temperature_resets(self):
        s = LogarithmicSchedule(30.0)
        for _ in range(5):
            s.cool_down()
        s.set_temperature(10.0)
        assert s.elapsed == 0
        assert s.initial_temperature == 10.0
        s.cool_down()
        assert s.get_temperature() == 10.0 / math.log1p(1)


class TestCachedLogarithmic:

    def test_identical_to_logarithmic(self):
        plain = LogarithmicSchedule(30.0)
        cached = CachedLogarithmicSchedule(30.0)
        for _ in range(1000):
            plain.cool_down()
            cached.cool_down()
            assert cached.get_temperature() == plain.get_temperature()

    def test_identical_after_restart(self):
        plain = LogarithmicSchedule(7.5)
        cached = CachedLogarithmicSchedule(7.5)
        for _ in range(300):
            cached.cool_down()
        cached.set_temperature(7.5)
        for _ in range(600):
            plain.cool_down()
            cached.cool_down()
            assert cached.get_temperature() == plain.get_temperature()

    def test_table_values(self):
        assert cached_log1p(0) == 0.0
        assert cached_log1p(1) == math.log(2)
        assert cached_log1p(1500) == math.log1p(1500)

    def test_parallel_schedules_share_consistent_table(self):
        ticks = 40000
        workers = 8
        barrier = threading.Barrier(workers)
        mismatches = []

        def run():
            plain = LogarithmicSchedule(10.0)
            cached = CachedLogarithmicSchedule(10.0)
            barrier.wait()
            for _ in range(ticks):
                plain.cool_down()
                cached.cool_down()
                if cached.get_temperature() != plain.get_temperature():
                    mismatches.append(cached.elapsed)

        threads = [threading.Thread(target=run) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert mismatches == []
        assert all(cached_log1p(t) == math.log1p(t) for t in range(ticks + 1))


class TestBuildSchedule:

    def test_kinds(self):
        assert build_schedule("none") is None
        assert isinstance(build_schedule("exp", 40.0, 0.9, 10), ExponentialSchedule)
        assert type(build_schedule("log", 30.0)) is LogarithmicSchedule
        assert isinstance(build_schedule("log-cached", 30.0), CachedLogarithmicSchedule)

    def test_parameters(self):
        s = build_schedule("exp", 40.0, 0.9, 10)
        assert (s.factor, s.period, s.get_temperature()) == (0.9, 10, 40.0)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_schedule("linear", 1.0)
