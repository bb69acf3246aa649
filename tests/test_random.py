"""Tests for RandomSource: calibration, uniform draws, Bernoulli trials, permutations."""

import itertools
import math
import os
import sys
from collections import Counter

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from hopfield_errors import CalibrationFailure
from hopfield_random import DEFAULT_NATIVE_MAX, RandomSource, probe_native_width


class TestCalibration:
    """The native output width is probed once and must be 2**k - 1."""

    def test_default_width(self):
        assert probe_native_width(DEFAULT_NATIVE_MAX) == 31

    def test_small_widths(self):
        assert probe_native_width(1) == 1
        assert probe_native_width(0xFF) == 8

    def test_gap_in_bits_fails(self):
        with pytest.raises(CalibrationFailure):
            probe_native_width(0b1011)

    def test_non_positive_fails(self):
        with pytest.raises(CalibrationFailure):
            probe_native_width(0)

    def test_failure_is_lazy(self):
        rng = RandomSource(native_max=0b1011)
        with pytest.raises(CalibrationFailure):
            rng.uniform()

    def test_calibrated_once(self):
        rng = RandomSource(seed=1)
        assert rng.native_width == 31
        rng._native_max = 0b1011
        # Cached width survives; no second probe.
        assert rng.native_width == 31


class TestUniform:

    def test_concatenates_native_draws(self):
        rng = RandomSource(native_max=0xFF, target_bits=16, native=lambda: 0xFF)
        assert rng.uniform() == 0xFFFF

    def test_masks_to_target_width(self):
        rng = RandomSource(native_max=0xFF, target_bits=12, native=lambda: 0xFF)
        assert rng.uniform() == 0xFFF

    def test_draw_order(self):
        draws = iter([0x12, 0x34])
        rng = RandomSource(native_max=0xFF, target_bits=16, native=lambda: next(draws))
        assert rng.uniform() == 0x1234

    def test_range(self):
        rng = RandomSource(seed=7)
        for _ in range(200):
            assert 0 <= rng.uniform() <= rng.max_value
        assert rng.max_value == 2 ** 64 - 1

    def test_seed_reproducible(self):
        a = RandomSource(seed=99)
        b = RandomSource(seed=99)
        assert [a.uniform() for _ in range(10)] == [b.uniform() for _ in range(10)]

    def test_index_range(self):
        rng = RandomSource(seed=3)
        seen = {rng.index(5) for _ in range(500)}
        assert seen == {0, 1, 2, 3, 4}

    def test_index_empty_range(self):
        with pytest.raises(ValueError):
            RandomSource(seed=3).index(0)


class TestTrial:
    """trial(x): certain at 1, odds above 1, probability below 1."""

    SAMPLES = 20000

    def _frequency(self, rng, x):
        return sum(rng.trial(x) for _ in range(self.SAMPLES)) / self.SAMPLES

    def test_one_always_succeeds(self):
        rng = RandomSource(seed=11)
        assert all(rng.trial(1) for _ in range(1000))

    def test_one_succeeds_without_drawing(self):
        def fail():
            raise AssertionError("trial(1) should not draw")
        rng = RandomSource(native_max=0xFF, native=fail)
        assert rng.trial(1.0) is True

    def test_odds(self):
        rng = RandomSource(seed=12)
        assert self._frequency(rng, 10) == pytest.approx(0.1, abs=0.01)

    def test_probability(self):
        rng = RandomSource(seed=13)
        assert self._frequency(rng, 0.3) == pytest.approx(0.3, abs=0.015)

    def test_large_odds_rarely_succeed(self):
        rng = RandomSource(seed=14)
        assert sum(rng.trial(1e6) for _ in range(self.SAMPLES)) <= 5

    def test_probability_near_zero(self):
        rng = RandomSource(seed=15)
        assert not any(rng.trial(1e-9) for _ in range(10000))

    def test_probability_near_one(self):
        rng = RandomSource(seed=16)
        assert self._frequency(rng, 0.999999) > 0.99

    def test_infinite_odds(self):
        rng = RandomSource(native_max=0xFF, native=lambda: 1)
        assert rng.trial(math.inf) is False

    def test_zero_probability_succeeds_only_on_zero_draw(self):
        assert RandomSource(native_max=0xFF, native=lambda: 0).trial(0) is True
        assert RandomSource(native_max=0xFF, native=lambda: 1).trial(0) is False

    def test_invalid_parameter(self):
        rng = RandomSource(seed=17)
        with pytest.raises(ValueError):
            rng.trial(-0.5)
        with pytest.raises(ValueError):
            rng.trial(float("nan"))


class TestPermutation:

    def test_is_permutation(self):
        rng = RandomSource(seed=21)
        for n in (0, 1, 2, 10, 37):
            assert sorted(rng.permutation(n)) == list(range(n))

    def test_reproducible(self):
        assert RandomSource(seed=5).permutation(20) == RandomSource(seed=5).permutation(20)

    def test_uniform_over_small_set(self):
        rng = RandomSource(seed=22)
        counts = Counter(tuple(rng.permutation(3)) for _ in range(6000))
        assert set(counts) == set(itertools.permutations(range(3)))
        for count in counts.values():
            assert count == pytest.approx(1000, abs=150)
