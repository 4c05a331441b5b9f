# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Tests for the continued fraction based divider approximation"""

import math
from dataclasses import FrozenInstanceError
from fractions import Fraction

import pytest

from si5351_pll.rational_approx import ratio, rational_approximation
from si5351_pll.si5351_model import MAX_DENOMINATOR


@pytest.mark.parametrize("value", [0.0, 1.0, 4.0, 39.0, 90.0, 900.0])
@pytest.mark.parametrize("max_denominator", [1, 2, 1000, MAX_DENOMINATOR])
def test_integer_value(value, max_denominator):
    r = rational_approximation(value, max_denominator)
    assert (r.a, r.b, r.c) == (int(value), 0, 1)


@pytest.mark.parametrize("value, expected", [
    (39.76, ratio(39, 19, 25)),
    (5000 / 71, ratio(70, 30, 71)),
    (36.5, ratio(36, 1, 2)),
    (15 + 1 / 3, ratio(15, 1, 3)),
])
def test_known_fractions(value, expected):
    assert rational_approximation(value, MAX_DENOMINATOR) == expected


@pytest.mark.parametrize("value", [0.5, 2.7, 39.76, 70.4225, 10 * math.pi, 0.999999999, 123.456789, 2.0 ** 0.5])
@pytest.mark.parametrize("max_denominator", [1, 2, 3, 10, MAX_DENOMINATOR])
def test_denominator_bounded(value, max_denominator):
    r = rational_approximation(value, max_denominator)
    assert 1 <= r.c <= max_denominator
    assert 0 <= r.b < r.c
    if r.b == 0:
        assert r.c == 1
    assert abs(r.value() - value) <= 0.5 + 1e-12


@pytest.mark.parametrize("value", [math.pi, math.e, 2.0 ** 0.5, 3.0 ** 0.5 + 40, 39.76, 70.4225352])
@pytest.mark.parametrize("max_denominator", [7, 100, 1000])
def test_best_approximation(value, max_denominator):
    """
    Nothing with a denominator up to max_denominator is closer than our result
    """
    r = rational_approximation(value, max_denominator)
    best = Fraction(value).limit_denominator(max_denominator)
    assert abs(r.value() - value) <= abs(float(best) - value) + 1e-12


def test_pi():
    assert rational_approximation(math.pi, 7) == ratio(3, 1, 7)
    assert rational_approximation(math.pi, 100) == ratio(3, 14, 99)
    assert rational_approximation(math.pi, 1000) == ratio(3, 16, 113)


def test_rounds_up_to_next_integer():
    """
    A fraction so close to 1 that 1/1 is the best fit becomes the next integer
    """
    assert rational_approximation(2.9999999, 1000) == ratio(3)
    assert rational_approximation(2.7, 1) == ratio(3)


@pytest.mark.parametrize("value, expected", [
    (40.000005, ratio(40)),             # 1/200000 would fit better but is never looked for
    (12.000001, ratio(12)),
    (40.00002, ratio(40, 1, 50000)),
])
def test_small_remainder_stops_expansion(value, expected):
    assert rational_approximation(value, MAX_DENOMINATOR) == expected


def test_repeatable():
    first = rational_approximation(70.4225352, MAX_DENOMINATOR)
    second = rational_approximation(70.4225352, MAX_DENOMINATOR)
    assert first == second


def test_ratio_kind():
    assert ratio(40).kind() == "even integer"
    assert ratio(39).kind() == "integer"
    assert ratio(39, 19, 25).kind() == "fractional"
    assert ratio(39, 19, 25).value() == pytest.approx(39.76)
    assert str(ratio(39, 19, 25)) == "(39 + 19 / 25)"
    assert str(ratio(70)) == "70"


@pytest.mark.parametrize("a, b, c", [(3, 0, 2), (3, 2, 2), (3, 5, 4), (-1, 0, 1), (3, 1, 0)])
def test_ratio_invariants(a, b, c):
    with pytest.raises(AssertionError):
        ratio(a, b, c)


def test_ratio_immutable():
    r = ratio(39, 19, 25)
    with pytest.raises(FrozenInstanceError):
        r.a = 40
