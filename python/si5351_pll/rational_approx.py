# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.

"""
Best rational approximation of a divider ratio.

The Si5351 multisynth dividers are programmed as a + b/c where c is limited
to 20 bits. This module finds the b/c that best represents the fractional
part of a real valued ratio, using the convergents and semiconvergents of its
continued fraction expansion.

    value ~= a + b/c     (c <= max_denominator)

See https://en.wikipedia.org/wiki/Continued_fraction#Best_rational_approximations
"""

import math
from dataclasses import dataclass
from functools import reduce


# Remainder below which further expansion steps cannot improve the result
# enough to matter. Not a bound on the approximation error.
epsilon = 1e-5

# Hard limit on the number of expansion steps.
max_expansion_steps = 100


@dataclass(frozen=True)
class ratio:
    """
    Divider ratio a + b/c as programmed into a multisynth.
    A pure integer is always represented with b = 0, c = 1.
    """
    a: int
    b: int = 0
    c: int = 1

    def __post_init__(self):
        assert self.a >= 0, f"Invalid integer part {self.a}"
        assert self.c >= 1, f"Invalid denominator {self.c}"
        if self.b == 0:
            assert self.c == 1, f"Integer ratio must have denominator 1, got {self.c}"
        else:
            assert 0 < self.b < self.c, f"Invalid fraction {self.b}/{self.c}"

    def value(self):
        return self.a + self.b / self.c

    def is_integer(self):
        return self.b == 0

    def is_even_integer(self):
        return self.b == 0 and self.a % 2 == 0

    def kind(self):
        """
        Hardware friendliness of the ratio. Even integers are the best case for
        the multisynth; odd integers are reported separately from fractions.
        """
        if self.is_even_integer():
            return "even integer"
        if self.is_integer():
            return "integer"
        return "fractional"

    def __str__(self):
        if self.is_integer():
            return f"{self.a}"
        return f"({self.a} + {self.b} / {self.c})"


def _candidate_fractions(f0, max_denominator):
    """
    Yields every (numerator, denominator) pair the expansion of f0 produces
    with a denominator no larger than max_denominator. For each term an of the
    expansion this includes the semiconvergents m = (an+1)//2 .. an, the last
    of which is the full convergent.
    """
    # The fractional part has a zero leading term, hence the seeds.
    h_prev, h_cur = 1, 0
    k_prev, k_cur = 0, 1
    f = f0
    for _ in range(max_expansion_steps):
        if f <= epsilon:
            break
        f, anf = math.modf(1.0 / f)
        an = int(anf)
        for m in range((an + 1) // 2, an + 1):
            hm = m * h_cur + h_prev
            km = m * k_cur + k_prev
            if km > max_denominator:
                break
            yield hm, km
        h_prev, h_cur = h_cur, an * h_cur + h_prev
        k_prev, k_cur = k_cur, an * k_cur + k_prev


def rational_approximation(value, max_denominator):
    """
    Returns the ratio a + b/c closest to value with c <= max_denominator.

    The fraction is the best of the candidates produced by the continued
    fraction expansion of the fractional part (at most max_expansion_steps
    terms). If nothing beats the bare integer part the result is a pure integer.
    A best fraction of 1/1 is folded into the integer part.
    """
    assert value >= 0 and math.isfinite(value), f"Cannot approximate {value}"
    assert max_denominator >= 1, f"Invalid max_denominator {max_denominator}"

    f0, af = math.modf(value)
    a = int(af)

    def closer(best, candidate):
        hm, km = candidate
        d = abs(hm / km - f0)
        return (d, hm, km) if d < best[0] else best

    _, b, c = reduce(closer, _candidate_fractions(f0, max_denominator), (f0, 0, 1))

    if b == c:
        return ratio(a + 1)
    return ratio(a, b, c)


if __name__ == '__main__':
    """
    This module is not intended to be run directly. This is here for internal testing only.
    """
    for value in [39.76, 5000 / 71, math.pi, math.e, 2 ** 0.5, 44.0]:
        for max_denominator in [10, 1000, 1048575]:
            r = rational_approximation(value, max_denominator)
            print(f"value: {value} max_denominator: {max_denominator} ratio: {r} error: {r.value() - value:.3g}")
