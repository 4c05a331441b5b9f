# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.

# Si5351 Clock Path
#
#                 +---------------------------------------------------------------------------+
#                 |                                                                           |
# XTAL/CLKIN -----+--- CLKIN_DIV --- PFD --- VCO (PLLA/B) ---+--- output MS --- R_DIV ---+--- CLKx
#                 |                   |                      |                           |
#                 |                   +---- feedback MS -----+                           |
#                 |                                                                       |
#                 +---------------------------------------------------------------------------+
#
# f_VCO  = f_XTAL / 2^CLKIN_DIV * (a + b/c)            feedback MS: 15 + 0/1048575 .. 90
# f_CLKx = f_VCO / (a + b/c) / 2^R_DIV                  output MS: 4 .. 900
#
# Both multisynths are programmed from a, b, c through the P1, P2, P3 register
# parameters (AN619).
#
# All frequencies are in Hz.

import math
from dataclasses import dataclass


# Input (XTAL or CLKIN) limits
CLKIN_MIN_FREQ = 10e6
CLKIN_MAX_FREQ = 100e6

# The PFD input must be at most 40MHz, CLKIN_DIV can divide by up to 8
CLKIN_DIV_THRESHOLD = 40e6
CLKIN_DIV_MAX = 3

# Below 1MHz the output MS cannot be used alone, R_DIV divides by up to 128
MS_MIN_OUTPUT_FREQ = 1e6
RDIV_MAX = 7

# VCO band
VCO_MIN_FREQ = 600e6
VCO_MAX_FREQ = 1000e6

# 20 bit c
MAX_DENOMINATOR = 1048575

# Feedback MS, fractional and even integer
FEEDBACK_MS_MIN = 15
FEEDBACK_MS_EVEN_MIN = 16
FEEDBACK_MS_MAX = 90

# Output MS
OUTPUT_MS_MIN = 4
OUTPUT_MS_MAX = 900

# Si5351A (3 outputs) shares one PLL between all planned clocks
MAX_CLOCKS = 3

# Absolute difference in Hz below which a clock is reported as exact
CLOCK_TOLERANCE = 1e-8

# Register parameter field widths
P1_BITS = 18
P2_BITS = 20
P3_BITS = 20


class si5351_input_error(ValueError):
    """
    Raised for inputs that cannot be planned at all. Rejected candidates in
    the middle of a search are not errors.
    """


@dataclass(frozen=True)
class pll_limits:
    """
    Operating envelope used by the search. The VCO band may be narrowed (for
    example to the 900MHz datasheet figure) but not widened beyond the chip.
    """
    vco_min: float = VCO_MIN_FREQ
    vco_max: float = VCO_MAX_FREQ
    max_denominator: int = MAX_DENOMINATOR

    def __post_init__(self):
        if not VCO_MIN_FREQ <= self.vco_min < self.vco_max <= VCO_MAX_FREQ:
            raise si5351_input_error(f"Invalid VCO band {self.vco_min:.0f}-{self.vco_max:.0f}Hz, must be within {VCO_MIN_FREQ:.0f}-{VCO_MAX_FREQ:.0f}Hz")
        if not 1 <= self.max_denominator <= MAX_DENOMINATOR:
            raise si5351_input_error(f"Invalid max denominator {self.max_denominator}, must be within 1-{MAX_DENOMINATOR}")


DEFAULT_LIMITS = pll_limits()


def vco_in_range(freq, limits=DEFAULT_LIMITS):
    return limits.vco_min <= freq <= limits.vco_max

def feedback_ms_in_range(value):
    return FEEDBACK_MS_MIN <= value <= FEEDBACK_MS_MAX

def output_ms_in_range(value):
    return OUTPUT_MS_MIN <= value <= OUTPUT_MS_MAX

def denominator_in_range(c, max_denominator=MAX_DENOMINATOR):
    return 1 <= c <= max_denominator


class clock_targets:
    """
    The requested output frequencies, clk0 first. clk0 is the primary clock
    which drives the search, the others are fitted to whatever VCO frequency
    the primary clock ends up with.
    """

    def __init__(self, freqs):
        freqs = tuple(freqs)
        if len(freqs) == 0:
            raise si5351_input_error("At least one clock frequency is required")
        if len(freqs) > MAX_CLOCKS:
            raise si5351_input_error(f"Too many clocks - maximum number of clocks is: {MAX_CLOCKS}")
        for idx, freq in enumerate(freqs):
            if not (math.isfinite(freq) and freq > 0):
                raise si5351_input_error(f"Invalid frequency for clock {idx}: {freq}")
        self._freqs = tuple(float(freq) for freq in freqs)

    @property
    def primary(self):
        return self._freqs[0]

    def secondaries(self):
        """
        (index, frequency) for every clock except clk0
        """
        return list(enumerate(self._freqs))[1:]

    def __len__(self):
        return len(self._freqs)

    def __getitem__(self, idx):
        return self._freqs[idx]

    def __iter__(self):
        return iter(self._freqs)

    def __repr__(self):
        return f"clock_targets({list(self._freqs)})"


@dataclass(frozen=True)
class conditioned_inputs:
    reference: float        # raw XTAL/CLKIN frequency
    xtal: float             # reference after CLKIN_DIV
    clkin_div: int
    targets: clock_targets
    primary: float          # clk0 before R_DIV, i.e. what the output MS must make
    rdiv: int

    @property
    def xtal_div(self):
        return 1 << self.clkin_div

    @property
    def r_div(self):
        return 1 << self.rdiv


def condition_inputs(reference, targets, verbose=False):
    """
    Brings the reference into the PFD range with CLKIN_DIV and the primary
    clock into the output MS range with R_DIV. Raises si5351_input_error if
    either is impossible.
    """
    if not isinstance(targets, clock_targets):
        targets = clock_targets(targets)

    if not (CLKIN_MIN_FREQ <= reference <= CLKIN_MAX_FREQ):
        raise si5351_input_error(f"XTAL reference (CLKIN) is out of range: {reference:.0f}Hz, must be within {CLKIN_MIN_FREQ:.0f}-{CLKIN_MAX_FREQ:.0f}Hz")

    xtal = reference
    clkin_div = 0
    while xtal > CLKIN_DIV_THRESHOLD and clkin_div < CLKIN_DIV_MAX:
        xtal /= 2.0
        clkin_div += 1

    primary = targets.primary
    rdiv = 0
    while primary < MS_MIN_OUTPUT_FREQ and rdiv < RDIV_MAX:
        primary *= 2.0
        rdiv += 1
    if primary < MS_MIN_OUTPUT_FREQ:
        raise si5351_input_error(f"requested clock is too low: {targets.primary:.0f}Hz")

    if verbose:
        print(f"reference: {reference:.0f}Hz CLKIN_DIV: {clkin_div} xtal: {xtal:.0f}Hz")
        print(f"clock 0: {targets.primary:.0f}Hz R_DIV: {rdiv} output MS clock: {primary:.0f}Hz")

    return conditioned_inputs(reference, xtal, clkin_div, targets, primary, rdiv)


def ms_register_params(r):
    """
    Multisynth register parameters for a + b/c, as per AN619:
        P1 = 128 * a + floor(128 * b / c) - 512
        P2 = 128 * b - c * floor(128 * b / c)
        P3 = c
    """
    floor_frac = (128 * r.b) // r.c
    p1 = 128 * r.a + floor_frac - 512
    p2 = 128 * r.b - r.c * floor_frac
    p3 = r.c

    assert 0 <= p1 < (1 << P1_BITS), f"Invalid P1 {p1} for {r}"
    assert 0 <= p2 < (1 << P2_BITS), f"Invalid P2 {p2} for {r}"
    assert 0 < p3 < (1 << P3_BITS), f"Invalid P3 {p3} for {r}"

    return p1, p2, p3
