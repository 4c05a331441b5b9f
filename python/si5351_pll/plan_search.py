# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.

"""
Search for PLL plans which generate the requested clocks from one PLL.

There are two ways to split the work between the feedback MS and the output
MS of the primary clock (clk0):

-   Scenario A: even integer output MS, fractional (N-frac) feedback MS.
    The VCO is an exact multiple of clk0 and the feedback MS absorbs the
    awkward ratio to the reference.
-   Scenario B: even integer feedback MS, fractional output MS.
    The VCO is an exact multiple of the reference and the output MS absorbs
    the awkward ratio to clk0.

In both cases the even integer starts as high as the VCO band allows and is
stepped down by 2 until the VCO drops below its floor. Every surviving step
produces a plan; nothing is ranked, so the caller sees the whole space.
Any further clocks are fitted with their own fractional output MS to the VCO
frequency of each plan.
"""

import sys
from dataclasses import dataclass

import numpy as np

from si5351_pll.rational_approx import ratio, rational_approximation
from si5351_pll.si5351_model import DEFAULT_LIMITS, CLOCK_TOLERANCE, FEEDBACK_MS_EVEN_MIN, FEEDBACK_MS_MAX, \
                                    OUTPUT_MS_MAX, OUTPUT_MS_MIN, si5351_input_error, feedback_ms_in_range, \
                                    output_ms_in_range, denominator_in_range


@dataclass(frozen=True)
class scenario_role:
    """
    Which divider is the stepped even integer and which one is approximated.
    """
    name: str
    description: str
    integer_feedback: bool      # True: feedback MS is the even integer
    integer_min: int
    integer_max: int
    clamp_to_max: bool          # clamp a too large first candidate instead of failing

    @property
    def integer_name(self):
        return "feedback MS" if self.integer_feedback else "output MS"

    @property
    def fractional_name(self):
        return "output MS" if self.integer_feedback else "feedback MS"

    def fractional_in_range(self, value):
        return output_ms_in_range(value) if self.integer_feedback else feedback_ms_in_range(value)


SCENARIO_A = scenario_role(
    name="A",
    description="N-frac for feedback MS and even integer for output MS",
    integer_feedback=False,
    integer_min=OUTPUT_MS_MIN,
    integer_max=OUTPUT_MS_MAX,
    clamp_to_max=False)

SCENARIO_B = scenario_role(
    name="B",
    description="even integer for feedback MS and N-frac for output MS",
    integer_feedback=True,
    integer_min=FEEDBACK_MS_EVEN_MIN,
    integer_max=FEEDBACK_MS_MAX,
    clamp_to_max=True)

SCENARIOS = {"A": SCENARIO_A, "B": SCENARIO_B}


@dataclass(frozen=True)
class clock_result:
    index: int
    target: float
    divider: ratio      # output MS
    rdiv: int
    frequency: float

    @property
    def deviation(self):
        return self.frequency - self.target

    @property
    def ppm_error(self):
        return (self.deviation / self.target) * 1000000.0

    def is_exact(self, tolerance=CLOCK_TOLERANCE):
        return abs(self.deviation) < tolerance


@dataclass(frozen=True)
class pll_plan:
    scenario: str
    integer_divider: int
    feedback: ratio
    vco: float
    clocks: tuple
    num_clocks: int     # clocks requested, including any that could not be fitted

    @property
    def primary(self):
        return self.clocks[0]

    def clock(self, index):
        """
        Result for clock index, None if that clock could not be fitted
        """
        for result in self.clocks:
            if result.index == index:
                return result
        return None

    def is_exact(self, tolerance=CLOCK_TOLERANCE):
        """
        True only if every requested clock was fitted within tolerance
        """
        if len(self.clocks) != self.num_clocks:
            return False
        return all(result.is_exact(tolerance) for result in self.clocks)


def initial_candidate(role, base_freq, limits=DEFAULT_LIMITS):
    """
    Highest even integer divider that keeps the VCO at or below its ceiling.
    Raises si5351_input_error if it is outside the legal band for the role.
    """
    candidate = int(limits.vco_max / base_freq)
    candidate -= candidate % 2

    if candidate < role.integer_min:
        raise si5351_input_error(f"invalid {role.integer_name}: {candidate} (too small, minimum {role.integer_min})")
    if candidate > role.integer_max:
        if not role.clamp_to_max:
            raise si5351_input_error(f"invalid {role.integer_name}: {candidate} (too large, maximum {role.integer_max})")
        candidate = role.integer_max
        if base_freq * candidate < limits.vco_min:
            raise si5351_input_error(f"invalid {role.integer_name}: {candidate} (f_VCO={base_freq * candidate:.0f}Hz below {limits.vco_min:.0f}Hz)")

    return candidate


def candidate_dividers(role, base_freq, limits=DEFAULT_LIMITS):
    """
    The even integer dividers to try, highest first, stopping before the first
    one that is below the legal band or takes the VCO below its floor.
    """
    first = initial_candidate(role, base_freq, limits)
    candidates = np.arange(first, role.integer_min - 1, -2)
    return [int(candidate) for candidate in candidates if base_freq * candidate >= limits.vco_min]


def fit_secondary_clocks(vco, targets, limits=DEFAULT_LIMITS, verbose=False):
    """
    Fractional output MS for every clock after clk0. Clocks whose divider falls
    outside the output MS band are left out.
    """
    results = []
    for idx, target in targets.secondaries():
        divider = rational_approximation(vco / target, limits.max_denominator)
        if not output_ms_in_range(divider.value()):
            if verbose:
                print(f"clock {idx}: output MS {divider.value():.3f} out of range for f_VCO={vco:.0f}Hz", file=sys.stderr)
            continue
        results.append(clock_result(idx, target, divider, 0, vco / divider.value()))
    return results


def search_plans(conditioned, role, limits=DEFAULT_LIMITS, verbose=False):
    """
    Generator of pll_plan for one scenario, in search order.

    si5351_input_error is raised on the first iteration if the scenario has no
    legal starting divider. Candidates whose approximated divider is out of
    range are reported on stderr and skipped.
    """
    targets = conditioned.targets

    # The integer divider multiplies base_freq up to the VCO, the fractional
    # one relates the VCO to other_freq.
    if role.integer_feedback:
        base_freq, other_freq = conditioned.xtal, conditioned.primary
    else:
        base_freq, other_freq = conditioned.primary, conditioned.xtal

    for candidate in candidate_dividers(role, base_freq, limits):
        vco = base_freq * candidate
        fractional_value = vco / other_freq

        if verbose:
            print(f"scenario {role.name}: {role.integer_name}={candidate} f_VCO={vco:.0f}Hz {role.fractional_name}={fractional_value:.6f}")

        if not role.fractional_in_range(fractional_value):
            print(f"invalid {role.fractional_name}: {fractional_value:.0f} (xtal={conditioned.reference:.0f}/{conditioned.xtal_div}, {role.integer_name}={candidate}, f_VCO={vco:.0f})", file=sys.stderr)
            continue

        fractional = rational_approximation(fractional_value, limits.max_denominator)
        assert denominator_in_range(fractional.c, limits.max_denominator), f"Invalid denominator in {fractional}"
        if role.integer_feedback:
            feedback, output = ratio(candidate), fractional
        else:
            feedback, output = fractional, ratio(candidate)

        actual_vco = conditioned.xtal * feedback.value()
        actual_clk0 = actual_vco / output.value() / conditioned.r_div
        clocks = [clock_result(0, targets.primary, output, conditioned.rdiv, actual_clk0)]
        clocks += fit_secondary_clocks(actual_vco, targets, limits, verbose)

        yield pll_plan(role.name, candidate, feedback, actual_vco, tuple(clocks), len(targets))


def plan_all(conditioned, roles=(SCENARIO_A, SCENARIO_B), limits=DEFAULT_LIMITS, verbose=False):
    """
    Runs each scenario to completion in turn, yielding (role, plan).
    """
    for role in roles:
        for plan in search_plans(conditioned, role, limits, verbose):
            yield role, plan
