#!/usr/bin/env python3
# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.

#======================================================================================================================
# Description:
#   Stand-alone script to provide PLL (feedback multisynth) and output multisynth settings for the Si5351 family
#   to generate up to three clocks from one PLL.
#
#   For every plan the script prints the actual VCO frequency, the divider ratios in a + b/c form and the actual
#   clock frequencies. A difference line is printed for every clock that is not exact. Diagnostics about rejected
#   candidates go to stderr.
#
# Usage:
#   pll_calc.py REFERENCE CLK0 [CLK1 [CLK2]]          frequencies in Hz, k/M/G suffixes allowed (e.g. 25M 14.2M)
#
#======================================================================================================================

import argparse
import math
import sys

from si5351_pll.analysis_tools import plot_plans, summarise_plans
from si5351_pll.plan_search import SCENARIOS, search_plans
from si5351_pll.si5351_model import MAX_CLOCKS, MAX_DENOMINATOR, VCO_MAX_FREQ, VCO_MIN_FREQ, \
                                    condition_inputs, ms_register_params, pll_limits, si5351_input_error


FREQ_SUFFIXES = {"k": 1e3, "K": 1e3, "M": 1e6, "G": 1e9}

def str_to_freq(s):
    """
    Parse a frequency in Hz, e.g. "25000000", "14.2e6", "25M", "100kHz"
    """
    value = s.strip()
    if value.lower().endswith("hz"):
        value = value[:-2]
    scale = 1.0
    if value and value[-1] in FREQ_SUFFIXES:
        scale = FREQ_SUFFIXES[value[-1]]
        value = value[:-1]
    try:
        return float(value) * scale
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid frequency: {s!r}") from None

# Set the name of str_to_freq to give sensible argparse error messages.
str_to_freq.__name__ = 'frequency'


def ratio_flag(r):
    if r.is_even_integer():
        return "   -> even integer"
    if r.is_integer():
        return "   -> integer"
    return ""

def print_regs(name, r, file=None):
    p1, p2, p3 = ms_register_params(r)
    print(f"{name} P1 0x{p1:05X} P2 0x{p2:05X} P3 0x{p3:05X}", file=file)

def print_plan(plan, conditioned, regs=False, file=None):
    print(f"actual PLL frequency: {conditioned.reference:.0f}/{conditioned.xtal_div} * {plan.feedback} = {plan.vco:.0f}{ratio_flag(plan.feedback)}", file=file)
    if regs:
        print_regs("FEEDBACK MS", plan.feedback, file=file)

    for result in plan.clocks:
        rdiv_str = f" / {1 << result.rdiv}" if result.rdiv else ""
        print(f"actual clock {result.index}: {plan.vco:.0f} / {result.divider}{rdiv_str} = {result.frequency:.0f}{ratio_flag(result.divider)}", file=file)
        if not result.is_exact():
            print(f"*** clock {result.index} difference: {result.deviation:.3g}Hz ({result.ppm_error:.3g}ppm)", file=file)
        if regs:
            print_regs(f"CLK{result.index} MS", result.divider, file=file)
            print(f"CLK{result.index} R_DIV {result.rdiv}", file=file)

    print("", file=file)

def print_summary(role, plans, num_clocks, file=None):
    summary = summarise_plans(plans, num_clocks)
    print(f"*** Scenario {role.name}: {summary['plans']} plans, {summary['exact']} exact ***", file=file)
    for clock, deviation in enumerate(summary['max_abs_deviation']):
        if math.isnan(deviation):
            print(f"clock {clock}: no valid output MS", file=file)
        else:
            print(f"clock {clock}: worst difference {deviation:.3g}Hz", file=file)
    print("", file=file)


def find_plans(argv=None):
    parser = argparse.ArgumentParser(description='A script to calculate Si5351 PLL and multisynth settings to achieve desired output clock frequencies.')
    parser.add_argument("reference", type=str_to_freq, help="XTAL/CLKIN reference frequency (Hz)")
    parser.add_argument("clocks", type=str_to_freq, nargs="+", help=f"Target output frequencies (Hz), clock 0 first, at most {MAX_CLOCKS}")
    parser.add_argument("-m", "--denmax", type=int, help="Maximum denominator in frac-n config", default=MAX_DENOMINATOR)
    parser.add_argument("--vco-min", type=str_to_freq, help="Minimum VCO frequency (Hz)", default=VCO_MIN_FREQ)
    parser.add_argument("--vco-max", type=str_to_freq, help="Maximum VCO frequency (Hz)", default=VCO_MAX_FREQ)
    parser.add_argument("-s", "--scenario", choices=["A", "B", "both"], help="Scenario to search", default="both")
    parser.add_argument("-r", "--regs", help="Print multisynth register parameters", action="store_true")
    parser.add_argument("--summary", help="Print a summary after each scenario", action="store_true")
    parser.add_argument("--plot", help="Save a plot of the clock errors to this file")
    parser.add_argument("-v", "--verbose", help="Trace the search", action="store_true")

    args = parser.parse_args(argv)

    roles = list(SCENARIOS.values()) if args.scenario == "both" else [SCENARIOS[args.scenario]]
    plans_by_scenario = {}

    try:
        limits = pll_limits(args.vco_min, args.vco_max, args.denmax)
        conditioned = condition_inputs(args.reference, args.clocks, verbose=args.verbose)
        num_clocks = len(conditioned.targets)

        if conditioned.clkin_div > 0:
            print(f"--> CLKIN_DIV={conditioned.clkin_div}")
            print("")
        if conditioned.rdiv > 0:
            print(f"--> R_DIV={conditioned.rdiv}")
            print("")

        for role in roles:
            print(f"scenario {role.name} - {role.description}")
            print("")
            plans = []
            for plan in search_plans(conditioned, role, limits, verbose=args.verbose):
                print_plan(plan, conditioned, regs=args.regs)
                plans.append(plan)
            if args.summary:
                print_summary(role, plans, num_clocks)
            print("")
            plans_by_scenario[role.name] = plans

    except si5351_input_error as e:
        print(e, file=sys.stderr)
        return 1

    if args.plot:
        plot_plans(plans_by_scenario, num_clocks, args.plot)

    return 0


def main():
    sys.exit(find_plans())


if __name__ == '__main__':
    main()
