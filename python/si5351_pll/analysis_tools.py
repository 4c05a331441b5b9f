# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.

import matplotlib.pyplot as plt
import numpy as np

from si5351_pll.si5351_model import CLOCK_TOLERANCE


def deviation_matrix(plans, num_clocks):
    """
    Clock deviations in Hz, one row per plan and one column per clock.
    Clocks that a plan could not fit are NaN.
    """
    deviations = np.full((len(plans), num_clocks), np.nan, dtype=np.float64)
    for row, plan in enumerate(plans):
        for result in plan.clocks:
            deviations[row, result.index] = result.deviation
    return deviations


def summarise_plans(plans, num_clocks, tolerance=CLOCK_TOLERANCE):
    """
    Counts the plans, the plans where every clock was fitted within tolerance,
    and the worst absolute deviation seen for each clock (NaN if never fitted).
    """
    if len(plans) == 0:
        return {"plans": 0, "exact": 0, "max_abs_deviation": np.full(num_clocks, np.nan)}

    deviations = np.abs(deviation_matrix(plans, num_clocks))
    fitted = ~np.isnan(deviations)

    max_abs_deviation = np.full(num_clocks, np.nan)
    for clock in range(num_clocks):
        if fitted[:, clock].any():
            max_abs_deviation[clock] = np.max(deviations[fitted[:, clock], clock])

    return {"plans": len(plans), "exact": sum(plan.is_exact(tolerance) for plan in plans), "max_abs_deviation": max_abs_deviation}


def plot_plans(plans_by_scenario, num_clocks, filename):
    """
    Plots the ppm error of every clock against the VCO frequency of each plan,
    one subplot per scenario. Exact clocks sit on the zero line.
    """
    fig, axes = plt.subplots(len(plans_by_scenario), 1, squeeze=False, sharex=True)
    for ax, (name, plans) in zip(axes[:, 0], plans_by_scenario.items()):
        for clock in range(num_clocks):
            vco = [plan.vco / 1e6 for plan in plans if plan.clock(clock) is not None]
            ppm = [plan.clock(clock).ppm_error for plan in plans if plan.clock(clock) is not None]
            ax.plot(vco, ppm, marker='.', linestyle='none', label=f'clock {clock}')
        ax.set_title(f'Scenario {name}', fontsize=12)
        ax.set_ylabel('Error (ppm)', fontsize=10)
        ax.legend(loc="upper right")
        ax.grid(True)
    axes[-1, 0].set_xlabel('VCO frequency (MHz)', fontsize=10)
    plt.savefig(filename, dpi=150)
    plt.close(fig)
