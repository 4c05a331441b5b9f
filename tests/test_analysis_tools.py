# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Tests for the plan summary and plotting helpers"""

import numpy as np
import pytest

from si5351_pll.analysis_tools import deviation_matrix, plot_plans, summarise_plans
from si5351_pll.plan_search import SCENARIO_A, SCENARIO_B, search_plans
from si5351_pll.si5351_model import condition_inputs


@pytest.fixture(scope="module")
def three_clock_plans():
    """
    clock 1 can never be fitted, its output MS would be far above 900
    """
    conditioned = condition_inputs(25e6, [14.2e6, 100e3, 27e6])
    return {
        "A": list(search_plans(conditioned, SCENARIO_A)),
        "B": list(search_plans(conditioned, SCENARIO_B)),
    }


def test_deviation_matrix(three_clock_plans):
    plans = three_clock_plans["A"]
    deviations = deviation_matrix(plans, 3)
    assert deviations.shape == (len(plans), 3)
    assert np.isnan(deviations[:, 1]).all()
    assert not np.isnan(deviations[:, 0]).any()
    assert deviations[0, 0] == plans[0].primary.deviation


def test_summarise_plans(three_clock_plans):
    plans = three_clock_plans["A"]
    summary = summarise_plans(plans, 3)
    assert summary["plans"] == len(plans)
    # clock 1 is missing from every plan so none can count as exact
    assert summary["exact"] == 0
    assert np.isnan(summary["max_abs_deviation"][1])
    assert summary["max_abs_deviation"][0] == pytest.approx(np.max([abs(plan.primary.deviation) for plan in plans]))


def test_summarise_exact_plans():
    conditioned = condition_inputs(25e6, [14.2e6])
    plans = list(search_plans(conditioned, SCENARIO_A))
    summary = summarise_plans(plans, 1)
    assert summary["plans"] == len(plans)
    assert summary["exact"] == sum(plan.is_exact() for plan in plans)
    assert summary["exact"] >= 1


def test_summarise_no_plans():
    summary = summarise_plans([], 2)
    assert summary["plans"] == 0
    assert summary["exact"] == 0
    assert np.isnan(summary["max_abs_deviation"]).all()


def test_plot_plans(three_clock_plans, tmp_path):
    filename = tmp_path / "plans.png"
    plot_plans(three_clock_plans, 3, filename)
    assert filename.exists()
    assert filename.stat().st_size > 0
