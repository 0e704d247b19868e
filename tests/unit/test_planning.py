"""Unit tests for plan versions, what-if scenarios and the reallocation waterfall"""

import pytest
from datetime import date
from finance_engine.domain.allocation import build_auto_allocation_plan
from finance_engine.domain.exceptions import InvalidPlanVersionError
from finance_engine.domain.models import PlanTriple, Purchase
from finance_engine.domain.planning import (
    BudgetRow,
    WhatIfInput,
    bill_share_of_commitments,
    build_baseline_forecast_windows,
    build_planning_workspace,
    default_plan_versions,
    estimate_monthly_spend,
    is_irregular_row,
    normalize_what_if,
    run_what_if,
    select_plan_version,
)
from finance_engine.domain.validation import AllocationRule

SHORT_BASELINE = PlanTriple(expected_income=3000, fixed_commitments=2000, variable_spending_cap=1500)
HEALTHY_BASELINE = PlanTriple(expected_income=5000, fixed_commitments=2000, variable_spending_cap=1000)


def _workspace(baseline: PlanTriple, version: str = "base"):
    versions = select_plan_version(default_plan_versions(baseline, "2024-05"), version)
    return build_planning_workspace(baseline, versions)


def test_default_versions():
    """Test conservative and aggressive multipliers"""
    versions = default_plan_versions(SHORT_BASELINE, "2024-05")
    by_key = {v.version: v for v in versions}

    assert [v.version for v in versions] == ["base", "conservative", "aggressive"]
    assert by_key["base"].selected is True
    assert by_key["conservative"].plan == PlanTriple(2850.00, 2060.00, 1275.00)
    assert by_key["aggressive"].plan == PlanTriple(3150.00, 1960.00, 1725.00)


def test_select_version_is_exclusive():
    """Test exactly one version is selected"""
    versions = select_plan_version(default_plan_versions(SHORT_BASELINE, "2024-05"), "conservative")

    assert [v.selected for v in versions] == [False, True, False]
    with pytest.raises(InvalidPlanVersionError):
        select_plan_version(versions, "reckless")


def test_workspace_deltas():
    """Test workspace compares the selected version with the baseline"""
    workspace = _workspace(SHORT_BASELINE, "conservative")

    assert workspace.selected_version == "conservative"
    assert workspace.baseline_monthly_net == -500
    assert workspace.delta_expected_income == pytest.approx(-150)
    assert workspace.delta_monthly_net == pytest.approx(2850 - 2060 - 1275 + 500)


def test_normalize_what_if_clamps():
    """Test raw form values are clamped into range"""
    what_if = normalize_what_if(
        income_drop_percent=150,
        bill_increase_percent=-10,
        extra_debt_payment=-5,
        one_off_expense=200,
        smoothing_enabled=True,
        smoothing_months=40,
    )

    assert what_if.income_drop_ratio == 1
    assert what_if.bill_increase_ratio == 0
    assert what_if.extra_debt_payment == 0
    assert what_if.one_off_expense == 200
    assert what_if.smoothing_months == 24


def test_bill_share():
    """Test share of commitments that are bills"""
    assert bill_share_of_commitments(500, 2000) == 0.25
    assert bill_share_of_commitments(500, 0) == 0.0


def test_irregular_rows():
    """Test seasonal names or large variance mark a category irregular"""
    assert is_irregular_row(BudgetRow("Home insurance", 50, 50))
    assert is_irregular_row(BudgetRow("Groceries", 400, 520))
    assert not is_irregular_row(BudgetRow("Groceries", 400, 410))


def test_healthy_plan_is_stable():
    """Test a cash-positive plan gets the single stable suggestion"""
    scenario = run_what_if(_workspace(HEALTHY_BASELINE), WhatIfInput(), liquid_reserves=1000, bill_share=0.5)

    assert [w.days for w in scenario.windows] == [30, 90, 365]
    assert all(w.risk == "healthy" for w in scenario.windows)
    assert [s.suggestion_id for s in scenario.suggestions] == ["stable-plan"]
    assert scenario.suggestions[0].severity == "good"


def test_waterfall_closes_gap_with_residual():
    """Test trim then residual cover the 500 monthly shortfall"""
    scenario = run_what_if(_workspace(SHORT_BASELINE), WhatIfInput(), liquid_reserves=0, bill_share=0.5)
    suggestions = {s.suggestion_id: s for s in scenario.suggestions}

    assert scenario.monthly_net == -500.00
    assert list(suggestions) == ["trim-variable-cap", "residual-gap"]
    assert suggestions["trim-variable-cap"].impact_amount == 330.00
    assert suggestions["residual-gap"].impact_amount == 170.00
    assert sum(s.impact_amount for s in scenario.suggestions) == pytest.approx(500.00)
    assert scenario.windows[0].risk == "critical"


def test_waterfall_uses_allocation_shift():
    """Test savings allocation absorbs what the trim leaves"""
    allocation = build_auto_allocation_plan(3000, [AllocationRule("savings", 10)])
    scenario = run_what_if(
        _workspace(SHORT_BASELINE),
        WhatIfInput(),
        liquid_reserves=0,
        bill_share=0.5,
        allocation_plan=allocation,
    )
    suggestions = {s.suggestion_id: s for s in scenario.suggestions}

    assert list(suggestions) == ["trim-variable-cap", "shift-allocation"]
    assert suggestions["shift-allocation"].impact_amount == 170.00
    assert suggestions["shift-allocation"].severity == "warning"
    assert "170.00" in suggestions["shift-allocation"].detail


def test_waterfall_order_with_every_lever():
    """Test all levers appear in their fixed order and sum to the gap"""
    rows = [BudgetRow("Winter energy", 100, 300)]
    what_if = normalize_what_if(extra_debt_payment=200, one_off_expense=600, smoothing_enabled=True, smoothing_months=6)
    scenario = run_what_if(
        _workspace(PlanTriple(3000, 2500, 500)),
        what_if,
        liquid_reserves=0,
        bill_share=0.5,
        budget_rows=rows,
    )
    ids = [s.suggestion_id for s in scenario.suggestions]

    assert ids == [
        "trim-variable-cap",
        "pause-extra-debt",
        "spread-one-off",
        "tighten-irregular-categories",
        "residual-gap",
    ]
    assert scenario.smoothing_adjustment == 100.00
    assert scenario.irregular_categories == ["Winter energy"]
    gap = max(-scenario.monthly_net, -scenario.windows[0].projected_cash)
    assert sum(s.impact_amount for s in scenario.suggestions) == pytest.approx(gap)


def test_what_if_income_drop_and_bill_increase():
    """Test income drop and bill increase feed the scenario"""
    what_if = normalize_what_if(income_drop_percent=10, bill_increase_percent=20)
    scenario = run_what_if(_workspace(HEALTHY_BASELINE), what_if, liquid_reserves=0, bill_share=0.5)

    assert scenario.income == 4500.00
    assert scenario.fixed_commitments == 2200.00
    assert scenario.delta_monthly_net == pytest.approx(-700.00)


def test_baseline_forecast_windows():
    """Test baseline windows with commitments as the risk threshold"""
    windows = build_baseline_forecast_windows(1000, 3000, 2000, 500)

    assert [w.projected_net for w in windows] == [500.00, 1500.00, 6083.33]
    assert windows[0].projected_cash == 1500.00
    assert windows[0].coverage_months == 0.75
    assert windows[0].risk == "warning"
    assert windows[2].risk == "healthy"


def test_estimate_monthly_spend_uses_last_90_days():
    """Test purchases older than 90 days are ignored"""
    today = date(2024, 5, 15)
    purchases = [
        Purchase(purchase_id="a", item="x", amount=90, purchase_date=date(2024, 5, 1)),
        Purchase(purchase_id="b", item="y", amount=180, purchase_date=date(2024, 3, 1)),
        Purchase(purchase_id="c", item="z", amount=999, purchase_date=date(2023, 12, 1)),
    ]
    assert estimate_monthly_spend(purchases, today) == pytest.approx(90.0)
