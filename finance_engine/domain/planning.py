"""Planning simulation engine - plan versions, what-if scenarios and the reallocation waterfall"""

import re
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from finance_engine.domain.allocation import AllocationPlan
from finance_engine.domain.exceptions import InvalidPlanVersionError
from finance_engine.domain.models import (
    ForecastWindow,
    PlanTriple,
    PlanVersion,
    Purchase,
    ReallocationSuggestion,
)
from finance_engine.utils.money import clamp, finite_or_zero, round_currency, round_whole

FORECAST_WINDOW_DAYS = (30, 90, 365)
COVERAGE_SATURATION = 99.0
RECENT_SPEND_DAYS = 90
SHIFTABLE_ALLOCATION_TARGETS = ("savings", "goals")

VERSION_ORDER = ("base", "conservative", "aggressive")
# income, fixed commitments, variable spending cap
VERSION_MULTIPLIERS = {
    "base": (1.0, 1.0, 1.0),
    "conservative": (0.95, 1.03, 0.85),
    "aggressive": (1.05, 0.98, 1.15),
}
VERSION_LABELS = {"base": "Base", "conservative": "Conservative", "aggressive": "Aggressive"}
VERSION_DESCRIPTIONS = {
    "base": "Balanced baseline aligned with current monthly behavior.",
    "conservative": "Defensive assumptions for tighter cash preservation.",
    "aggressive": "Growth-leaning assumptions for faster progress.",
}

IRREGULAR_CATEGORY_PATTERN = re.compile(
    r"\b(utilit(?:y|ies)|electric|gas|water|energy|heat(?:ing)?|holiday|annual|renew(?:al)?|insurance|tax|school|travel)\b",
    re.IGNORECASE,
)
IRREGULAR_VARIANCE_RATIO = 0.24

VARIABLE_CAP_TRIM_RATIO = 0.22
SHIFT_CRITICAL_SHARE = 0.35
ONE_OFF_SPREAD_MONTHS = 3


@dataclass(frozen=True)
class PlanningWorkspace:
    month_key: str
    baseline: PlanTriple
    planned: PlanTriple
    selected_version: str

    @property
    def baseline_monthly_net(self) -> float:
        return self.baseline.monthly_net

    @property
    def planned_monthly_net(self) -> float:
        return self.planned.monthly_net

    @property
    def delta_expected_income(self) -> float:
        return self.planned.expected_income - self.baseline.expected_income

    @property
    def delta_fixed_commitments(self) -> float:
        return self.planned.fixed_commitments - self.baseline.fixed_commitments

    @property
    def delta_variable_spending_cap(self) -> float:
        return self.planned.variable_spending_cap - self.baseline.variable_spending_cap

    @property
    def delta_monthly_net(self) -> float:
        return self.planned_monthly_net - self.baseline_monthly_net


@dataclass(frozen=True)
class WhatIfInput:
    income_drop_ratio: float = 0.0
    bill_increase_ratio: float = 0.0
    extra_debt_payment: float = 0.0
    one_off_expense: float = 0.0
    smoothing_enabled: bool = False
    smoothing_months: int = 6


@dataclass(frozen=True)
class BudgetRow:
    category: str
    effective_target: float
    projected_month_end: float


@dataclass(frozen=True)
class ScenarioResult:
    income: float
    fixed_commitments: float
    variable_spending: float
    monthly_net: float
    monthly_outflow: float
    delta_monthly_net: float
    smoothing_adjustment: float
    irregular_categories: List[str]
    irregular_overshoot: float
    windows: List[ForecastWindow]
    suggestions: List[ReallocationSuggestion]


# ---------------------------------------------------------------------------
# Plan versions
# ---------------------------------------------------------------------------


def baseline_from_summary(monthly_income: float, monthly_commitments: float, purchases_this_month: float) -> PlanTriple:
    return PlanTriple(
        expected_income=max(finite_or_zero(monthly_income), 0),
        fixed_commitments=max(finite_or_zero(monthly_commitments), 0),
        variable_spending_cap=max(finite_or_zero(purchases_this_month), 0),
    )


def default_plan_versions(baseline: PlanTriple, month_key: str) -> List[PlanVersion]:
    """Base, conservative and aggressive variants of the baseline; base is selected"""
    versions = []
    for key in VERSION_ORDER:
        income_factor, fixed_factor, variable_factor = VERSION_MULTIPLIERS[key]
        versions.append(
            PlanVersion(
                version=key,
                month_key=month_key,
                plan=PlanTriple(
                    expected_income=round_currency(baseline.expected_income * income_factor),
                    fixed_commitments=round_currency(baseline.fixed_commitments * fixed_factor),
                    variable_spending_cap=round_currency(baseline.variable_spending_cap * variable_factor),
                ),
                selected=key == "base",
            )
        )
    return versions


def select_plan_version(versions: Sequence[PlanVersion], version_key: str) -> List[PlanVersion]:
    """Mark one version selected and clear the rest"""
    if version_key not in {v.version for v in versions}:
        raise InvalidPlanVersionError(f"Unknown plan version: {version_key}.")
    return [replace(v, selected=v.version == version_key) for v in versions]


def selected_plan_version(versions: Sequence[PlanVersion]) -> PlanVersion:
    for version in versions:
        if version.selected:
            return version
    if not versions:
        raise InvalidPlanVersionError("At least one plan version is required.")
    return versions[0]


def build_planning_workspace(baseline: PlanTriple, versions: Sequence[PlanVersion]) -> PlanningWorkspace:
    """Baseline against the selected version's numbers, negatives clamped to zero"""
    selected = selected_plan_version(versions)
    planned = PlanTriple(
        expected_income=max(finite_or_zero(selected.plan.expected_income), 0),
        fixed_commitments=max(finite_or_zero(selected.plan.fixed_commitments), 0),
        variable_spending_cap=max(finite_or_zero(selected.plan.variable_spending_cap), 0),
    )
    return PlanningWorkspace(
        month_key=selected.month_key,
        baseline=baseline,
        planned=planned,
        selected_version=selected.version,
    )


# ---------------------------------------------------------------------------
# What-if inputs
# ---------------------------------------------------------------------------


def normalize_what_if(
    income_drop_percent=0,
    bill_increase_percent=0,
    extra_debt_payment=0,
    one_off_expense=0,
    smoothing_enabled: bool = False,
    smoothing_months=6,
) -> WhatIfInput:
    """Clamp raw what-if form values into a usable scenario input"""
    months = finite_or_zero(smoothing_months) or 6
    return WhatIfInput(
        income_drop_ratio=clamp(finite_or_zero(income_drop_percent) / 100, 0, 1),
        bill_increase_ratio=clamp(finite_or_zero(bill_increase_percent) / 100, 0, 5),
        extra_debt_payment=max(finite_or_zero(extra_debt_payment), 0),
        one_off_expense=max(finite_or_zero(one_off_expense), 0),
        smoothing_enabled=bool(smoothing_enabled),
        smoothing_months=int(clamp(round_whole(months), 2, 24)),
    )


def bill_share_of_commitments(monthly_bills: float, monthly_commitments: float) -> float:
    if monthly_commitments <= 0:
        return 0.0
    return clamp(monthly_bills / monthly_commitments, 0, 1)


def is_irregular_row(row: BudgetRow) -> bool:
    variance_ratio = abs(row.projected_month_end - row.effective_target) / max(row.effective_target, 0.01)
    return bool(IRREGULAR_CATEGORY_PATTERN.search(row.category)) or variance_ratio >= IRREGULAR_VARIANCE_RATIO


def irregular_rows(budget_rows: Sequence[BudgetRow]) -> List[BudgetRow]:
    return [row for row in budget_rows if is_irregular_row(row)]


def irregular_overshoot(rows: Sequence[BudgetRow]) -> float:
    return sum(max(row.projected_month_end - row.effective_target, 0) for row in rows)


def smoothing_weight(what_if: WhatIfInput) -> float:
    if not what_if.smoothing_enabled:
        return 0.0
    return clamp(what_if.smoothing_months / 12, 0.2, 1.5)


# ---------------------------------------------------------------------------
# Forecast windows
# ---------------------------------------------------------------------------


def _risk(projected_cash: float, threshold: float) -> str:
    if projected_cash < 0:
        return "critical"
    if projected_cash < threshold:
        return "warning"
    return "healthy"


def _coverage(projected_cash: float, outflow: float) -> float:
    return round_currency(projected_cash / outflow) if outflow > 0 else COVERAGE_SATURATION


def estimate_monthly_spend(purchases: Sequence[Purchase], today: date | None = None) -> float:
    """Average daily spend over the last 90 days, scaled to 30 days"""
    if today is None:
        today = date.today()
    window_start = today - timedelta(days=RECENT_SPEND_DAYS)
    recent = sum(
        finite_or_zero(p.amount) for p in purchases if p.purchase_date is not None and p.purchase_date >= window_start
    )
    return recent / RECENT_SPEND_DAYS * 30


def build_baseline_forecast_windows(
    liquid_reserves: float,
    monthly_income: float,
    monthly_commitments: float,
    monthly_spend_estimate: float = 0.0,
) -> List[ForecastWindow]:
    """30/90/365-day cash projection with commitments as both outflow and risk threshold"""
    monthly_net = monthly_income - monthly_commitments - monthly_spend_estimate
    windows = []
    for days in FORECAST_WINDOW_DAYS:
        projected_net = round_currency(monthly_net * (days / 30))
        projected_cash = round_currency(liquid_reserves + projected_net)
        windows.append(
            ForecastWindow(
                days=days,
                projected_net=projected_net,
                projected_cash=projected_cash,
                coverage_months=_coverage(projected_cash, monthly_commitments),
                risk=_risk(projected_cash, monthly_commitments),
                baseline_projected_cash=projected_cash,
                delta_projected_cash=0.0,
            )
        )
    return windows


# ---------------------------------------------------------------------------
# Scenario + waterfall
# ---------------------------------------------------------------------------


def forecast_gap(monthly_net: float, windows: Sequence[ForecastWindow]) -> float:
    """Monthly shortfall implied by a negative net or the worst cash-negative window"""
    gap_from_net = max(round_currency(-monthly_net), 0)
    gap_from_cash = 0.0
    for window in windows:
        if window.projected_cash < 0:
            gap_from_cash = max(gap_from_cash, round_currency(-window.projected_cash / window.days * 30))
    return max(gap_from_net, gap_from_cash)


def _money(value: float) -> str:
    return f"{value:.2f}"


def build_reallocation_waterfall(
    monthly_net: float,
    windows: Sequence[ForecastWindow],
    variable_spending: float,
    allocation_plan: Optional[AllocationPlan],
    extra_debt_payment: float,
    one_off_expense: float,
    irregular: Sequence[BudgetRow],
    overshoot: float,
) -> List[ReallocationSuggestion]:
    """
    Ordered suggestions that together close the monthly forecast gap.

    Order is fixed: trim variable cap, shift savings/goals allocation,
    pause extra debt, spread one-off, tighten irregular categories, then
    whatever is left becomes a residual gap. Impacts sum to the gap.
    """
    gap = forecast_gap(monthly_net, windows)
    if gap <= 0:
        return [
            ReallocationSuggestion(
                suggestion_id="stable-plan",
                title="Plan is cash-positive across 30/90/365 days",
                detail="No automatic reallocation required. Keep monitoring seasonal categories and bill risk alerts.",
                impact_amount=0.0,
                severity="good",
            )
        ]

    shift_capacity = 0.0
    if allocation_plan is not None:
        shift_capacity = sum(
            allocation_plan.bucket(target).monthly_amount
            for target in SHIFTABLE_ALLOCATION_TARGETS
            if allocation_plan.bucket(target).active
        )

    suggestions: List[ReallocationSuggestion] = []
    remaining = gap

    def take(capacity: float) -> float:
        return round_currency(min(remaining, capacity))

    trim = take(variable_spending * VARIABLE_CAP_TRIM_RATIO)
    if trim > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="trim-variable-cap",
                title="Trim variable spending cap",
                detail=f"Reduce discretionary cap by {_money(trim)} / month to close the immediate forecast gap.",
                impact_amount=trim,
                severity="critical",
            )
        )
        remaining = round_currency(max(remaining - trim, 0))

    shift = take(shift_capacity)
    if shift > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="shift-allocation",
                title="Shift savings/goals allocation to bills",
                detail=f"Temporarily re-route {_money(shift)} / month from savings/goals buckets to bill coverage.",
                impact_amount=shift,
                severity="critical" if remaining > gap * SHIFT_CRITICAL_SHARE else "warning",
            )
        )
        remaining = round_currency(max(remaining - shift, 0))

    pause = take(extra_debt_payment)
    if pause > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="pause-extra-debt",
                title="Pause extra debt overpay",
                detail=f"Hold {_money(pause)} / month in extra debt payments until forecast returns above zero.",
                impact_amount=pause,
                severity="warning",
            )
        )
        remaining = round_currency(max(remaining - pause, 0))

    spread = take(one_off_expense / ONE_OFF_SPREAD_MONTHS)
    if spread > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="spread-one-off",
                title="Split one-off expense over 3 months",
                detail=f"Spreading the one-off cost frees about {_money(spread)} / month in near-term cashflow.",
                impact_amount=spread,
                severity="warning",
            )
        )
        remaining = round_currency(max(remaining - spread, 0))

    focus = take(overshoot) if irregular else 0.0
    if focus > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="tighten-irregular-categories",
                title="Target irregular categories first",
                detail=f"Focus controls on {len(irregular)} irregular categories to recover {_money(focus)} / month.",
                impact_amount=focus,
                severity="warning",
            )
        )
        remaining = round_currency(max(remaining - focus, 0))

    if remaining > 0:
        suggestions.append(
            ReallocationSuggestion(
                suggestion_id="residual-gap",
                title="Residual gap requires structural changes",
                detail=(
                    f"{_money(remaining)} / month still uncovered. "
                    "Consider renegotiating fixed commitments or increasing income assumptions."
                ),
                impact_amount=remaining,
                severity="critical",
            )
        )

    return suggestions


def run_what_if(
    workspace: PlanningWorkspace,
    what_if: WhatIfInput,
    liquid_reserves: float,
    bill_share: float,
    budget_rows: Sequence[BudgetRow] = (),
    allocation_plan: Optional[AllocationPlan] = None,
    baseline_windows: Sequence[ForecastWindow] = (),
) -> ScenarioResult:
    """
    Apply a what-if scenario to the planned month and project 30/90/365 days.

    Args:
        workspace: Baseline vs selected plan
        what_if: Normalized scenario input
        liquid_reserves: Starting cash
        bill_share: Share of fixed commitments that are bills (0-1)
        budget_rows: Envelope rows used to find irregular categories
        allocation_plan: Income allocation, capacity for the shift step
        baseline_windows: Baseline forecast; derived from planned net when empty

    Returns:
        ScenarioResult with windows and the reallocation waterfall
    """
    liquid = finite_or_zero(liquid_reserves)
    irregular = irregular_rows(budget_rows)
    overshoot = irregular_overshoot(irregular)
    adjustment = round_currency(overshoot * smoothing_weight(what_if))

    planned = workspace.planned
    income = planned.expected_income * (1 - what_if.income_drop_ratio)
    bill_increase = planned.fixed_commitments * bill_share * what_if.bill_increase_ratio
    fixed = planned.fixed_commitments + bill_increase + what_if.extra_debt_payment
    variable = planned.variable_spending_cap + adjustment
    net = income - fixed - variable
    outflow = fixed + variable

    baseline_by_days: Dict[int, ForecastWindow] = {w.days: w for w in baseline_windows}
    windows: List[ForecastWindow] = []
    for days in FORECAST_WINDOW_DAYS:
        factor = days / 30
        projected_net = round_currency(net * factor - what_if.one_off_expense)
        projected_cash = round_currency(liquid + projected_net)
        baseline_window = baseline_by_days.get(days)
        if baseline_window is not None:
            baseline_cash = baseline_window.projected_cash
        else:
            baseline_cash = round_currency(liquid + workspace.planned_monthly_net * factor)
        windows.append(
            ForecastWindow(
                days=days,
                projected_net=projected_net,
                projected_cash=projected_cash,
                coverage_months=_coverage(projected_cash, outflow),
                risk=_risk(projected_cash, fixed),
                baseline_projected_cash=baseline_cash,
                delta_projected_cash=round_currency(projected_cash - baseline_cash),
            )
        )

    suggestions = build_reallocation_waterfall(
        monthly_net=net,
        windows=windows,
        variable_spending=variable,
        allocation_plan=allocation_plan,
        extra_debt_payment=what_if.extra_debt_payment,
        one_off_expense=what_if.one_off_expense,
        irregular=irregular,
        overshoot=overshoot,
    )

    return ScenarioResult(
        income=round_currency(income),
        fixed_commitments=round_currency(fixed),
        variable_spending=round_currency(variable),
        monthly_net=round_currency(net),
        monthly_outflow=round_currency(outflow),
        delta_monthly_net=round_currency(net - workspace.planned_monthly_net),
        smoothing_adjustment=adjustment,
        irregular_categories=[row.category for row in irregular],
        irregular_overshoot=round_currency(overshoot),
        windows=windows,
        suggestions=suggestions,
    )

