"""Loan amortization, portfolio projection, payoff strategy, what-if and refinance analysis"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from finance_engine.domain.cadence import monthly_occurrences
from finance_engine.domain.cards import monthly_rate, resolve_day, resolve_minimum_mode
from finance_engine.domain.models import Loan, LoanPaymentEvent, MinimumPaymentMode
from finance_engine.utils.date_utils import add_months_keeping_day, month_key, month_key_offset
from finance_engine.utils.money import clamp, clamp_percent, finite_or_zero, non_negative, round_currency

HORIZONS = (12, 24, 36)
PAYOFF_SEARCH_MONTHS = 360
PAID_OFF_EPSILON = 0.000001
CONSISTENCY_RATIO_CAP = 1.4


@dataclass(frozen=True)
class LoanOverrides:
    extra_payment_delta: float = 0.0
    apr_delta: float = 0.0
    subscription_delta: float = 0.0
    due_day_shift: int = 0


@dataclass(frozen=True)
class LoanBalances:
    principal: float
    accrued_interest: float
    balance: float


@dataclass(frozen=True)
class LoanProjectionRow:
    month_index: int
    opening_principal: float
    opening_interest: float
    opening_subscription: float
    opening_outstanding: float
    interest_accrued: float
    minimum_due: float
    planned_loan_payment: float
    payment_to_interest: float
    payment_to_principal: float
    subscription_due: float
    total_payment: float
    ending_principal: float
    ending_interest: float
    ending_subscription: float
    ending_loan_balance: float
    ending_outstanding: float
    payment_consistency_ratio: float


@dataclass(frozen=True)
class LoanHorizonSummary:
    months: int
    ending_outstanding: float
    total_interest: float
    total_principal_paid: float
    total_loan_payment: float
    total_subscription_paid: float
    total_payment: float


@dataclass(frozen=True)
class ConsistencyPoint:
    month_key: str
    paid: float
    expected: float
    ratio: float


@dataclass(frozen=True)
class LoanProjection:
    loan_id: str
    name: str
    apr: float
    due_day: int
    subscription_cost: float
    subscription_payments_remaining: int
    current_principal: float
    current_interest: float
    current_loan_balance: float
    current_subscription_outstanding: float
    current_outstanding: float
    projected_next_month_interest: float
    projected_annual_interest: float
    projected_24_month_interest: float
    projected_36_month_interest: float
    projected_payoff_months: Optional[int]
    projected_payoff_date: Optional[date]
    payment_consistency_score: float
    payment_consistency_trend: List[ConsistencyPoint]
    rows: List[LoanProjectionRow]
    horizons: Dict[int, LoanHorizonSummary]


@dataclass(frozen=True)
class LoanPortfolioProjection:
    total_outstanding: float
    projected_next_month_interest: float
    projected_annual_interest: float
    projected_24_month_interest: float
    projected_36_month_interest: float
    projected_annual_payments: float
    average_payment_consistency_score: float
    models: List[LoanProjection] = field(default_factory=list)


@dataclass(frozen=True)
class LoanStrategyCandidate:
    loan_id: str
    name: str
    balance: float
    apr: float
    next_month_interest: float
    annual_interest: float
    annual_interest_savings: float


@dataclass(frozen=True)
class LoanStrategyResult:
    monthly_overpay_budget: float
    portfolio_annual_interest_baseline: float
    portfolio_annual_interest_with_avalanche: float
    portfolio_annual_interest_with_snowball: float
    recommended_mode: str
    recommended_target: Optional[LoanStrategyCandidate]
    avalanche_target: Optional[LoanStrategyCandidate]
    snowball_target: Optional[LoanStrategyCandidate]


@dataclass(frozen=True)
class LoanWhatIf:
    loan_id: str = "all"
    extra_payment_delta: float = 0.0
    apr_delta: float = 0.0
    subscription_delta: float = 0.0
    due_day_shift: int = 0


@dataclass(frozen=True)
class LoanWhatIfResult:
    scenario_input: LoanWhatIf
    baseline: LoanPortfolioProjection
    scenario: LoanPortfolioProjection
    next_month_interest_delta: float
    annual_interest_delta: float
    annual_payments_delta: float
    total_outstanding_delta: float


@dataclass(frozen=True)
class RefinanceOffer:
    apr: float
    fees: float
    term_months: int


@dataclass(frozen=True)
class RefinanceResult:
    monthly_payment: float
    total_refinance_interest: float
    total_refinance_cost: float
    total_current_cost: float
    total_cost_delta: float
    break_even_month: Optional[int]
    remaining_current_outstanding_at_term: float


# ---------------------------------------------------------------------------
# Balance resolution
# ---------------------------------------------------------------------------


def resolve_loan_balances(loan: Loan) -> LoanBalances:
    """Explicit principal/accrued components win over the plain balance field"""
    has_components = loan.principal_balance is not None or loan.accrued_interest is not None
    if has_components:
        principal = non_negative(loan.principal_balance)
        accrued = non_negative(loan.accrued_interest)
        balance = principal + accrued
    else:
        principal = non_negative(loan.balance)
        accrued = 0.0
        balance = principal
    return LoanBalances(
        principal=round_currency(principal),
        accrued_interest=round_currency(accrued),
        balance=round_currency(balance),
    )


def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != int(value) or value <= 0:
        return None
    return int(value)


def resolve_subscription_outstanding(loan: Loan) -> float:
    """
    Remaining subscription installments in money terms.

    An explicit outstanding no larger than a single installment, with no
    payment count configured, is read as "a fresh 12-payment subscription".
    """
    cost = round_currency(non_negative(loan.subscription_cost))
    if cost <= 0:
        return 0.0

    payment_count = _positive_int(loan.subscription_payment_count)
    if loan.subscription_outstanding is not None:
        outstanding = round_currency(non_negative(loan.subscription_outstanding))
        if payment_count is None and outstanding <= cost + PAID_OFF_EPSILON:
            return round_currency(cost * 12)
        return outstanding

    return round_currency(cost * (payment_count or 12))


def resolve_subscription_payments_remaining(cost: float, outstanding: float) -> int:
    if cost <= 0 or outstanding <= 0:
        return 0
    return max(1, math.ceil(outstanding / cost - PAID_OFF_EPSILON))


def total_loan_outstanding(loan: Loan) -> float:
    return round_currency(resolve_loan_balances(loan).balance + resolve_subscription_outstanding(loan))


def estimate_loan_monthly_payment(loan: Loan) -> float:
    """
    Monthly-equivalent planned payment for the summary.

    Interest is estimated over one payment interval; the per-payment amount
    is then scaled by how many payments fall in a month.
    """
    working = resolve_loan_balances(loan)
    if working.balance <= 0:
        return 0.0

    occurrences = monthly_occurrences(loan.cadence, loan.custom_interval, loan.custom_unit)
    if occurrences <= 0:
        return 0.0
    interval_months = 1 / occurrences

    interest = working.balance * monthly_rate(loan.apr) * interval_months
    due_balance = working.balance + interest
    if resolve_minimum_mode(loan.minimum_payment_mode) is MinimumPaymentMode.PERCENT_PLUS_INTEREST:
        minimum_due_raw = (
            working.principal * (clamp_percent(loan.minimum_percent) / 100)
            + working.accrued_interest
            + interest
        )
    else:
        minimum_due_raw = finite_or_zero(loan.minimum_payment)
    minimum_due = min(due_balance, max(minimum_due_raw, 0.0))
    planned_payment = min(due_balance, minimum_due + finite_or_zero(loan.extra_payment))
    return round_currency(planned_payment * occurrences)


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Simulation:
    rows: List[LoanProjectionRow]
    payoff_month: Optional[int]
    balances: LoanBalances
    subscription_cost: float
    subscription_outstanding: float
    apr: float
    due_day: int


def _paid_off_row(month_index: int, opening: Dict[str, float]) -> LoanProjectionRow:
    return LoanProjectionRow(
        month_index=month_index,
        opening_principal=opening["principal"],
        opening_interest=opening["interest"],
        opening_subscription=opening["subscription"],
        opening_outstanding=opening["outstanding"],
        interest_accrued=0.0,
        minimum_due=0.0,
        planned_loan_payment=0.0,
        payment_to_interest=0.0,
        payment_to_principal=0.0,
        subscription_due=0.0,
        total_payment=0.0,
        ending_principal=0.0,
        ending_interest=0.0,
        ending_subscription=0.0,
        ending_loan_balance=0.0,
        ending_outstanding=0.0,
        payment_consistency_ratio=1.0,
    )


def simulate_loan_rows(loan: Loan, months: int, overrides: LoanOverrides | None = None) -> _Simulation:
    """
    Amortize a loan month by month.

    Each month interest accrues on opening principal + accrued interest,
    the planned payment clears interest first and then principal, and one
    subscription installment is taken alongside. Payment amounts on
    sub-monthly cadences are scaled up to a monthly total.
    """
    overrides = overrides or LoanOverrides()
    months = max(int(months), 1)
    balances = resolve_loan_balances(loan)

    apr = max(finite_or_zero(loan.apr) + finite_or_zero(overrides.apr_delta), 0.0)
    rate = monthly_rate(apr)
    mode = resolve_minimum_mode(loan.minimum_payment_mode)
    minimum_percent = clamp_percent(loan.minimum_percent)
    occurrences = max(monthly_occurrences(loan.cadence, loan.custom_interval, loan.custom_unit), 1.0)
    extra_payment = max(non_negative(loan.extra_payment) + finite_or_zero(overrides.extra_payment_delta), 0.0)
    monthly_extra = extra_payment * occurrences
    monthly_fixed_minimum = non_negative(loan.minimum_payment) * occurrences
    subscription_cost = max(
        finite_or_zero(loan.subscription_cost) + finite_or_zero(overrides.subscription_delta), 0.0
    )
    base_due_day = resolve_day(loan.due_day, 1)
    due_day = int(clamp(base_due_day + int(finite_or_zero(overrides.due_day_shift)), 1, 31))

    principal = balances.principal
    accrued = balances.accrued_interest
    starting_subscription = resolve_subscription_outstanding(loan)
    subscription = starting_subscription
    rows: List[LoanProjectionRow] = []
    payoff_month: Optional[int] = None

    for month_index in range(1, months + 1):
        opening_principal = round_currency(max(principal, 0.0))
        opening_interest = round_currency(max(accrued, 0.0))
        opening_loan = round_currency(opening_principal + opening_interest)
        opening_subscription = round_currency(max(subscription, 0.0))
        opening_outstanding = round_currency(opening_loan + opening_subscription)

        if opening_outstanding <= PAID_OFF_EPSILON:
            rows.append(
                _paid_off_row(
                    month_index,
                    {
                        "principal": opening_principal,
                        "interest": opening_interest,
                        "subscription": opening_subscription,
                        "outstanding": opening_outstanding,
                    },
                )
            )
            if payoff_month is None:
                payoff_month = month_index
            continue

        interest_accrued = round_currency(opening_loan * rate)
        accrued = round_currency(accrued + interest_accrued)

        due_balance = round_currency(principal + accrued)
        if mode is MinimumPaymentMode.PERCENT_PLUS_INTEREST:
            minimum_due_raw = principal * (minimum_percent / 100) * occurrences + accrued
        else:
            minimum_due_raw = monthly_fixed_minimum
        minimum_due = round_currency(min(due_balance, max(minimum_due_raw, 0.0)))
        planned_payment = round_currency(min(due_balance, minimum_due + monthly_extra))

        payment_to_interest = round_currency(min(accrued, planned_payment))
        accrued = round_currency(max(accrued - payment_to_interest, 0.0))
        payment_to_principal = round_currency(min(principal, round_currency(planned_payment - payment_to_interest)))
        principal = round_currency(max(principal - payment_to_principal, 0.0))

        installment = subscription_cost if subscription_cost > 0 else subscription
        subscription_due = round_currency(min(subscription, installment))
        subscription = round_currency(max(subscription - subscription_due, 0.0))

        ending_loan = round_currency(principal + accrued)
        ending_outstanding = round_currency(ending_loan + subscription)
        ratio = planned_payment / minimum_due if minimum_due > 0 else 1.0

        rows.append(
            LoanProjectionRow(
                month_index=month_index,
                opening_principal=opening_principal,
                opening_interest=opening_interest,
                opening_subscription=opening_subscription,
                opening_outstanding=opening_outstanding,
                interest_accrued=interest_accrued,
                minimum_due=minimum_due,
                planned_loan_payment=planned_payment,
                payment_to_interest=payment_to_interest,
                payment_to_principal=payment_to_principal,
                subscription_due=subscription_due,
                total_payment=round_currency(planned_payment + subscription_due),
                ending_principal=principal,
                ending_interest=accrued,
                ending_subscription=subscription,
                ending_loan_balance=ending_loan,
                ending_outstanding=ending_outstanding,
                payment_consistency_ratio=ratio,
            )
        )

        if payoff_month is None and ending_outstanding <= PAID_OFF_EPSILON:
            payoff_month = month_index

    return _Simulation(
        rows=rows,
        payoff_month=payoff_month,
        balances=balances,
        subscription_cost=round_currency(subscription_cost),
        subscription_outstanding=starting_subscription,
        apr=round_currency(apr),
        due_day=due_day,
    )


def summarize_rows(rows: Sequence[LoanProjectionRow], months: int) -> LoanHorizonSummary:
    bounded = list(rows[:months])
    return LoanHorizonSummary(
        months=months,
        ending_outstanding=round_currency(bounded[-1].ending_outstanding if bounded else 0.0),
        total_interest=round_currency(sum(r.interest_accrued for r in bounded)),
        total_principal_paid=round_currency(sum(r.payment_to_principal for r in bounded)),
        total_loan_payment=round_currency(sum(r.planned_loan_payment for r in bounded)),
        total_subscription_paid=round_currency(sum(r.subscription_due for r in bounded)),
        total_payment=round_currency(sum(r.total_payment for r in bounded)),
    )


def build_payment_consistency_trend(
    loan_id: str,
    events: Iterable[LoanPaymentEvent],
    expected_monthly_payment: float,
    today: date,
):
    """Paid vs expected for the trailing 12 months, plus a 0-140 consistency score"""
    paid_by_month: Dict[str, float] = {}
    for event in events:
        if event.loan_id != loan_id:
            continue
        key = month_key(event.occurred_on)
        paid_by_month[key] = round_currency(paid_by_month.get(key, 0.0) + non_negative(event.amount))

    expected = round_currency(max(expected_monthly_payment, 0.0))
    trend = []
    for offset in range(-11, 1):
        key = month_key_offset(offset, today)
        paid = round_currency(paid_by_month.get(key, 0.0))
        ratio = paid / expected if expected > 0 else 1.0
        trend.append(ConsistencyPoint(month_key=key, paid=paid, expected=expected, ratio=ratio))

    mean = sum(clamp(point.ratio, 0.0, CONSISTENCY_RATIO_CAP) for point in trend) / len(trend)
    score = round_currency(clamp(mean * 100, 0.0, CONSISTENCY_RATIO_CAP * 100))
    return trend, score


def build_loan_projection(
    loan: Loan,
    events: Sequence[LoanPaymentEvent] = (),
    overrides: LoanOverrides | None = None,
    max_months: int = 36,
    today: date | None = None,
) -> LoanProjection:
    if today is None:
        today = date.today()

    max_months = max(max_months, 36)
    simulation = simulate_loan_rows(loan, max(max_months, PAYOFF_SEARCH_MONTHS), overrides)
    rows = simulation.rows[:max_months]
    horizons = {months: summarize_rows(rows, months) for months in HORIZONS}

    payoff_months = simulation.payoff_month
    payoff_date = (
        add_months_keeping_day(today, payoff_months, simulation.due_day)
        if payoff_months is not None
        else None
    )

    expected_monthly_payment = rows[0].total_payment if rows else 0.0
    trend, score = build_payment_consistency_trend(loan.loan_id, events, expected_monthly_payment, today)

    return LoanProjection(
        loan_id=loan.loan_id,
        name=loan.name,
        apr=simulation.apr,
        due_day=simulation.due_day,
        subscription_cost=simulation.subscription_cost,
        subscription_payments_remaining=resolve_subscription_payments_remaining(
            simulation.subscription_cost, simulation.subscription_outstanding
        ),
        current_principal=simulation.balances.principal,
        current_interest=simulation.balances.accrued_interest,
        current_loan_balance=simulation.balances.balance,
        current_subscription_outstanding=simulation.subscription_outstanding,
        current_outstanding=round_currency(simulation.balances.balance + simulation.subscription_outstanding),
        projected_next_month_interest=round_currency(rows[0].interest_accrued if rows else 0.0),
        projected_annual_interest=horizons[12].total_interest,
        projected_24_month_interest=horizons[24].total_interest,
        projected_36_month_interest=horizons[36].total_interest,
        projected_payoff_months=payoff_months,
        projected_payoff_date=payoff_date,
        payment_consistency_score=score,
        payment_consistency_trend=trend,
        rows=rows,
        horizons=horizons,
    )


def build_loan_portfolio(
    loans: Sequence[Loan],
    events: Sequence[LoanPaymentEvent] = (),
    per_loan_overrides: Dict[str, LoanOverrides] | None = None,
    max_months: int = 36,
    today: date | None = None,
) -> LoanPortfolioProjection:
    overrides = per_loan_overrides or {}
    models = [
        build_loan_projection(loan, events, overrides.get(loan.loan_id), max_months=max_months, today=today)
        for loan in loans
    ]

    def total(getter) -> float:
        return round_currency(sum(getter(model) for model in models))

    average_consistency = (
        round_currency(sum(m.payment_consistency_score for m in models) / len(models)) if models else 100.0
    )

    return LoanPortfolioProjection(
        total_outstanding=total(lambda m: m.current_outstanding),
        projected_next_month_interest=total(lambda m: m.projected_next_month_interest),
        projected_annual_interest=total(lambda m: m.horizons[12].total_interest),
        projected_24_month_interest=total(lambda m: m.horizons[24].total_interest),
        projected_36_month_interest=total(lambda m: m.horizons[36].total_interest),
        projected_annual_payments=total(lambda m: m.horizons[12].total_payment),
        average_payment_consistency_score=average_consistency,
        models=models,
    )


# ---------------------------------------------------------------------------
# Strategy and scenarios
# ---------------------------------------------------------------------------


def _strategy_candidate(model: LoanProjection, savings: float) -> LoanStrategyCandidate:
    return LoanStrategyCandidate(
        loan_id=model.loan_id,
        name=model.name,
        balance=model.current_outstanding,
        apr=model.apr,
        next_month_interest=model.projected_next_month_interest,
        annual_interest=model.projected_annual_interest,
        annual_interest_savings=round_currency(max(savings, 0.0)),
    )


def build_loan_strategy(
    loans: Sequence[Loan],
    events: Sequence[LoanPaymentEvent],
    monthly_overpay_budget: float,
    today: date | None = None,
) -> LoanStrategyResult:
    """
    Compare focusing the whole overpay budget on the avalanche target vs the
    snowball target, measured as first-year portfolio interest saved.
    """
    budget = round_currency(non_negative(monthly_overpay_budget))
    baseline = build_loan_portfolio(loans, events, today=today)
    candidates = [m for m in baseline.models if m.current_outstanding > 0.005]

    if not candidates:
        return LoanStrategyResult(
            monthly_overpay_budget=budget,
            portfolio_annual_interest_baseline=baseline.projected_annual_interest,
            portfolio_annual_interest_with_avalanche=baseline.projected_annual_interest,
            portfolio_annual_interest_with_snowball=baseline.projected_annual_interest,
            recommended_mode="avalanche",
            recommended_target=None,
            avalanche_target=None,
            snowball_target=None,
        )

    avalanche_model = sorted(
        candidates,
        key=lambda m: (-m.apr, -m.projected_annual_interest, -m.current_outstanding, m.name.casefold()),
    )[0]
    snowball_model = sorted(
        candidates,
        key=lambda m: (m.current_outstanding, -m.apr, m.name.casefold()),
    )[0]

    def annual_interest_focused_on(loan_id: str) -> float:
        focused = build_loan_portfolio(
            loans,
            events,
            per_loan_overrides={loan_id: LoanOverrides(extra_payment_delta=budget)},
            today=today,
        )
        return focused.projected_annual_interest

    avalanche_interest = annual_interest_focused_on(avalanche_model.loan_id)
    snowball_interest = annual_interest_focused_on(snowball_model.loan_id)
    avalanche_target = _strategy_candidate(
        avalanche_model, baseline.projected_annual_interest - avalanche_interest
    )
    snowball_target = _strategy_candidate(snowball_model, baseline.projected_annual_interest - snowball_interest)

    if avalanche_target.annual_interest_savings >= snowball_target.annual_interest_savings:
        mode, recommended = "avalanche", avalanche_target
    else:
        mode, recommended = "snowball", snowball_target

    return LoanStrategyResult(
        monthly_overpay_budget=budget,
        portfolio_annual_interest_baseline=baseline.projected_annual_interest,
        portfolio_annual_interest_with_avalanche=round_currency(avalanche_interest),
        portfolio_annual_interest_with_snowball=round_currency(snowball_interest),
        recommended_mode=mode,
        recommended_target=recommended,
        avalanche_target=avalanche_target,
        snowball_target=snowball_target,
    )


def run_loan_what_if(
    loans: Sequence[Loan],
    events: Sequence[LoanPaymentEvent],
    scenario_input: LoanWhatIf,
    today: date | None = None,
) -> LoanWhatIfResult:
    overrides = LoanOverrides(
        extra_payment_delta=scenario_input.extra_payment_delta,
        apr_delta=scenario_input.apr_delta,
        subscription_delta=scenario_input.subscription_delta,
        due_day_shift=scenario_input.due_day_shift,
    )
    per_loan = {
        loan.loan_id: overrides
        for loan in loans
        if scenario_input.loan_id == "all" or scenario_input.loan_id == loan.loan_id
    }

    baseline = build_loan_portfolio(loans, events, today=today)
    scenario = build_loan_portfolio(loans, events, per_loan_overrides=per_loan, today=today)

    return LoanWhatIfResult(
        scenario_input=scenario_input,
        baseline=baseline,
        scenario=scenario,
        next_month_interest_delta=round_currency(
            scenario.projected_next_month_interest - baseline.projected_next_month_interest
        ),
        annual_interest_delta=round_currency(scenario.projected_annual_interest - baseline.projected_annual_interest),
        annual_payments_delta=round_currency(scenario.projected_annual_payments - baseline.projected_annual_payments),
        total_outstanding_delta=round_currency(scenario.total_outstanding - baseline.total_outstanding),
    )


def amortized_payment(principal: float, apr: float, term_months: int) -> float:
    """Level monthly payment P*r / (1 - (1+r)^-n); P/n at 0%"""
    principal = max(principal, 0.0)
    term = max(int(term_months), 1)
    rate = monthly_rate(apr)
    if rate <= 0:
        return principal / term
    denominator = 1 - (1 + rate) ** -term
    if denominator <= 0:
        return principal / term
    return principal * rate / denominator


def analyze_loan_refinance(projection: LoanProjection, offer: RefinanceOffer) -> RefinanceResult:
    """
    Compare keeping the current loan against refinancing its loan balance.

    Subscription installments are carried unchanged on both sides. Whatever
    is still owed at the end of the term counts toward that side's total cost.
    """
    term = max(int(offer.term_months), 1)
    offer_apr = max(finite_or_zero(offer.apr), 0.0)
    fees = non_negative(offer.fees)
    principal = max(projection.current_loan_balance, 0.0)
    payment_raw = amortized_payment(principal, offer_apr, term)
    rate = monthly_rate(offer_apr)

    baseline_rows = projection.rows[:term]
    baseline_subscription = sum(row.subscription_due for row in baseline_rows)
    baseline_cost = sum(row.total_payment for row in baseline_rows)
    remaining_at_term = (
        baseline_rows[-1].ending_outstanding if baseline_rows else projection.current_outstanding
    )

    balance = principal
    interest_total = 0.0
    refinance_cost = fees
    cumulative_current = 0.0
    cumulative_refinance = fees
    break_even_month: Optional[int] = None

    for month in range(1, term + 1):
        interest = balance * rate
        interest_total += interest
        due = balance + interest
        payment = min(due, payment_raw)
        balance = max(due - payment, 0.0)
        refinance_cost += payment

        row = baseline_rows[month - 1] if month <= len(baseline_rows) else None
        cumulative_current += row.total_payment if row else 0.0
        cumulative_refinance += payment + (row.subscription_due if row else 0.0)

        if break_even_month is None and cumulative_refinance <= cumulative_current + PAID_OFF_EPSILON:
            break_even_month = month

    total_refinance_cost = round_currency(refinance_cost + baseline_subscription + balance)
    total_current_cost = round_currency(baseline_cost + remaining_at_term)

    return RefinanceResult(
        monthly_payment=round_currency(payment_raw),
        total_refinance_interest=round_currency(interest_total),
        total_refinance_cost=total_refinance_cost,
        total_current_cost=total_current_cost,
        total_cost_delta=round_currency(total_refinance_cost - total_current_cost),
        break_even_month=break_even_month,
        remaining_current_outstanding_at_term=round_currency(remaining_at_term),
    )
