"""Debt cycle projector - statement-cycle amortization for cards and card-like debts"""

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from finance_engine.domain.models import (
    Card,
    DebtAccount,
    DebtCycleProjection,
    DebtPortfolioSummary,
    InterestForecast,
    MinimumPaymentMode,
    PayoffCandidate,
    RiskAlert,
)
from finance_engine.utils.date_utils import add_months_keeping_day, clamped_day, days_between
from finance_engine.utils.money import (
    clamp_percent,
    finite_or_zero,
    non_negative,
    round_currency,
    safe_ratio,
)

DEFAULT_DUE_DAY = 21
FORECAST_CYCLES = 12
# 0.05 percentage points, expressed as a ratio
UTILIZATION_TREND_DEAD_BAND = 0.0005

SEVERITY_RANK = {"critical": 3, "warning": 2, "watch": 1}


# ---------------------------------------------------------------------------
# Default resolution
#
# Precedence for every optional field is explicit here so the projector
# itself never has to guess:
#   current   = current_balance
#   statement = statement_balance, else current
#   pending   = pending_amount, else max(current - statement, 0)
#   due day   = integer in [1, 31], else 21
# ---------------------------------------------------------------------------


def resolve_current_balance(account: DebtAccount) -> float:
    return non_negative(account.current_balance)


def resolve_statement_balance(account: DebtAccount) -> float:
    if account.statement_balance is None:
        return resolve_current_balance(account)
    return non_negative(account.statement_balance)


def resolve_pending_amount(account: DebtAccount) -> float:
    if account.pending_amount is None:
        return max(resolve_current_balance(account) - resolve_statement_balance(account), 0.0)
    return non_negative(account.pending_amount)


def resolve_day(value: Optional[int], default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    number = finite_or_zero(value)
    if number != int(number) or not 1 <= number <= 31:
        return default
    return int(number)


def resolve_due_day(account: DebtAccount) -> int:
    return resolve_day(account.due_day, DEFAULT_DUE_DAY)


def resolve_minimum_mode(value) -> MinimumPaymentMode:
    if value == MinimumPaymentMode.PERCENT_PLUS_INTEREST or value == "percent_plus_interest":
        return MinimumPaymentMode.PERCENT_PLUS_INTEREST
    return MinimumPaymentMode.FIXED


def monthly_rate(apr: float) -> float:
    apr = finite_or_zero(apr)
    return apr / 100 / 12 if apr > 0 else 0.0


def card_to_debt_account(card: Card) -> DebtAccount:
    """Map a stored card record onto the unified DebtAccount shape"""
    return DebtAccount(
        account_id=card.card_id,
        name=card.name,
        kind="card",
        credit_limit=card.credit_limit,
        current_balance=card.used_limit,
        statement_balance=card.statement_balance,
        pending_amount=card.pending_charges,
        minimum_payment_mode=card.minimum_payment_mode,
        fixed_minimum=card.minimum_payment,
        minimum_percent=card.minimum_percent,
        extra_payment=card.extra_payment,
        planned_spend=card.spend_per_month,
        apr=card.apr,
        due_day=card.due_day,
        statement_day=card.statement_day,
    )


# ---------------------------------------------------------------------------
# Cycle math
# ---------------------------------------------------------------------------


def _minimum_due_raw(
    mode: MinimumPaymentMode,
    balance: float,
    interest: float,
    fixed_minimum: float,
    minimum_percent: float,
) -> float:
    if mode is MinimumPaymentMode.PERCENT_PLUS_INTEREST:
        return balance * (minimum_percent / 100) + interest
    return fixed_minimum


def forecast_interest(
    starting_balance: float,
    apr: float,
    mode: MinimumPaymentMode,
    fixed_minimum: float,
    minimum_percent: float,
    extra_payment: float,
    planned_spend: float,
    cycles: int = FORECAST_CYCLES,
) -> InterestForecast:
    """
    Iterate the statement-cycle formulas forward and total the interest.

    Each cycle: interest accrues on the carried balance, the minimum and
    planned payment are taken off, then planned spend is added before the
    next accrual.
    """
    rate = monthly_rate(apr)
    balance = max(starting_balance, 0.0)
    next_month_interest = 0.0
    total_interest = 0.0

    for cycle in range(max(cycles, 0)):
        interest = balance * rate
        if cycle == 0:
            next_month_interest = interest
        total_interest += interest

        due_balance = balance + interest
        minimum_due = min(
            due_balance,
            max(_minimum_due_raw(mode, balance, interest, fixed_minimum, minimum_percent), 0.0),
        )
        payment = min(due_balance, minimum_due + extra_payment)
        balance = max(due_balance - payment, 0.0) + planned_spend

    return InterestForecast(
        next_month_interest=round_currency(next_month_interest),
        total_interest=round_currency(total_interest),
        cycles=max(cycles, 0),
    )


def project_debt_cycle(
    account: DebtAccount,
    today: date | None = None,
    forecast_cycles: int = FORECAST_CYCLES,
) -> DebtCycleProjection:
    """
    Project one DebtAccount a single statement cycle forward.

    Steps:
    1. interest on the statement balance at apr/12
    2. new statement balance = statement + interest
    3. minimum due (fixed, or percent of statement + interest), capped at the new balance
    4. planned payment = minimum + extra, capped at the new balance
    5. post-payment balance = what is left + pending charges
    6. due-date timing decides which balance the user currently "sees"
    7. 12-cycle interest forecast from the post-payment balance

    All inputs are clamped to >= 0; a minimum below interest is reported
    by build_card_risk_alerts, not rejected here.
    """
    if today is None:
        today = date.today()

    limit = non_negative(account.credit_limit)
    current_input = resolve_current_balance(account)
    statement_input = resolve_statement_balance(account)
    pending = resolve_pending_amount(account)
    mode = resolve_minimum_mode(account.minimum_payment_mode)
    fixed_minimum = non_negative(account.fixed_minimum)
    minimum_percent = clamp_percent(account.minimum_percent)
    extra_payment = non_negative(account.extra_payment)
    planned_spend = non_negative(account.planned_spend)
    apr = non_negative(account.apr)
    due_day = resolve_due_day(account)

    interest = round_currency(statement_input * monthly_rate(apr))
    new_statement_balance = round_currency(statement_input + interest)
    minimum_due_raw = _minimum_due_raw(mode, statement_input, interest, fixed_minimum, minimum_percent)
    minimum_due = round_currency(min(new_statement_balance, max(minimum_due_raw, 0.0)))
    planned_payment = round_currency(min(new_statement_balance, minimum_due + extra_payment))
    post_payment_balance = round_currency(max(new_statement_balance - planned_payment, 0.0) + pending)

    due_this_month = clamped_day(today.year, today.month, due_day)
    due_applied = due_this_month <= today
    next_due = add_months_keeping_day(today, 1, due_day) if due_applied else due_this_month
    due_in_days = days_between(today, next_due)

    display_current = post_payment_balance if due_applied else current_input
    forecast = forecast_interest(
        post_payment_balance,
        apr,
        mode,
        fixed_minimum,
        minimum_percent,
        extra_payment,
        planned_spend,
        cycles=forecast_cycles,
    )

    return DebtCycleProjection(
        account_id=account.account_id,
        name=account.name,
        kind=account.kind,
        credit_limit=round_currency(limit),
        apr=apr,
        current_balance=round_currency(current_input),
        statement_balance=round_currency(statement_input),
        pending_amount=round_currency(pending),
        minimum_payment_mode=mode,
        interest_amount=interest,
        new_statement_balance=new_statement_balance,
        minimum_due=minimum_due,
        extra_payment=round_currency(extra_payment),
        planned_payment=planned_payment,
        post_payment_balance=post_payment_balance,
        projected_utilization_after_payment=safe_ratio(post_payment_balance, limit),
        due_day=due_day,
        due_date=next_due,
        due_applied=due_applied,
        due_in_days=due_in_days,
        display_current_balance=round_currency(display_current),
        display_available_credit=round_currency(limit - display_current),
        display_utilization=safe_ratio(display_current, limit),
        next_month_interest=forecast.next_month_interest,
        interest_12_months=forecast.total_interest,
    )


def project_cards(
    cards: Iterable[Card],
    today: date | None = None,
    forecast_cycles: int = FORECAST_CYCLES,
) -> List[DebtCycleProjection]:
    return [project_debt_cycle(card_to_debt_account(card), today, forecast_cycles) for card in cards]


def estimate_card_monthly_payment(card: Card) -> float:
    """
    Planned payment for the next cycle, rounded only at the end.

    This is the figure the summary reports as monthly card spend; the
    projector rounds each intermediate step instead, so the two can differ
    by a cent on awkward balances.
    """
    account = card_to_debt_account(card)
    statement = resolve_statement_balance(account)
    interest = statement * monthly_rate(account.apr)
    due_balance = statement + interest
    mode = resolve_minimum_mode(account.minimum_payment_mode)
    minimum_due_raw = _minimum_due_raw(
        mode,
        statement,
        interest,
        finite_or_zero(account.fixed_minimum),
        clamp_percent(account.minimum_percent),
    )
    minimum_due = min(due_balance, max(minimum_due_raw, 0.0))
    planned_payment = min(due_balance, minimum_due + finite_or_zero(account.extra_payment))
    return round_currency(planned_payment)


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------


def utilization_trend(post_payment: float, current: float) -> str:
    """Direction planned payments move utilization, ignoring sub-0.05pp changes"""
    delta = post_payment - current
    if delta > UTILIZATION_TREND_DEAD_BAND:
        return "up"
    if delta < -UTILIZATION_TREND_DEAD_BAND:
        return "down"
    return "flat"


def summarize_debt_portfolio(projections: Sequence[DebtCycleProjection]) -> DebtPortfolioSummary:
    """Sum per-account projections and derive portfolio utilization and weighted APR"""

    def total(attribute: str) -> float:
        return round_currency(sum(getattr(p, attribute) for p in projections))

    limit_total = total("credit_limit")
    current_total = total("display_current_balance")
    post_payment_total = total("post_payment_balance")
    weighted_apr_numerator = sum(p.display_current_balance * p.apr for p in projections)
    utilization = safe_ratio(current_total, limit_total)
    post_payment_utilization = safe_ratio(post_payment_total, limit_total)

    return DebtPortfolioSummary(
        account_count=len(projections),
        limit_total=limit_total,
        current_balance_total=current_total,
        available_credit_total=total("display_available_credit"),
        statement_balance_total=total("statement_balance"),
        new_statement_balance_total=total("new_statement_balance"),
        pending_total=total("pending_amount"),
        minimum_due_total=total("minimum_due"),
        planned_payment_total=total("planned_payment"),
        post_payment_balance_total=post_payment_total,
        next_month_interest_total=total("next_month_interest"),
        interest_12_months_total=total("interest_12_months"),
        utilization=utilization,
        post_payment_utilization=post_payment_utilization,
        weighted_apr=safe_ratio(weighted_apr_numerator, current_total),
        utilization_trend=utilization_trend(post_payment_utilization, utilization),
    )


def _payoff_candidates(projections: Iterable[DebtCycleProjection]) -> List[PayoffCandidate]:
    candidates = []
    for projection in projections:
        balance = round_currency(projection.display_current_balance)
        if balance <= 0:
            continue
        candidates.append(
            PayoffCandidate(
                account_id=projection.account_id,
                name=projection.name,
                balance=balance,
                apr=projection.apr,
                monthly_interest=projection.interest_amount,
            )
        )
    return candidates


def rank_payoff_targets(
    projections: Iterable[DebtCycleProjection],
    strategy: str = "avalanche",
) -> List[PayoffCandidate]:
    """
    Rank accounts with a balance for extra payments.

    avalanche: APR desc, monthly interest desc, balance desc, name asc
    snowball:  balance asc, APR desc, monthly interest desc, name asc
    """
    candidates = _payoff_candidates(projections)
    if strategy == "snowball":
        key = lambda c: (c.balance, -c.apr, -c.monthly_interest, c.name.casefold())
    elif strategy == "avalanche":
        key = lambda c: (-c.apr, -c.monthly_interest, -c.balance, c.name.casefold())
    else:
        raise ValueError(f"Unknown payoff strategy: {strategy}")
    return sorted(candidates, key=key)


def select_payoff_targets(
    projections: Iterable[DebtCycleProjection],
    strategy: str = "avalanche",
) -> Tuple[Optional[PayoffCandidate], Optional[PayoffCandidate]]:
    """Top target and backup (rank 2) for the strategy"""
    ranking = rank_payoff_targets(projections, strategy)
    target = ranking[0] if ranking else None
    backup = ranking[1] if len(ranking) > 1 else None
    return target, backup


# ---------------------------------------------------------------------------
# Risk alerts
# ---------------------------------------------------------------------------


def _due_countdown(days: int) -> str:
    if days <= 0:
        return "Due today"
    return f"Due in {days} day{'' if days == 1 else 's'}"


def utilization_severity(utilization: float) -> Optional[str]:
    if utilization >= 0.9:
        return "critical"
    if utilization >= 0.5:
        return "warning"
    if utilization >= 0.3:
        return "watch"
    return None


def build_card_risk_alerts(projections: Iterable[DebtCycleProjection]) -> List[RiskAlert]:
    """Due-date, utilization and payment-below-interest alerts, most severe first"""
    alerts: List[RiskAlert] = []

    for projection in projections:
        if projection.display_current_balance > 0 and projection.due_in_days <= 14:
            if projection.due_in_days <= 1:
                severity = "critical"
            elif projection.due_in_days <= 3:
                severity = "warning"
            else:
                severity = "watch"
            alerts.append(
                RiskAlert(
                    alert_id=f"due-{projection.account_id}",
                    severity=severity,
                    title=f"{projection.name}: {_due_countdown(projection.due_in_days)}",
                    detail=(
                        f"Due day {projection.due_day} · planned payment "
                        f"{projection.planned_payment:.2f}"
                    ),
                )
            )

        severity = utilization_severity(projection.display_utilization)
        if severity:
            alerts.append(
                RiskAlert(
                    alert_id=f"util-{projection.account_id}",
                    severity=severity,
                    title=f"{projection.name}: utilization {projection.display_utilization * 100:.1f}%",
                    detail=(
                        "Threshold hit (>30/50/90) · available credit "
                        f"{projection.display_available_credit:.2f}"
                    ),
                )
            )

        if projection.planned_payment + 0.01 < projection.interest_amount:
            alerts.append(
                RiskAlert(
                    alert_id=f"interest-{projection.account_id}",
                    severity="critical",
                    title=f"{projection.name}: payment below interest",
                    detail=(
                        f"Planned {projection.planned_payment:.2f} is below interest "
                        f"{projection.interest_amount:.2f}."
                    ),
                )
            )

    return sorted(alerts, key=lambda a: (-SEVERITY_RANK[a.severity], a.title.casefold()))
