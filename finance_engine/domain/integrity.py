"""Summary integrity checker - recompute dashboard figures from raw records and compare"""

from datetime import date
from typing import List

from finance_engine.domain.cadence import to_monthly_amount
from finance_engine.domain.cards import estimate_card_monthly_payment
from finance_engine.domain.loans import estimate_loan_monthly_payment, total_loan_outstanding
from finance_engine.domain.models import FinanceRecords, IntegrityCheck, IntegrityReport, ReconciliationStatus
from finance_engine.domain.summary import (
    RUNWAY_SATURATION_MONTHS,
    FinanceSummary,
    account_debt,
    compute_runway_months,
    resolve_income_net_amount,
)
from finance_engine.utils.date_utils import month_key
from finance_engine.utils.money import clamp, finite_or_zero, round_currency

DEFAULT_TOLERANCE = 0.01
UTILIZATION_TOLERANCE = 0.1
GOALS_FUNDED_TOLERANCE = 0.2
RUNWAY_TOLERANCE = 0.05


def _format_delta(delta: float) -> str:
    sign = "+" if delta >= 0 else ""
    return f"{sign}{delta:.2f}"


def numeric_check(
    check_id: str,
    label: str,
    actual: float,
    expected: float,
    tolerance: float = DEFAULT_TOLERANCE,
    mismatch_status: str = "fail",
) -> IntegrityCheck:
    delta = finite_or_zero(actual) - finite_or_zero(expected)
    matched = abs(delta) <= tolerance
    return IntegrityCheck(
        check_id=check_id,
        label=label,
        status="pass" if matched else mismatch_status,
        actual=round_currency(actual),
        expected=round_currency(expected),
        delta=round_currency(delta),
        detail="Derived and dashboard summary match" if matched else f"Mismatch ({_format_delta(round_currency(delta))})",
    )


def count_check(check_id: str, label: str, actual: int, expected: int) -> IntegrityCheck:
    delta = actual - expected
    matched = delta == 0
    return IntegrityCheck(
        check_id=check_id,
        label=label,
        status="pass" if matched else "fail",
        actual=float(actual),
        expected=float(expected),
        delta=float(delta),
        detail="Counts match" if matched else f"Count mismatch ({'+' if delta > 0 else ''}{delta})",
    )


def run_integrity_checks(
    summary: FinanceSummary,
    records: FinanceRecords,
    today: date | None = None,
    tolerance: float = DEFAULT_TOLERANCE,
    runway_saturation: float = RUNWAY_SATURATION_MONTHS,
) -> IntegrityReport:
    """
    Cross-check a summary against figures recomputed from raw records.

    Record-level checks rebuild each value from the records; formula checks
    rebuild the derived figures from the summary's own fields. Mismatches
    are reported, never raised.

    Args:
        summary: Summary under test
        records: Raw records the summary claims to describe
        today: Reference date for the month filters (defaults to today)
        tolerance: Absolute tolerance for money checks
        runway_saturation: Runway expected when monthly pressure is zero

    Returns:
        IntegrityReport with checks in a stable order plus status counts
    """
    if today is None:
        today = date.today()
    current_month = month_key(today)

    income = sum(
        to_monthly_amount(resolve_income_net_amount(i), i.cadence, i.custom_interval, i.custom_unit)
        for i in records.incomes
    )
    bills = sum(to_monthly_amount(b.amount, b.cadence, b.custom_interval, b.custom_unit) for b in records.bills)

    card_payments = sum(estimate_card_monthly_payment(card) for card in records.cards)
    card_limit = sum(finite_or_zero(card.credit_limit) for card in records.cards)
    card_used = sum(finite_or_zero(card.used_limit) for card in records.cards)
    card_util = card_used / card_limit * 100 if card_limit > 0 else 0.0

    loan_base = sum(estimate_loan_monthly_payment(loan) for loan in records.loans)
    loan_subscription = sum(finite_or_zero(loan.subscription_cost) for loan in records.loans)
    loan_total = sum(total_loan_outstanding(loan) for loan in records.loans)

    month_purchases = [
        p for p in records.purchases if p.purchase_date is not None and month_key(p.purchase_date) == current_month
    ]

    def month_amount(*statuses: ReconciliationStatus) -> float:
        return sum(
            finite_or_zero(p.amount)
            for p in month_purchases
            if (p.reconciliation_status or ReconciliationStatus.POSTED) in statuses
        )

    pending_count = sum(1 for p in records.purchases if p.reconciliation_status == ReconciliationStatus.PENDING)
    reconciled_count = sum(1 for p in records.purchases if p.reconciliation_status == ReconciliationStatus.RECONCILED)

    assets = sum(max(finite_or_zero(a.balance), 0) for a in records.accounts if a.account_type != "debt")
    liabilities = sum(account_debt(a) for a in records.accounts) + card_used + loan_total
    liquid = sum(max(finite_or_zero(a.balance), 0) for a in records.accounts if a.liquid)

    goals_funded = 0.0
    if records.goals:
        goals_funded = sum(
            clamp(finite_or_zero(g.current_amount) / max(finite_or_zero(g.target_amount), 1) * 100, 0, 100)
            for g in records.goals
        ) / len(records.goals)

    commitments = (
        summary.monthly_bills
        + summary.monthly_card_spend
        + summary.monthly_loan_base_payments
        + summary.monthly_loan_subscription_costs
    )
    projected_net = summary.monthly_income - commitments - summary.total_loan_balance
    pool = max(summary.liquid_reserves + summary.total_assets + summary.monthly_income, 0)
    pressure = summary.monthly_commitments + summary.total_liabilities + summary.purchases_this_month
    runway = compute_runway_months(pool, pressure, runway_saturation)

    checks: List[IntegrityCheck] = [
        numeric_check("income-monthly", "Income -> monthly income", summary.monthly_income, income, tolerance),
        numeric_check("bills-monthly", "Bills -> monthly bills", summary.monthly_bills, bills, tolerance),
        numeric_check(
            "cards-payment", "Cards -> monthly card payments", summary.monthly_card_spend, card_payments, tolerance
        ),
        numeric_check("cards-limit", "Cards -> total credit limit", summary.card_limit_total, card_limit, tolerance),
        numeric_check("cards-used", "Cards -> used balance", summary.card_used_total, card_used, tolerance),
        numeric_check(
            "cards-util",
            "Cards -> utilization %",
            summary.card_utilization_percent,
            card_util,
            UTILIZATION_TOLERANCE,
            mismatch_status="warning",
        ),
        numeric_check(
            "loans-base", "Loans -> monthly base payments", summary.monthly_loan_base_payments, loan_base, tolerance
        ),
        numeric_check(
            "loans-subscription",
            "Loans -> monthly subscription costs",
            summary.monthly_loan_subscription_costs,
            loan_subscription,
            tolerance,
        ),
        numeric_check("loans-total", "Loans -> total outstanding", summary.total_loan_balance, loan_total, tolerance),
        numeric_check(
            "loans-combined",
            "Loans -> combined monthly payments",
            summary.monthly_loan_payments,
            loan_base + loan_subscription,
            tolerance,
        ),
        numeric_check(
            "purchases-month-posted",
            "Purchases -> month posted/reconciled total",
            summary.purchases_this_month,
            month_amount(ReconciliationStatus.POSTED, ReconciliationStatus.RECONCILED),
            tolerance,
        ),
        numeric_check(
            "purchases-month-pending-amount",
            "Purchases -> month pending amount",
            summary.pending_purchase_amount_this_month,
            month_amount(ReconciliationStatus.PENDING),
            tolerance,
        ),
        numeric_check(
            "purchases-month-posted-amount",
            "Purchases -> month posted amount",
            summary.posted_purchase_amount_this_month,
            month_amount(ReconciliationStatus.POSTED),
            tolerance,
        ),
        numeric_check(
            "purchases-month-reconciled-amount",
            "Purchases -> month reconciled amount",
            summary.reconciled_purchase_amount_this_month,
            month_amount(ReconciliationStatus.RECONCILED),
            tolerance,
        ),
        count_check("purchases-pending-count", "Purchases -> pending count", summary.pending_purchases, pending_count),
        count_check(
            "purchases-posted-count",
            "Purchases -> posted count",
            summary.posted_purchases,
            len(records.purchases) - pending_count,
        ),
        count_check(
            "purchases-reconciled-count",
            "Purchases -> reconciled count",
            summary.reconciled_purchases,
            reconciled_count,
        ),
        numeric_check("accounts-assets", "Accounts -> total assets", summary.total_assets, assets, tolerance),
        numeric_check(
            "accounts-liabilities",
            "Accounts/Cards/Loans -> total liabilities",
            summary.total_liabilities,
            liabilities,
            tolerance,
        ),
        numeric_check("accounts-liquid", "Accounts -> liquid reserves", summary.liquid_reserves, liquid, tolerance),
        numeric_check(
            "goals-funded",
            "Goals -> funded %",
            summary.goals_funded_percent,
            goals_funded,
            GOALS_FUNDED_TOLERANCE,
            mismatch_status="warning",
        ),
        numeric_check(
            "summary-commitments-formula",
            "Summary -> monthly commitments formula",
            summary.monthly_commitments,
            commitments,
            tolerance,
        ),
        numeric_check(
            "summary-projected-net-formula",
            "Summary -> projected monthly net formula",
            summary.projected_monthly_net,
            projected_net,
            tolerance,
        ),
        numeric_check(
            "summary-runway-pool-formula",
            "Summary -> runway available pool formula",
            summary.runway_available_pool,
            pool,
            tolerance,
        ),
        numeric_check(
            "summary-runway-pressure-formula",
            "Summary -> runway monthly pressure formula",
            summary.runway_monthly_pressure,
            pressure,
            tolerance,
        ),
        numeric_check(
            "summary-runway-formula",
            "Summary -> runway months formula",
            summary.runway_months,
            runway,
            RUNWAY_TOLERANCE,
        ),
    ]

    return IntegrityReport(
        checks=checks,
        pass_count=sum(1 for c in checks if c.status == "pass"),
        warning_count=sum(1 for c in checks if c.status == "warning"),
        fail_count=sum(1 for c in checks if c.status == "fail"),
    )
