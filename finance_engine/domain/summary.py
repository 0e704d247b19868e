"""Dashboard summary builder - headline figures derived from raw finance records"""

from dataclasses import dataclass
from datetime import date

from finance_engine.domain.cadence import to_monthly_amount
from finance_engine.domain.cards import estimate_card_monthly_payment
from finance_engine.domain.loans import estimate_loan_monthly_payment, total_loan_outstanding
from finance_engine.domain.models import Account, FinanceRecords, Income, ReconciliationStatus
from finance_engine.utils.date_utils import month_key
from finance_engine.utils.money import clamp, finite_or_zero, round_currency

RUNWAY_SATURATION_MONTHS = 99.0


@dataclass(frozen=True)
class FinanceSummary:
    month_key: str
    monthly_income: float
    monthly_bills: float
    monthly_card_spend: float
    card_limit_total: float
    card_used_total: float
    card_utilization_percent: float
    monthly_loan_base_payments: float
    monthly_loan_subscription_costs: float
    monthly_loan_payments: float
    total_loan_balance: float
    purchases_this_month: float
    pending_purchase_amount_this_month: float
    posted_purchase_amount_this_month: float
    reconciled_purchase_amount_this_month: float
    pending_purchases: int
    posted_purchases: int
    reconciled_purchases: int
    total_assets: float
    total_liabilities: float
    liquid_reserves: float
    net_worth: float
    goals_funded_percent: float
    monthly_commitments: float
    projected_monthly_net: float
    runway_available_pool: float
    runway_monthly_pressure: float
    runway_months: float


def resolve_income_net_amount(income: Income) -> float:
    """Net pay per income period: gross less deductions when a breakdown exists"""
    gross = finite_or_zero(income.gross_amount)
    deductions = (
        finite_or_zero(income.tax_amount)
        + finite_or_zero(income.national_insurance_amount)
        + finite_or_zero(income.pension_amount)
    )
    if gross > 0 or deductions > 0:
        return max(gross - deductions, 0)
    return max(finite_or_zero(income.amount), 0)


def account_debt(account: Account) -> float:
    balance = finite_or_zero(account.balance)
    if account.account_type == "debt":
        return abs(balance)
    return abs(balance) if balance < 0 else 0.0


def compute_runway_months(pool: float, pressure: float, saturation: float = RUNWAY_SATURATION_MONTHS) -> float:
    if pressure > 0:
        return pool / pressure
    return saturation if pool > 0 else 0.0


def build_finance_summary(
    records: FinanceRecords,
    today: date | None = None,
    runway_saturation: float = RUNWAY_SATURATION_MONTHS,
) -> FinanceSummary:
    """
    Build the dashboard summary for the month containing `today`.

    Args:
        records: Raw incomes, bills, cards, loans, purchases, accounts and goals
        today: Reference date (defaults to today)
        runway_saturation: Runway reported when there is no monthly pressure

    Returns:
        FinanceSummary with monetary fields rounded to cents
    """
    if today is None:
        today = date.today()
    current_month = month_key(today)

    monthly_income = sum(
        to_monthly_amount(resolve_income_net_amount(i), i.cadence, i.custom_interval, i.custom_unit)
        for i in records.incomes
    )
    monthly_bills = sum(
        to_monthly_amount(b.amount, b.cadence, b.custom_interval, b.custom_unit) for b in records.bills
    )

    card_spend = sum(estimate_card_monthly_payment(card) for card in records.cards)
    card_limit = sum(finite_or_zero(card.credit_limit) for card in records.cards)
    card_used = sum(finite_or_zero(card.used_limit) for card in records.cards)
    card_utilization = round_currency(card_used / card_limit * 100) if card_limit > 0 else 0.0

    loan_base = sum(estimate_loan_monthly_payment(loan) for loan in records.loans)
    loan_subscription = sum(finite_or_zero(loan.subscription_cost) for loan in records.loans)
    loan_balance = sum(total_loan_outstanding(loan) for loan in records.loans)

    pending_amount = posted_amount = reconciled_amount = 0.0
    for purchase in records.purchases:
        if purchase.purchase_date is None or month_key(purchase.purchase_date) != current_month:
            continue
        amount = finite_or_zero(purchase.amount)
        status = purchase.reconciliation_status or ReconciliationStatus.POSTED
        if status == ReconciliationStatus.PENDING:
            pending_amount += amount
        elif status == ReconciliationStatus.RECONCILED:
            reconciled_amount += amount
        else:
            posted_amount += amount

    pending_count = sum(1 for p in records.purchases if p.reconciliation_status == ReconciliationStatus.PENDING)
    reconciled_count = sum(1 for p in records.purchases if p.reconciliation_status == ReconciliationStatus.RECONCILED)

    assets = sum(max(finite_or_zero(a.balance), 0) for a in records.accounts if a.account_type != "debt")
    account_debts = sum(account_debt(a) for a in records.accounts)
    liabilities = account_debts + card_used + loan_balance
    liquid = sum(max(finite_or_zero(a.balance), 0) for a in records.accounts if a.liquid)

    if records.goals:
        goals_funded = sum(
            clamp(finite_or_zero(g.current_amount) / max(finite_or_zero(g.target_amount), 1) * 100, 0, 100)
            for g in records.goals
        ) / len(records.goals)
    else:
        goals_funded = 0.0

    # Formula fields are built from the rounded headline figures
    monthly_income = round_currency(monthly_income)
    monthly_bills = round_currency(monthly_bills)
    card_spend = round_currency(card_spend)
    loan_base = round_currency(loan_base)
    loan_subscription = round_currency(loan_subscription)
    loan_balance = round_currency(loan_balance)
    liquid = round_currency(liquid)
    assets = round_currency(assets)
    liabilities = round_currency(liabilities)
    purchases_this_month = round_currency(posted_amount + reconciled_amount)
    commitments = round_currency(monthly_bills + card_spend + loan_base + loan_subscription)
    projected_net = monthly_income - commitments - loan_balance
    pool = max(liquid + assets + monthly_income, 0)
    pressure = commitments + liabilities + purchases_this_month

    return FinanceSummary(
        month_key=current_month,
        monthly_income=round_currency(monthly_income),
        monthly_bills=round_currency(monthly_bills),
        monthly_card_spend=round_currency(card_spend),
        card_limit_total=round_currency(card_limit),
        card_used_total=round_currency(card_used),
        card_utilization_percent=card_utilization,
        monthly_loan_base_payments=round_currency(loan_base),
        monthly_loan_subscription_costs=round_currency(loan_subscription),
        monthly_loan_payments=round_currency(loan_base + loan_subscription),
        total_loan_balance=round_currency(loan_balance),
        purchases_this_month=round_currency(purchases_this_month),
        pending_purchase_amount_this_month=round_currency(pending_amount),
        posted_purchase_amount_this_month=round_currency(posted_amount),
        reconciled_purchase_amount_this_month=round_currency(reconciled_amount),
        pending_purchases=pending_count,
        posted_purchases=len(records.purchases) - pending_count,
        reconciled_purchases=reconciled_count,
        total_assets=round_currency(assets),
        total_liabilities=round_currency(liabilities),
        liquid_reserves=round_currency(liquid),
        net_worth=round_currency(assets - liabilities),
        goals_funded_percent=goals_funded,
        monthly_commitments=round_currency(commitments),
        projected_monthly_net=round_currency(projected_net),
        runway_available_pool=round_currency(pool),
        runway_monthly_pressure=round_currency(pressure),
        runway_months=compute_runway_months(pool, pressure, runway_saturation),
    )
