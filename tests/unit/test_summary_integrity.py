"""Unit tests for the dashboard summary and its integrity checker"""

import pytest
from dataclasses import replace
from finance_engine.domain.integrity import count_check, numeric_check, run_integrity_checks
from finance_engine.domain.models import Account, FinanceRecords, Income
from finance_engine.domain.summary import (
    build_finance_summary,
    compute_runway_months,
    resolve_income_net_amount,
)


def test_summary_headline_figures(sample_records, today):
    """Test monthly figures for the sample household"""
    summary = build_finance_summary(sample_records, today)

    assert summary.month_key == "2024-05"
    assert summary.monthly_income == 3000.00
    assert summary.monthly_bills == 100.00
    assert summary.monthly_card_spend == 25.00
    assert summary.card_utilization_percent == 50.00
    assert summary.monthly_loan_base_payments == 100.00
    assert summary.total_loan_balance == 1200.00
    assert summary.monthly_commitments == 225.00
    assert summary.projected_monthly_net == 1575.00


def test_summary_purchase_buckets(sample_records, today):
    """Test current-month amounts by status and all-time counts"""
    summary = build_finance_summary(sample_records, today)

    assert summary.purchases_this_month == 50.00
    assert summary.pending_purchase_amount_this_month == 20.00
    assert summary.reconciled_purchase_amount_this_month == 0.0
    assert summary.pending_purchases == 1
    assert summary.posted_purchases == 2
    assert summary.reconciled_purchases == 1


def test_summary_balance_sheet_and_runway(sample_records, today):
    """Test assets, liabilities and runway"""
    summary = build_finance_summary(sample_records, today)

    assert summary.total_assets == 5000.00
    assert summary.total_liabilities == 1700.00
    assert summary.net_worth == 3300.00
    assert summary.goals_funded_percent == pytest.approx(25.0)
    assert summary.runway_available_pool == 13000.00
    assert summary.runway_monthly_pressure == 1975.00
    assert summary.runway_months == pytest.approx(13000 / 1975)


def test_runway_saturates_without_pressure():
    """Test zero pressure with money available"""
    assert compute_runway_months(1000, 0) == 99.0
    assert compute_runway_months(0, 0) == 0.0
    assert compute_runway_months(1000, 0, saturation=120) == 120


def test_empty_records(today):
    """Test an empty household yields zeros and no runway"""
    summary = build_finance_summary(FinanceRecords(), today)

    assert summary.monthly_income == 0.0
    assert summary.card_utilization_percent == 0.0
    assert summary.goals_funded_percent == 0.0
    assert summary.runway_months == 0.0


def test_income_breakdown_wins_over_amount():
    """Test gross less deductions replaces the plain amount"""
    income = Income(income_id="i", source="Job", amount=999, gross_amount=4000, tax_amount=600, pension_amount=200)
    assert resolve_income_net_amount(income) == 3200


def test_debt_account_is_liability(today):
    """Test debt accounts and overdrawn accounts count as liabilities"""
    records = FinanceRecords(
        accounts=(
            Account(account_id="a", name="Overdraft", balance=-150),
            Account(account_id="b", name="Store credit", account_type="debt", balance=400),
        )
    )
    summary = build_finance_summary(records, today)

    assert summary.total_liabilities == 550.00
    assert summary.total_assets == 0.0


def test_integrity_passes_for_built_summary(sample_records, today):
    """Test a freshly built summary passes every check"""
    report = run_integrity_checks(build_finance_summary(sample_records, today), sample_records, today)

    assert len(report.checks) == 26
    assert report.fail_count == 0
    assert report.warning_count == 0
    assert report.pass_count == 26
    assert report.checks[0].check_id == "income-monthly"
    assert report.checks[-1].check_id == "summary-runway-formula"


def test_integrity_flags_tampered_income(sample_records, today):
    """Test a wrong income is reported, not raised"""
    summary = build_finance_summary(sample_records, today)
    report = run_integrity_checks(replace(summary, monthly_income=summary.monthly_income + 10), sample_records, today)
    income_check = report.checks[0]

    assert income_check.status == "fail"
    assert income_check.delta == 10.00
    assert income_check.detail == "Mismatch (+10.00)"
    assert report.fail_count >= 1


def test_integrity_utilization_is_a_warning(sample_records, today):
    """Test utilization drift is a warning, not a failure"""
    summary = build_finance_summary(sample_records, today)
    report = run_integrity_checks(replace(summary, card_utilization_percent=55.0), sample_records, today)
    check = next(c for c in report.checks if c.check_id == "cards-util")

    assert check.status == "warning"
    assert report.warning_count == 1
    assert report.fail_count == 0


def test_check_helpers():
    """Test numeric tolerance and count mismatch detail"""
    assert numeric_check("x", "X", 10.005, 10.0).status == "pass"
    assert numeric_check("x", "X", 9.5, 10.0).detail == "Mismatch (-0.50)"
    assert count_check("c", "C", 3, 3).detail == "Counts match"
    assert count_check("c", "C", 4, 3).detail == "Count mismatch (+1)"
