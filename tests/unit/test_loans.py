"""Unit tests for loan amortization, strategy, what-if and refinance"""

import pytest
from datetime import date
from finance_engine.domain.loans import (
    LoanOverrides,
    LoanWhatIf,
    RefinanceOffer,
    amortized_payment,
    analyze_loan_refinance,
    build_loan_portfolio,
    build_loan_projection,
    build_loan_strategy,
    estimate_loan_monthly_payment,
    resolve_subscription_outstanding,
    run_loan_what_if,
    total_loan_outstanding,
)
from finance_engine.domain.models import Cadence, Loan, LoanPaymentEvent


def test_zero_interest_loan_pays_off_in_twelve_months(today):
    """Test 1200 at 0% with 100 a month clears in month 12"""
    loan = Loan(loan_id="l1", name="Interest free", balance=1200, minimum_payment=100)
    projection = build_loan_projection(loan, today=today)

    assert projection.current_outstanding == 1200.00
    assert projection.projected_payoff_months == 12
    assert projection.projected_payoff_date == date(2025, 5, 1)
    assert projection.horizons[12].ending_outstanding == 0.0
    assert projection.horizons[12].total_payment == 1200.00
    assert projection.horizons[36].total_interest == 0.0
    assert len(projection.rows) == 36


def test_interest_paid_before_principal(today):
    """Test first month splits payment into interest then principal"""
    loan = Loan(loan_id="l1", name="Loan", balance=1000, apr=12, minimum_payment=100)
    first = build_loan_projection(loan, today=today).rows[0]

    assert first.interest_accrued == 10.00
    assert first.payment_to_interest == 10.00
    assert first.payment_to_principal == 90.00
    assert first.ending_principal == 910.00


def test_explicit_components_override_balance(today):
    """Test principal + accrued interest win over the plain balance"""
    loan = Loan(loan_id="l1", name="Loan", balance=9999, principal_balance=800, accrued_interest=50)
    projection = build_loan_projection(loan, today=today)

    assert projection.current_principal == 800.00
    assert projection.current_interest == 50.00
    assert projection.current_loan_balance == 850.00


def test_payment_below_interest_never_pays_off(today):
    """Test a payment smaller than interest leaves payoff unknown"""
    loan = Loan(loan_id="l1", name="Loan", balance=10000, apr=24, minimum_payment=50)
    projection = build_loan_projection(loan, today=today)

    assert projection.projected_payoff_months is None
    assert projection.projected_payoff_date is None
    assert projection.horizons[12].ending_outstanding > 10000


def test_subscription_installments(today):
    """Test bundled subscription runs down one installment a month"""
    loan = Loan(loan_id="l1", name="Phone", balance=0, subscription_cost=20, subscription_payment_count=6)
    projection = build_loan_projection(loan, today=today)

    assert projection.current_subscription_outstanding == 120.00
    assert projection.subscription_payments_remaining == 6
    assert projection.rows[0].subscription_due == 20.00
    assert projection.horizons[12].total_subscription_paid == 120.00
    assert projection.projected_payoff_months == 6


def test_single_installment_outstanding_reads_as_fresh_subscription():
    """Test outstanding no larger than one installment without a count means 12 payments"""
    loan = Loan(loan_id="l1", name="Phone", subscription_cost=15, subscription_outstanding=15)
    assert resolve_subscription_outstanding(loan) == 180.00
    assert total_loan_outstanding(loan) == 180.00


def test_weekly_cadence_scales_monthly_payment():
    """Test weekly payments are scaled to a monthly estimate"""
    loan = Loan(loan_id="l1", name="Loan", balance=5000, minimum_payment=30, cadence=Cadence.WEEKLY)
    assert estimate_loan_monthly_payment(loan) == pytest.approx(130.00)


def test_payment_consistency_trend(today):
    """Test trailing 12 months of paid vs expected"""
    loan = Loan(loan_id="l1", name="Loan", balance=1200, minimum_payment=100)
    events = [
        LoanPaymentEvent(loan_id="l1", amount=100, occurred_on=date(2024, 4, 3)),
        LoanPaymentEvent(loan_id="l1", amount=100, occurred_on=date(2024, 5, 2)),
        LoanPaymentEvent(loan_id="other", amount=500, occurred_on=date(2024, 5, 2)),
    ]
    projection = build_loan_projection(loan, events, today=today)
    trend = projection.payment_consistency_trend

    assert len(trend) == 12
    assert trend[-1].month_key == "2024-05"
    assert trend[0].month_key == "2023-06"
    assert trend[-1].paid == 100.00
    assert trend[-1].ratio == pytest.approx(1.0)
    assert projection.payment_consistency_score == pytest.approx(round(200 / 12, 2))


def test_overrides_change_apr_and_due_day(today):
    """Test what-if overrides feed into the simulation"""
    loan = Loan(loan_id="l1", name="Loan", balance=1000, apr=10, minimum_payment=100, due_day=28)
    projection = build_loan_projection(loan, overrides=LoanOverrides(apr_delta=2, due_day_shift=5), today=today)

    assert projection.apr == 12.00
    assert projection.due_day == 31


def test_portfolio_totals(today):
    """Test portfolio adds up each loan"""
    loans = [
        Loan(loan_id="a", name="A", balance=1000, apr=12, minimum_payment=100),
        Loan(loan_id="b", name="B", balance=500, minimum_payment=50),
    ]
    portfolio = build_loan_portfolio(loans, today=today)

    assert portfolio.total_outstanding == 1500.00
    assert portfolio.projected_next_month_interest == 10.00
    assert len(portfolio.models) == 2


def test_strategy_prefers_avalanche_for_high_rate_debt(today):
    """Test avalanche targets the high APR loan and saves more interest"""
    loans = [
        Loan(loan_id="card", name="High rate", balance=1000, apr=20, minimum_payment=50),
        Loan(loan_id="car", name="Low rate", balance=500, apr=5, minimum_payment=50),
    ]
    result = build_loan_strategy(loans, [], monthly_overpay_budget=100, today=today)

    assert result.avalanche_target.loan_id == "card"
    assert result.snowball_target.loan_id == "car"
    assert result.recommended_mode == "avalanche"
    assert result.portfolio_annual_interest_with_avalanche < result.portfolio_annual_interest_baseline


def test_strategy_without_balances(today):
    """Test no outstanding loans gives no targets"""
    result = build_loan_strategy([Loan(loan_id="z", name="Paid", balance=0)], [], 100, today=today)

    assert result.recommended_target is None
    assert result.recommended_mode == "avalanche"


def test_what_if_extra_payment_reduces_interest(today):
    """Test extra payment lowers annual interest without touching current outstanding"""
    loans = [Loan(loan_id="a", name="A", balance=2000, apr=18, minimum_payment=60)]
    result = run_loan_what_if(loans, [], LoanWhatIf(loan_id="all", extra_payment_delta=50), today=today)

    assert result.annual_interest_delta < 0
    assert result.annual_payments_delta > 0
    assert result.total_outstanding_delta == 0.0


def test_what_if_targets_single_loan(today):
    """Test a named loan leaves the others untouched"""
    loans = [
        Loan(loan_id="a", name="A", balance=2000, apr=18, minimum_payment=60),
        Loan(loan_id="b", name="B", balance=2000, apr=18, minimum_payment=60),
    ]
    result = run_loan_what_if(loans, [], LoanWhatIf(loan_id="b", apr_delta=-18), today=today)

    assert result.scenario.models[0] == result.baseline.models[0]
    assert result.scenario.models[1].projected_annual_interest == 0.0


def test_amortized_payment():
    """Test level payment formula and the 0% case"""
    assert amortized_payment(1200, 0, 12) == pytest.approx(100.0)
    assert amortized_payment(10000, 12, 12) == pytest.approx(888.49, abs=0.01)


def test_refinance_with_fees_costs_more_at_same_rate(today):
    """Test refinancing a 0% loan only adds the fees"""
    loan = Loan(loan_id="l1", name="Loan", balance=1000, minimum_payment=100)
    projection = build_loan_projection(loan, today=today)
    result = analyze_loan_refinance(projection, RefinanceOffer(apr=0, fees=50, term_months=10))

    assert result.monthly_payment == 100.00
    assert result.total_refinance_cost == 1050.00
    assert result.total_current_cost == 1000.00
    assert result.total_cost_delta == 50.00
    assert result.break_even_month is None


def test_refinance_lower_rate_breaks_even(today):
    """Test a cheaper rate pays back its fee within the term"""
    loan = Loan(loan_id="l1", name="Loan", balance=5000, apr=25, minimum_payment=250)
    projection = build_loan_projection(loan, max_months=36, today=today)
    result = analyze_loan_refinance(projection, RefinanceOffer(apr=5, fees=25, term_months=24))

    assert result.total_cost_delta < 0
    assert result.total_refinance_interest > 0
    assert result.remaining_current_outstanding_at_term > 0
