"""POST /v1/debts/* - card cycle projection and loan portfolio analysis"""

import time
from fastapi import APIRouter, Depends, Request
from datetime import date

from finance_engine.api.dependencies import get_request_id, get_today
from finance_engine.api.v1.schemas import (
    CardProjectionRequest,
    CardProjectionResponse,
    LoanPortfolioResponse,
    LoanProjectionRequest,
    LoanRefinanceRequest,
    LoanRefinanceResponse,
    LoanStrategyRequest,
    LoanStrategyResponse,
    LoanWhatIfRequest,
    LoanWhatIfResponse,
)
from finance_engine.config import settings
from finance_engine.domain.cards import (
    build_card_risk_alerts,
    project_cards,
    rank_payoff_targets,
    select_payoff_targets,
    summarize_debt_portfolio,
)
from finance_engine.domain.loans import (
    LoanWhatIf,
    RefinanceOffer,
    analyze_loan_refinance,
    build_loan_portfolio,
    build_loan_projection,
    build_loan_strategy,
    run_loan_what_if,
)
from finance_engine.infrastructure.observability.logging import log_projection
from finance_engine.infrastructure.observability.metrics import record_operation

router = APIRouter()


def _elapsed_ms(start_time: float) -> float:
    return (time.time() - start_time) * 1000


@router.post("/debts/cards/projection", response_model=CardProjectionResponse)
def project_card_portfolio(request_body: CardProjectionRequest, request: Request, today: date = Depends(get_today)):
    """
    Project every card one statement cycle forward.

    Flow:
    1. Convert cards to debt accounts and project each cycle
    2. Roll projections up into portfolio totals
    3. Rank payoff targets for the requested strategy
    4. Derive due-date and utilization alerts
    """
    start_time = time.time()
    reference_day = request_body.today or today

    projections = project_cards(
        [card.to_domain() for card in request_body.cards], reference_day, settings.forecast_cycles
    )
    portfolio = summarize_debt_portfolio(projections)
    ranking = rank_payoff_targets(projections, request_body.strategy)
    target, backup = select_payoff_targets(projections, request_body.strategy)
    alerts = build_card_risk_alerts(projections)

    record_operation("card_projection")
    log_projection(get_request_id(request), "card_projection", len(projections), _elapsed_ms(start_time))

    return CardProjectionResponse(
        projections=projections,
        portfolio=portfolio,
        payoff_ranking=ranking,
        payoff_target=target,
        payoff_backup=backup,
        alerts=alerts,
    )


@router.post("/debts/loans/projection", response_model=LoanPortfolioResponse)
def project_loans(request_body: LoanProjectionRequest, request: Request, today: date = Depends(get_today)):
    """Month-by-month amortization and 12/24/36 month horizons per loan"""
    start_time = time.time()
    loans = [loan.to_domain() for loan in request_body.loans]
    events = [event.to_domain() for event in request_body.payment_events]

    portfolio = build_loan_portfolio(
        loans,
        events,
        max_months=request_body.max_months or settings.loan_projection_months,
        today=request_body.today or today,
    )

    record_operation("loan_projection")
    log_projection(get_request_id(request), "loan_projection", len(loans), _elapsed_ms(start_time))
    return LoanPortfolioResponse(portfolio=portfolio)


@router.post("/debts/loans/strategy", response_model=LoanStrategyResponse)
def recommend_loan_strategy(request_body: LoanStrategyRequest, request: Request, today: date = Depends(get_today)):
    """Avalanche vs snowball for a fixed monthly overpay budget"""
    start_time = time.time()
    loans = [loan.to_domain() for loan in request_body.loans]
    events = [event.to_domain() for event in request_body.payment_events]

    result = build_loan_strategy(loans, events, request_body.monthly_overpay_budget, today=request_body.today or today)

    record_operation("loan_strategy")
    log_projection(get_request_id(request), "loan_strategy", len(loans), _elapsed_ms(start_time))
    return LoanStrategyResponse.model_validate(result, from_attributes=True)


@router.post("/debts/loans/what-if", response_model=LoanWhatIfResponse)
def loan_what_if(request_body: LoanWhatIfRequest, request: Request, today: date = Depends(get_today)):
    """Portfolio deltas for payment, APR, subscription or due-day adjustments"""
    start_time = time.time()
    loans = [loan.to_domain() for loan in request_body.loans]
    events = [event.to_domain() for event in request_body.payment_events]
    scenario = LoanWhatIf(
        loan_id=request_body.loan_id,
        extra_payment_delta=request_body.extra_payment_delta,
        apr_delta=request_body.apr_delta,
        subscription_delta=request_body.subscription_delta,
        due_day_shift=request_body.due_day_shift,
    )

    result = run_loan_what_if(loans, events, scenario, today=request_body.today or today)

    record_operation("loan_what_if")
    log_projection(get_request_id(request), "loan_what_if", len(loans), _elapsed_ms(start_time))
    return LoanWhatIfResponse(result=result)


@router.post("/debts/loans/refinance", response_model=LoanRefinanceResponse)
def analyze_refinance(request_body: LoanRefinanceRequest, request: Request, today: date = Depends(get_today)):
    """Keep-vs-refinance cost comparison over the offer term"""
    start_time = time.time()
    projection = build_loan_projection(
        request_body.loan.to_domain(),
        max_months=max(request_body.offer_term_months, settings.loan_projection_months),
        today=request_body.today or today,
    )
    offer = RefinanceOffer(
        apr=request_body.offer_apr,
        fees=request_body.offer_fees,
        term_months=request_body.offer_term_months,
    )

    result = analyze_loan_refinance(projection, offer)

    record_operation("loan_refinance")
    log_projection(get_request_id(request), "loan_refinance", 1, _elapsed_ms(start_time))
    return LoanRefinanceResponse(
        loan_id=projection.loan_id,
        current_outstanding=projection.current_outstanding,
        result=result,
    )
