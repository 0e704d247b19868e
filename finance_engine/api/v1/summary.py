"""POST /v1/summary - dashboard summary and integrity checking"""

import time
from dataclasses import asdict
from datetime import date
from fastapi import APIRouter, Depends, Request

from finance_engine.api.dependencies import get_request_id, get_today
from finance_engine.api.v1.schemas import (
    IntegrityRequest,
    IntegrityResponse,
    PlanTripleSchema,
    SummaryRequest,
    SummaryResponse,
    SummarySchema,
)
from finance_engine.config import settings
from finance_engine.domain.integrity import run_integrity_checks
from finance_engine.domain.planning import (
    baseline_from_summary,
    build_baseline_forecast_windows,
    estimate_monthly_spend,
)
from finance_engine.domain.summary import FinanceSummary, build_finance_summary
from finance_engine.infrastructure.observability.logging import log_integrity_report, log_projection
from finance_engine.infrastructure.observability.metrics import record_integrity_report, record_operation

router = APIRouter()


@router.post("/summary", response_model=SummaryResponse)
def build_summary(request_body: SummaryRequest, request: Request, today: date = Depends(get_today)):
    """Headline monthly figures plus the baseline 30/90/365 day cash forecast"""
    start_time = time.time()
    reference_day = request_body.today or today
    records = request_body.records.to_domain()

    summary = build_finance_summary(records, reference_day, settings.runway_saturation_months)
    windows = build_baseline_forecast_windows(
        summary.liquid_reserves,
        summary.monthly_income,
        summary.monthly_commitments,
        estimate_monthly_spend(records.purchases, reference_day),
    )
    baseline = baseline_from_summary(summary.monthly_income, summary.monthly_commitments, summary.purchases_this_month)

    record_operation("summary")
    log_projection(get_request_id(request), "summary", len(records.purchases), (time.time() - start_time) * 1000)
    return SummaryResponse(
        summary=SummarySchema(**asdict(summary)),
        forecast_windows=windows,
        plan_baseline=PlanTripleSchema(**asdict(baseline)),
    )


@router.post("/summary/integrity", response_model=IntegrityResponse)
def check_summary_integrity(request_body: IntegrityRequest, request: Request, today: date = Depends(get_today)):
    """
    Cross-check a summary against the raw records.

    Mismatches come back as failed or warning checks with a 200 status;
    only malformed input is rejected.
    """
    reference_day = request_body.today or today
    records = request_body.records.to_domain()

    if request_body.summary is not None:
        summary = FinanceSummary(**request_body.summary.model_dump())
    else:
        summary = build_finance_summary(records, reference_day, settings.runway_saturation_months)

    report = run_integrity_checks(
        summary,
        records,
        reference_day,
        tolerance=settings.integrity_tolerance,
        runway_saturation=settings.runway_saturation_months,
    )

    record_operation("integrity_check")
    record_integrity_report(report.pass_count, report.warning_count, report.fail_count)
    log_integrity_report(get_request_id(request), report.pass_count, report.warning_count, report.fail_count)

    return IntegrityResponse(
        checks=report.checks,
        pass_count=report.pass_count,
        warning_count=report.warning_count,
        fail_count=report.fail_count,
    )
