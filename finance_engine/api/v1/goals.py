"""POST /v1/goals/forecast - goal pace, health, prediction and funding priorities"""

import logging
import time
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request

from finance_engine.api.dependencies import get_request_id, get_today
from finance_engine.api.v1.schemas import GoalForecastItem, GoalForecastRequest, GoalForecastResponse
from finance_engine.domain.exceptions import ValidationError
from finance_engine.domain.goals import (
    evaluate_goal,
    goal_status,
    recommend_goal_priorities,
    summarize_goal_portfolio,
)
from finance_engine.domain.validation import validate_goal_funding_sources
from finance_engine.infrastructure.observability.logging import log_projection
from finance_engine.infrastructure.observability.metrics import record_operation

router = APIRouter()


@router.post("/goals/forecast", response_model=GoalForecastResponse)
def forecast_goals(request_body: GoalForecastRequest, request: Request, today: date = Depends(get_today)):
    """
    Evaluate each goal, roll up the portfolio and rank where extra money helps most.

    Funding sources are validated first; a bad source row rejects the
    whole request.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    reference_day = request_body.today or today

    goals = [goal.to_domain() for goal in request_body.goals]
    try:
        for goal in goals:
            validate_goal_funding_sources(goal.funding_sources)
    except ValidationError as e:
        logging.warning(f"Goal funding sources rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    metrics_list = [evaluate_goal(goal, reference_day) for goal in goals]
    items = [
        GoalForecastItem(
            goal_id=m.goal.goal_id,
            title=m.goal.title,
            status=goal_status(m),
            progress_percent=m.progress_percent,
            remaining=m.remaining,
            days_left=m.days_left,
            planned_monthly_contribution=m.planned_monthly_contribution,
            required_monthly_contribution=m.required_monthly_contribution,
            expected_progress_percent_now=m.expected_progress_percent_now,
            pace_coverage_ratio=m.pace_coverage_ratio,
            behind_percent=m.behind_percent,
            contribution_consistency_score=m.contribution_consistency_score,
            goal_health_score=m.goal_health_score,
            predicted_months_to_complete=m.predicted_months_to_complete,
            predicted_completion_date=m.predicted_completion_date,
            predicted_days_delta_to_target=m.predicted_days_delta_to_target,
            at_risk_reasons=list(m.at_risk_reasons),
            milestones=list(m.milestones),
        )
        for m in metrics_list
    ]

    record_operation("goal_forecast")
    log_projection(request_id, "goal_forecast", len(goals), (time.time() - start_time) * 1000)

    return GoalForecastResponse(
        goals=items,
        portfolio=summarize_goal_portfolio(metrics_list),
        priorities=recommend_goal_priorities(metrics_list),
    )
