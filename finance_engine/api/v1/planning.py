"""POST /v1/planning/simulate - plan versions, what-if windows and reallocation waterfall"""

import logging
import time
from dataclasses import replace
from fastapi import APIRouter, HTTPException, Request

from finance_engine.api.dependencies import get_request_id
from finance_engine.api.v1.schemas import (
    AllocationPlanSchema,
    PlanningRequest,
    PlanningResponse,
    PlanVersionSchema,
    ScenarioSchema,
    WorkspaceSchema,
)
from finance_engine.domain.allocation import build_auto_allocation_plan
from finance_engine.domain.exceptions import ValidationError
from finance_engine.domain.models import PlanTriple
from finance_engine.domain.planning import (
    VERSION_DESCRIPTIONS,
    VERSION_LABELS,
    BudgetRow,
    bill_share_of_commitments,
    build_planning_workspace,
    default_plan_versions,
    normalize_what_if,
    run_what_if,
    select_plan_version,
)
from finance_engine.domain.validation import validate_allocation_rules
from finance_engine.infrastructure.observability.logging import log_projection
from finance_engine.infrastructure.observability.metrics import record_operation, record_waterfall

router = APIRouter()


@router.post("/planning/simulate", response_model=PlanningResponse)
def simulate_plan(request_body: PlanningRequest, request: Request):
    """
    Run a planning month through the selected version and a what-if scenario.

    Flow:
    1. Build base/conservative/aggressive versions and select one
    2. Apply manual overrides to the selected version
    3. Validate allocation rules and build the allocation plan
    4. Project 30/90/365 day windows under the what-if
    5. Build the reallocation waterfall for any forecast gap
    """
    start_time = time.time()
    request_id = get_request_id(request)

    baseline = PlanTriple(**request_body.baseline.model_dump())
    try:
        versions = select_plan_version(
            default_plan_versions(baseline, request_body.month_key),
            request_body.version,
        )
        if request_body.overrides is not None:
            manual = PlanTriple(**request_body.overrides.model_dump())
            versions = [replace(v, plan=manual) if v.selected else v for v in versions]
        rules = validate_allocation_rules([rule.to_domain() for rule in request_body.allocation_rules])
    except ValidationError as e:
        logging.warning(f"Planning input rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    workspace = build_planning_workspace(baseline, versions)
    allocation = build_auto_allocation_plan(workspace.planned.expected_income, rules)
    what_if = normalize_what_if(**request_body.what_if.model_dump())
    scenario = run_what_if(
        workspace,
        what_if,
        liquid_reserves=request_body.liquid_reserves,
        bill_share=bill_share_of_commitments(request_body.monthly_bills, baseline.fixed_commitments),
        budget_rows=[BudgetRow(**row.model_dump()) for row in request_body.budget_rows],
        allocation_plan=allocation,
    )

    record_operation("planning_simulation")
    record_waterfall(s.suggestion_id for s in scenario.suggestions)
    log_projection(request_id, "planning_simulation", len(scenario.windows), (time.time() - start_time) * 1000)

    return PlanningResponse(
        versions=[
            PlanVersionSchema(
                version=v.version,
                label=VERSION_LABELS[v.version],
                description=VERSION_DESCRIPTIONS[v.version],
                expected_income=v.plan.expected_income,
                fixed_commitments=v.plan.fixed_commitments,
                variable_spending_cap=v.plan.variable_spending_cap,
                monthly_net=v.plan.monthly_net,
                selected=v.selected,
            )
            for v in versions
        ],
        workspace=WorkspaceSchema(
            month_key=workspace.month_key,
            selected_version=workspace.selected_version,
            baseline_expected_income=workspace.baseline.expected_income,
            baseline_fixed_commitments=workspace.baseline.fixed_commitments,
            baseline_variable_spending_cap=workspace.baseline.variable_spending_cap,
            baseline_monthly_net=workspace.baseline_monthly_net,
            planned_expected_income=workspace.planned.expected_income,
            planned_fixed_commitments=workspace.planned.fixed_commitments,
            planned_variable_spending_cap=workspace.planned.variable_spending_cap,
            planned_monthly_net=workspace.planned_monthly_net,
            delta_expected_income=workspace.delta_expected_income,
            delta_fixed_commitments=workspace.delta_fixed_commitments,
            delta_variable_spending_cap=workspace.delta_variable_spending_cap,
            delta_monthly_net=workspace.delta_monthly_net,
        ),
        allocation=AllocationPlanSchema.model_validate(allocation, from_attributes=True),
        scenario=ScenarioSchema.model_validate(scenario, from_attributes=True),
        windows=scenario.windows,
        suggestions=scenario.suggestions,
    )
