"""POST /v1/purchases/* - duplicate detection/resolution, split validation, recurring detection"""

import logging
import time
from fastapi import APIRouter, HTTPException, Request

from finance_engine.api.dependencies import get_request_id
from finance_engine.api.v1.schemas import (
    DuplicateResolveRequest,
    DuplicateResolveResponse,
    DuplicateScanRequest,
    DuplicateScanResponse,
    RecurringRequest,
    RecurringResponse,
    ResolutionStateSchema,
    SplitValidationRequest,
    SplitValidationResponse,
)
from finance_engine.domain.duplicates import (
    detect_recurring_candidates,
    find_duplicate_matches,
    pair_key,
    resolve_duplicate,
)
from finance_engine.domain.exceptions import PurchaseNotFoundError, ValidationError
from finance_engine.domain.models import DuplicateKind, DuplicateResolutions
from finance_engine.domain.splits import build_template_split_amounts, validate_purchase_splits
from finance_engine.infrastructure.observability.logging import log_duplicate_resolution, log_projection
from finance_engine.infrastructure.observability.metrics import (
    record_duplicate_matches,
    record_duplicate_resolution,
    record_operation,
)
from finance_engine.utils.money import round_currency

router = APIRouter()


def resolutions_from_schema(state: ResolutionStateSchema) -> DuplicateResolutions:
    return DuplicateResolutions(
        resolved_pairs=frozenset(pair_key(*pair) for pair in state.resolved_pairs if len(pair) == 2),
        intentional_pairs=frozenset(pair_key(*pair) for pair in state.intentional_pairs if len(pair) == 2),
        archived=frozenset(state.archived.items()),
    )


def resolutions_to_schema(resolutions: DuplicateResolutions) -> ResolutionStateSchema:
    return ResolutionStateSchema(
        resolved_pairs=sorted(sorted(pair) for pair in resolutions.resolved_pairs),
        intentional_pairs=sorted(sorted(pair) for pair in resolutions.intentional_pairs),
        archived=dict(resolutions.archived),
    )


@router.post("/purchases/duplicates", response_model=DuplicateScanResponse)
def scan_duplicates(request_body: DuplicateScanRequest, request: Request):
    """Duplicates and overlaps across all purchase pairs, skipping resolved ones"""
    start_time = time.time()
    purchases = [p.to_domain() for p in request_body.purchases]

    matches = find_duplicate_matches(purchases, resolutions_from_schema(request_body.resolutions))

    record_operation("duplicate_scan")
    record_duplicate_matches(m.kind.value for m in matches)
    log_projection(get_request_id(request), "duplicate_scan", len(purchases), (time.time() - start_time) * 1000)

    return DuplicateScanResponse(
        matches=matches,
        duplicate_count=sum(1 for m in matches if m.kind is DuplicateKind.DUPLICATE),
        overlap_count=sum(1 for m in matches if m.kind is DuplicateKind.OVERLAP),
    )


@router.post("/purchases/duplicates/resolve", response_model=DuplicateResolveResponse)
def resolve_duplicate_pair(request_body: DuplicateResolveRequest, request: Request):
    """
    Merge, archive or mark a pair intentional.

    Re-submitting an already resolved pair returns applied=false and the
    inputs unchanged.
    """
    request_id = get_request_id(request)
    purchases = [p.to_domain() for p in request_body.purchases]

    try:
        outcome = resolve_duplicate(
            purchases,
            resolutions_from_schema(request_body.resolutions),
            request_body.primary_id,
            request_body.secondary_id,
            request_body.action,
        )
    except PurchaseNotFoundError as e:
        logging.warning(f"Duplicate resolution rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    action = request_body.action.value
    record_duplicate_resolution(action, outcome.applied)
    log_duplicate_resolution(request_id, action, request_body.primary_id, request_body.secondary_id, outcome.applied)

    return DuplicateResolveResponse(
        applied=outcome.applied,
        purchases=list(outcome.purchases),
        resolutions=resolutions_to_schema(outcome.resolutions),
    )


@router.post("/purchases/splits/validate", response_model=SplitValidationResponse)
def validate_splits(request_body: SplitValidationRequest, request: Request):
    """Validate explicit split lines, or expand percentage template lines first"""
    try:
        if request_body.template_lines:
            splits = build_template_split_amounts(
                request_body.purchase_amount,
                [line.to_domain() for line in request_body.template_lines],
            )
        else:
            splits = validate_purchase_splits(
                request_body.purchase_amount,
                [line.to_domain() for line in request_body.splits],
            )
    except ValidationError as e:
        logging.warning(f"Split validation failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    record_operation("split_validation")
    return SplitValidationResponse(splits=splits, total=round_currency(sum(s.amount for s in splits)))


@router.post("/purchases/recurring", response_model=RecurringResponse)
def find_recurring(request_body: RecurringRequest, request: Request):
    """Merchants bought from on a regular rhythm, with a suggested cadence"""
    start_time = time.time()
    candidates = detect_recurring_candidates([p.to_domain() for p in request_body.purchases])

    record_operation("recurring_detection")
    log_projection(
        get_request_id(request), "recurring_detection", len(request_body.purchases), (time.time() - start_time) * 1000
    )
    return RecurringResponse(candidates=candidates)
