"""POST /v1/cadence/monthly - normalize recurring amounts to monthly equivalents"""

from fastapi import APIRouter

from finance_engine.api.v1.schemas import CadenceRequest, CadenceResponse
from finance_engine.domain.cadence import to_monthly
from finance_engine.infrastructure.observability.metrics import record_operation
from finance_engine.utils.money import round_currency

router = APIRouter()


@router.post("/cadence/monthly", response_model=CadenceResponse)
def normalize_to_monthly(request_body: CadenceRequest):
    """Monthly equivalent per item plus the rounded total"""
    amounts = [to_monthly(item.to_domain()) for item in request_body.items]
    record_operation("cadence_monthly")
    return CadenceResponse(
        monthly_amounts=[round_currency(amount) for amount in amounts],
        monthly_total=round_currency(sum(amounts)),
    )
