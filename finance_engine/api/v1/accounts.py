"""POST /v1/accounts/transfers/validate - check a transfer between two accounts"""

import logging
from fastapi import APIRouter, HTTPException, Request

from finance_engine.api.dependencies import get_request_id
from finance_engine.api.v1.schemas import TransferRequest, TransferResponse
from finance_engine.domain.exceptions import ValidationError
from finance_engine.domain.validation import validate_account_transfer
from finance_engine.infrastructure.observability.metrics import record_operation

router = APIRouter()


@router.post("/accounts/transfers/validate", response_model=TransferResponse)
def validate_transfer(request_body: TransferRequest, request: Request):
    try:
        amount = validate_account_transfer(
            request_body.source_account_id,
            request_body.destination_account_id,
            request_body.amount,
        )
    except ValidationError as e:
        logging.warning(f"Transfer rejected: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    record_operation("transfer_validation")
    return TransferResponse(
        source_account_id=request_body.source_account_id,
        destination_account_id=request_body.destination_account_id,
        amount=amount,
    )
