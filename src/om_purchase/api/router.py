"""om_purchase REST API: one endpoint, requires JWT authentication.

The buyer is always the authenticated caller; the body carries the buyer's
last-known view of the target plus a client-generated idempotency key.
Retrying with the same key after a timeout or a 503 is always safe.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_common.database import get_db_session
from src.om_common.response import ApiResponse, success_response
from src.om_gateway.auth.dependencies import get_current_account_id
from src.om_purchase.application.engine import PurchaseEngine
from src.om_purchase.application.schemas import PurchaseRequest, PurchaseResponse
from src.om_purchase.domain.models import PurchaseCommand

router = APIRouter(prefix="/purchases", tags=["purchase"])

_engine = PurchaseEngine()


def get_purchase_engine() -> PurchaseEngine:
    return _engine


@router.post("", status_code=201)
async def purchase(
    body: PurchaseRequest,
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[PurchaseEngine, Depends(get_purchase_engine)],
    request: Request,
) -> ApiResponse:
    receipt = await engine.purchase(
        db,
        PurchaseCommand(
            buyer_id=account_id,
            target_id=body.target_id,
            expected_price=body.expected_price,
            expected_owner_id=body.expected_owner_id,
            expected_version=body.expected_version,
            idempotency_key=body.idempotency_key,
        ),
    )
    data = PurchaseResponse.from_receipt(receipt)
    return success_response(data.model_dump(), request=request)
