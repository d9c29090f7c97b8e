"""om_account REST API.

POST /accounts is open (it issues the access token); everything else
requires JWT authentication.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_account.application.schemas import OpenAccountRequest
from src.om_account.application.service import AccountApplicationService
from src.om_common.database import get_db_session
from src.om_common.response import ApiResponse, success_response
from src.om_gateway.auth.dependencies import get_current_account_id

router = APIRouter(prefix="/accounts", tags=["account"])

_service = AccountApplicationService()


def get_account_service() -> AccountApplicationService:
    return _service


@router.post("", status_code=201)
async def open_account(
    body: OpenAccountRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.open_account(db, body.username)
    return success_response(data.model_dump(), request=request)


@router.get("/me")
async def get_me(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_own_account(db, account_id)
    return success_response(data.model_dump(), request=request)


@router.delete("/me")
async def deactivate_me(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.deactivate(db, account_id)
    return success_response(data.model_dump(), request=request)


@router.get("/me/owned")
async def list_owned(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await service.list_owned(db, account_id, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/me/ledger")
async def list_ledger(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await service.list_ledger(db, account_id, cursor, limit, entry_type)
    return success_response(data.model_dump(), request=request)


@router.get("/{target_id}")
async def get_account(
    target_id: str,
    _caller: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_account(db, target_id)
    return success_response(data.model_dump(), request=request)
