"""om_notification REST API: both endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_common.database import get_db_session
from src.om_common.response import ApiResponse, success_response
from src.om_gateway.auth.dependencies import get_current_account_id
from src.om_notification.application.service import NotificationApplicationService

router = APIRouter(prefix="/notifications", tags=["notification"])

_service = NotificationApplicationService()


def get_notification_service() -> NotificationApplicationService:
    return _service


@router.get("")
async def list_notifications(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[NotificationApplicationService, Depends(get_notification_service)],
    request: Request,
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await service.list_notifications(db, account_id, unread_only, limit)
    return success_response(data.model_dump(), request=request)


@router.post("/read")
async def mark_all_read(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[NotificationApplicationService, Depends(get_notification_service)],
    request: Request,
) -> ApiResponse:
    data = await service.mark_all_read(db, account_id)
    return success_response(data.model_dump(), request=request)
