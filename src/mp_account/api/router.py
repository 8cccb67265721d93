"""mp_account REST endpoints.

DELETE /account — purge the caller's account after re-checking the password
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.application.schemas import PurgeRequest
from src.mp_account.application.service import AccountPurgeService
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, request_id_of, success_response
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountPurgeService()


@router.delete("")
async def purge_account(
    request: Request,
    body: Annotated[PurgeRequest, Body()],
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.purge(db, str(current_user.id), body.password)
    return success_response(result.model_dump(), "Account deleted", request_id_of(request))
