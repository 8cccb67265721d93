"""Profile endpoints.

PUT /profile            — partial update of the caller's own profile (auth)
GET /users/{user_id}    — public profile of any active user
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, request_id_of, success_response
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.schemas import PublicProfile, UpdateProfileRequest, UserInfo
from src.mp_gateway.user.service import UserService

router = APIRouter(tags=["users"])
_service = UserService()


@router.put("/profile", response_model=ApiResponse, summary="Update own profile")
async def update_profile(
    request: Request,
    body: UpdateProfileRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await _service.update_profile(
        db, str(current_user.id), body.to_patch(), body.current_password
    )
    info = UserInfo.from_model(user)
    return success_response(info.model_dump(), "Profile updated", request_id_of(request))


@router.get("/users/{user_id}", response_model=ApiResponse, summary="Public user profile")
async def get_user(
    user_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await _service.get_public_profile(db, user_id)
    profile = PublicProfile.from_model(user)
    return success_response(profile.model_dump(), request_id=request_id_of(request))
