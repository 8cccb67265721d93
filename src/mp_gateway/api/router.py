"""Auth API router: register, login, refresh, logout, me.

All endpoints return ApiResponse carrying the RequestLogMiddleware request id.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, request_id_of, success_response
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.auth.jwt_handler import ACCESS_TTL_SECONDS
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserInfo,
)
from src.mp_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user = await _service.register(
        body.name, body.email, body.password, db, phone=body.phone, address=body.address
    )
    info = UserInfo.from_model(user)
    return success_response(info.model_dump(), "User registered", request_id_of(request))


@router.post("/login", response_model=ApiResponse, summary="User login")
async def login(
    request: Request,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.email, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=ACCESS_TTL_SECONDS,
        user=UserInfo.from_model(user),
    )
    return success_response(data.model_dump(), "Login successful", request_id_of(request))


@router.post("/refresh", response_model=ApiResponse, summary="Rotate refresh token")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    access_token, new_refresh_token = await _service.refresh(body.refresh_token)

    data = RefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh_token,
        expires_in=ACCESS_TTL_SECONDS,
    )
    return success_response(data.model_dump(), "Token refreshed", request_id_of(request))


@router.post("/logout", response_model=ApiResponse, summary="Revoke refresh token")
async def logout(request: Request, body: LogoutRequest) -> ApiResponse:
    await _service.logout(body.refresh_token)
    return success_response(None, "Logged out", request_id_of(request))


@router.get("/me", response_model=ApiResponse, summary="Current user profile")
async def me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    info = UserInfo.from_model(current_user)
    return success_response(info.model_dump(), request_id=request_id_of(request))
