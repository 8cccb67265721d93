"""mp_transaction REST endpoints. Every route requires a bearer token.

POST   /transactions         — purchase a listing
GET    /transactions         — caller's transactions (role=buyer|seller|all)
GET    /transactions/{id}    — detail, buyer or seller only
PUT    /transactions/{id}    — complete or cancel, seller only
DELETE /transactions/{id}    — remove, buyer or seller
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import TransactionRole
from src.mp_common.response import ApiResponse, request_id_of, success_response
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.user.db_models import UserModel
from src.mp_transaction.application.schemas import PurchaseRequest, UpdateStatusRequest
from src.mp_transaction.application.service import TransactionApplicationService

router = APIRouter(prefix="/transactions", tags=["transactions"])

_service = TransactionApplicationService()


@router.post("", status_code=201)
async def purchase(
    body: PurchaseRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.purchase(db, str(current_user.id), body)
    return success_response(result.model_dump(), "Purchase recorded", request_id_of(request))


@router.get("")
async def list_transactions(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    role: TransactionRole = Query(TransactionRole.ALL),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_transactions(db, str(current_user.id), role, cursor, limit)
    return success_response(result.model_dump(), request_id=request_id_of(request))


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_transaction(db, transaction_id, str(current_user.id))
    return success_response(result.model_dump(), request_id=request_id_of(request))


@router.put("/{transaction_id}")
async def update_status(
    transaction_id: str,
    body: UpdateStatusRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_status(db, transaction_id, str(current_user.id), body.status)
    return success_response(
        result.model_dump(), f"Transaction {result.status}", request_id_of(request)
    )


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_transaction(db, transaction_id, str(current_user.id))
    return success_response({"id": transaction_id}, "Transaction deleted", request_id_of(request))
