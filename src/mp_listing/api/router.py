"""mp_listing REST endpoints.

POST   /listings               — create (auth)
GET    /listings               — public browse/search with cursor pagination
GET    /listings/mine          — caller's own listings, any status by default (auth)
GET    /listings/{listing_id}  — public detail, personalised when a token is sent
PUT    /listings/{listing_id}  — partial update (owner only)
DELETE /listings/{listing_id}  — delete (owner only)
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import ListingSortField, SortOrder
from src.mp_common.response import ApiResponse, request_id_of, success_response
from src.mp_gateway.auth.dependencies import get_current_user, get_optional_user
from src.mp_gateway.user.db_models import UserModel
from src.mp_listing.application.schemas import CreateListingRequest, UpdateListingRequest
from src.mp_listing.application.service import ListingApplicationService
from src.mp_listing.domain.models import ListingFilter

router = APIRouter(prefix="/listings", tags=["listings"])

_service = ListingApplicationService()

_ALL = "all"


def _status_filter(value: str | None, default: str | None) -> str | None:
    """None -> default; 'all' -> no filter."""
    if value is None:
        return default
    return None if value.lower() == _ALL else value


def _category_filter(value: str | None) -> str | None:
    if value is None or value.lower() in (_ALL, "all items"):
        return None
    return value


@router.post("", status_code=201)
async def create_listing(
    body: CreateListingRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_listing(db, str(current_user.id), body)
    return success_response(result.model_dump(), "Listing created", request_id_of(request))


@router.get("")
async def list_listings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    search: str | None = Query(None, description="Case-insensitive substring of the name"),
    category: str | None = Query(None),
    status: str | None = Query(
        None, description="available | sold. Default: available. Use 'all' for no filter."
    ),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    owner: str | None = Query(None, description="Only listings of this user id"),
    sort_by: ListingSortField = Query(ListingSortField.DATE),
    order: SortOrder = Query(SortOrder.DESC),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    flt = ListingFilter(
        search=search,
        category=_category_filter(category),
        status=_status_filter(status, "available"),
        min_price=min_price,
        max_price=max_price,
        owner_id=owner,
        sort_by=sort_by,
        order=order,
    )
    result = await _service.list_listings(db, flt, cursor, limit)
    return success_response(result.model_dump(), request_id=request_id_of(request))


@router.get("/mine")
async def list_my_listings(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: str | None = Query(None, description="available | sold | all (default)"),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    flt = ListingFilter(owner_id=str(current_user.id), status=_status_filter(status, None))
    result = await _service.list_listings(db, flt, cursor, limit)
    return success_response(result.model_dump(), request_id=request_id_of(request))


@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    request: Request,
    viewer: Annotated[UserModel | None, Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    viewer_id = str(viewer.id) if viewer is not None else None
    result = await _service.get_listing(db, listing_id, viewer_id)
    return success_response(result.model_dump(), request_id=request_id_of(request))


@router.put("/{listing_id}")
async def update_listing(
    listing_id: str,
    body: UpdateListingRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.update_listing(
        db, listing_id, str(current_user.id), body.to_patch()
    )
    return success_response(result.model_dump(), "Listing updated", request_id_of(request))


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_listing(db, listing_id, str(current_user.id))
    return success_response({"id": listing_id}, "Listing deleted", request_id_of(request))
