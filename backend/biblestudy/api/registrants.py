from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from biblestudy.models.registrant import (
    RegistrantCreateRequest,
    RegistrantListResponse,
    RegistrantResponse,
    RegistrantUpdateRequest,
)
from biblestudy.services.registrant_service import (
    delete_registrant,
    list_registrants,
    register_registrant,
    serialize_registrant,
    update_registrant,
)
from biblestudy.utils.dependencies import get_current_admin, get_current_user

router = APIRouter()


@router.post("", response_model=RegistrantResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegistrantCreateRequest,
    current_user: dict = Depends(get_current_user),
):
    """Sign up for Bible study; a phone number may register only once."""
    doc = await register_registrant(request, user_uid=current_user["uid"])
    return RegistrantResponse(**serialize_registrant(doc))


@router.get("", response_model=RegistrantListResponse)
async def list_all(
    residence: Optional[str] = Query(default=None),
    current_admin: dict = Depends(get_current_admin),
):
    docs = await list_registrants(residence=residence)
    registrants = [RegistrantResponse(**serialize_registrant(d)) for d in docs]
    return RegistrantListResponse(registrants=registrants, total=len(registrants))


@router.patch("/{phone}", response_model=RegistrantResponse)
async def update(
    phone: str,
    request: RegistrantUpdateRequest,
    current_admin: dict = Depends(get_current_admin),
):
    doc = await update_registrant(phone, request)
    return RegistrantResponse(**serialize_registrant(doc))


@router.delete("/{phone}", status_code=status.HTTP_204_NO_CONTENT)
async def remove(
    phone: str,
    current_admin: dict = Depends(get_current_admin),
):
    await delete_registrant(phone)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
