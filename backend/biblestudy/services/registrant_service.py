from __future__ import annotations

from datetime import datetime
import logging
from typing import Optional

from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError

from biblestudy.database.collections import get_collection
from biblestudy.grouping import Registrant
from biblestudy.models.registrant import RegistrantCreateRequest, RegistrantUpdateRequest

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.utcnow()


def serialize_registrant(doc: dict) -> dict:
    return {
        "name": doc.get("name") or "",
        "phone": doc.get("phone") or "",
        "residence": doc.get("residence") or "",
        "year_of_study": str(doc.get("year_of_study") or ""),
        "gender": doc.get("gender") or "",
        "is_pastor": bool(doc.get("is_pastor")),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
    }


def to_registrant(doc: dict) -> Registrant:
    # Values are taken literally; a blank residence is its own residence.
    return Registrant(
        name=doc.get("name") or "",
        phone=str(doc["phone"]),
        residence=doc.get("residence") or "",
        year_of_study=str(doc.get("year_of_study") or ""),
        gender=doc.get("gender") or "",
        is_pastor=bool(doc.get("is_pastor")),
    )


async def register_registrant(payload: RegistrantCreateRequest, *, user_uid: str) -> dict:
    registrants_collection = get_collection("registrants")

    if await registrants_collection.find_one({"uid": user_uid}):
        logger.warning(f"Repeat Bible study registration: uid={user_uid}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are already registered",
        )

    existing = await registrants_collection.find_one({"phone": payload.phone})
    if existing:
        logger.warning(f"Duplicate Bible study registration: phone={payload.phone}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number already registered",
        )

    now = _now()
    doc = {
        **payload.model_dump(),
        "is_pastor": False,
        "uid": user_uid,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await registrants_collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number already registered",
        )
    doc["_id"] = result.inserted_id
    logger.info(f"Registered {payload.name} ({payload.residence}) for Bible study")
    return doc


async def list_registrants(*, residence: Optional[str] = None) -> list[dict]:
    registrants_collection = get_collection("registrants")
    query: dict = {}
    if residence:
        query["residence"] = residence
    return await (
        registrants_collection.find(query)
        .sort([("residence", 1), ("name", 1)])
        .to_list(length=None)
    )


async def _find_registrant_or_404(phone: str) -> dict:
    registrants_collection = get_collection("registrants")
    doc = await registrants_collection.find_one({"phone": phone})
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registrant not found")
    return doc


async def update_registrant(phone: str, changes: RegistrantUpdateRequest) -> dict:
    doc = await _find_registrant_or_404(phone)
    update = changes.model_dump(exclude_none=True)
    if not update:
        return doc

    update["updated_at"] = _now()
    registrants_collection = get_collection("registrants")
    await registrants_collection.update_one({"_id": doc["_id"]}, {"$set": update})
    logger.info(f"Updated registrant {phone}: {sorted(update)}")
    return {**doc, **update}


async def delete_registrant(phone: str) -> None:
    doc = await _find_registrant_or_404(phone)
    registrants_collection = get_collection("registrants")
    await registrants_collection.delete_one({"_id": doc["_id"]})
    logger.info(f"Removed registrant {phone}")


async def find_registrant_for_user(user_uid: str) -> dict:
    registrants_collection = get_collection("registrants")
    doc = await registrants_collection.find_one({"uid": user_uid})
    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Not registered for Bible study"
        )
    return doc


async def load_roster() -> list[Registrant]:
    """Fetch every registrant in a stable order for the partitioner."""
    registrants_collection = get_collection("registrants")
    docs = await (
        registrants_collection.find({})
        .sort([("created_at", 1), ("_id", 1)])
        .to_list(length=None)
    )
    return [to_registrant(doc) for doc in docs if doc.get("phone")]
