from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
import logging
from typing import Optional

from fastapi import HTTPException, status

from biblestudy.config import settings
from biblestudy.database.collections import get_collection
from biblestudy.grouping import (
    DuplicateRegistrantError,
    EmptyRosterError,
    GroupingError,
    GroupingResult,
    InvalidGroupSizeError,
    partition,
)
from biblestudy.grouping.partitioner import new_seed
from biblestudy.services.registrant_service import find_registrant_for_user, load_roster

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.utcnow()


def _grouping_http_error(exc: GroupingError) -> HTTPException:
    if isinstance(exc, EmptyRosterError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No registrants to group")
    if isinstance(exc, InvalidGroupSizeError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, DuplicateRegistrantError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    logger.error(f"Partitioner produced an invalid grouping: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Grouping failed its consistency check",
    )


def serialize_group(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "group_set_id": str(doc["group_set_id"]),
        "index": int(doc.get("index") or 0),
        "name": doc.get("name") or "",
        "members": list(doc.get("members") or []),
        "member_count": int(doc.get("member_count") or 0),
        "pastor_count": int(doc.get("pastor_count") or 0),
        "gender_counts": dict(doc.get("gender_counts") or {}),
        "year_counts": dict(doc.get("year_counts") or {}),
        "residences": list(doc.get("residences") or []),
    }


def serialize_group_set(group_set: Optional[dict], groups: list[dict]) -> dict:
    if not group_set:
        return {"groups": []}
    return {
        "group_set_id": str(group_set["_id"]),
        "group_size": group_set.get("group_size"),
        "seed": group_set.get("seed"),
        "roster_size": int(group_set.get("roster_size") or 0),
        "group_count": int(group_set.get("group_count") or 0),
        "pastorless_group_count": int(group_set.get("pastorless_group_count") or 0),
        "created_by": group_set.get("created_by"),
        "created_at": group_set.get("created_at"),
        "groups": [serialize_group(g) for g in groups],
    }


def _group_docs(result: GroupingResult, group_set_id, now: datetime) -> list[dict]:
    docs: list[dict] = []
    for i, group in enumerate(result.groups):
        docs.append(
            {
                "group_set_id": group_set_id,
                "index": i,
                "name": result.label(i),
                "members": [asdict(m) for m in group.members],
                "member_count": group.size,
                "pastor_count": group.pastor_count,
                "gender_counts": group.gender_counts,
                "year_counts": group.year_counts,
                "residences": sorted(group.residences),
                "created_at": now,
                "updated_at": now,
            }
        )
    return docs


async def _discard_group_set(group_set: dict) -> None:
    await get_collection("groups").delete_many({"group_set_id": group_set["_id"]})
    await get_collection("group_sets").delete_one({"_id": group_set["_id"]})


async def get_active_group_set() -> tuple[dict | None, list[dict]]:
    group_set = await get_collection("group_sets").find_one({})
    if not group_set:
        return None, []
    groups = await (
        get_collection("groups")
        .find({"group_set_id": group_set["_id"]})
        .sort([("index", 1)])
        .to_list(length=None)
    )
    return group_set, groups


async def generate_group_set(
    *,
    group_size: int,
    created_by: str,
    seed: Optional[int] = None,
    regenerate: bool = False,
) -> tuple[dict, list[dict]]:
    group_sets_collection = get_collection("group_sets")
    groups_collection = get_collection("groups")

    existing_set = await group_sets_collection.find_one({})
    if existing_set and not regenerate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Groups already exist; reshuffle or reset them first",
        )

    roster = await load_roster()
    if seed is None:
        seed = new_seed(exclude=existing_set.get("seed") if existing_set else None)

    try:
        result = partition(roster, group_size, seed)
    except GroupingError as exc:
        logger.warning(f"Grouping rejected: {exc}")
        raise _grouping_http_error(exc)

    if existing_set:
        await _discard_group_set(existing_set)

    now = _now()
    group_set_doc = {
        "group_size": group_size,
        "seed": seed,
        "roster_size": result.member_count,
        "group_count": result.group_count,
        "pastorless_group_count": len(result.pastorless_groups),
        "created_by": created_by,
        "created_at": now,
        "updated_at": now,
    }
    set_result = await group_sets_collection.insert_one(group_set_doc)
    group_set_doc["_id"] = set_result.inserted_id

    group_docs = _group_docs(result, set_result.inserted_id, now)
    await groups_collection.insert_many(group_docs)

    logger.info(
        f"Generated {result.group_count} groups from {result.member_count} registrants "
        f"(size {group_size}, seed {seed}, {len(result.pastorless_groups)} without a pastor)"
    )

    created_groups = await (
        groups_collection.find({"group_set_id": set_result.inserted_id})
        .sort([("index", 1)])
        .to_list(length=None)
    )
    return group_set_doc, created_groups


async def reshuffle_group_set(
    *,
    created_by: str,
    group_size: Optional[int] = None,
    seed: Optional[int] = None,
) -> tuple[dict, list[dict]]:
    """Partition the current roster again; the previous size is kept unless overridden."""
    existing_set = await get_collection("group_sets").find_one({})
    if group_size is None:
        group_size = (
            int(existing_set.get("group_size") or 0) if existing_set else 0
        ) or settings.default_group_size
    return await generate_group_set(
        group_size=group_size,
        created_by=created_by,
        seed=seed,
        regenerate=True,
    )


async def reset_group_set() -> bool:
    group_set = await get_collection("group_sets").find_one({})
    if not group_set:
        return False
    await _discard_group_set(group_set)
    logger.info(f"Discarded group set {group_set['_id']}")
    return True


async def find_group_for_user(user_uid: str) -> dict:
    registrant = await find_registrant_for_user(user_uid)
    group_set = await get_collection("group_sets").find_one({})
    if not group_set:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Groups not found")

    group = await get_collection("groups").find_one(
        {"group_set_id": group_set["_id"], "members.phone": registrant["phone"]}
    )
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group
