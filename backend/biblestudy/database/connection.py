from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from biblestudy.config import settings

_client: AsyncIOMotorClient | None = None


def get_client() -> AsyncIOMotorClient:
    if _client is None:
        raise RuntimeError("MongoDB client is not initialized")
    return _client


def get_db() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongodb_db_name]


async def connect_to_mongo() -> None:
    global _client
    if _client is not None:
        return

    _client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        uuidRepresentation="standard",
    )


async def close_mongo_connection() -> None:
    global _client
    if _client is None:
        return

    _client.close()
    _client = None


async def ensure_mongo_indexes() -> None:
    users_collection = get_db()["users"]
    registrants_collection = get_db()["registrants"]
    group_sets_collection = get_db()["group_sets"]
    groups_collection = get_db()["groups"]

    await users_collection.create_index([("uid", ASCENDING)], unique=True, name="uniq_users_uid")
    await registrants_collection.create_index(
        [("phone", ASCENDING)], unique=True, name="uniq_registrants_phone"
    )
    await registrants_collection.create_index(
        [("uid", ASCENDING)], unique=True, sparse=True, name="uniq_registrants_uid"
    )
    await registrants_collection.create_index(
        [("residence", ASCENDING), ("name", ASCENDING)],
        name="idx_registrants_residence_name",
    )
    await group_sets_collection.create_index(
        [("created_at", ASCENDING)], name="idx_group_sets_created_at"
    )
    await groups_collection.create_index(
        [("group_set_id", ASCENDING), ("index", ASCENDING)],
        unique=True,
        name="uniq_groups_set_index",
    )
    await groups_collection.create_index(
        [("group_set_id", ASCENDING), ("members.phone", ASCENDING)],
        name="idx_groups_set_member_phone",
    )
