"""MongoDB client lifecycle and index setup for the notification inbox."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

from ..core.config import get_settings
from .models import Notification

_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None
_initialized = False
_owns_client = False
_bound_loop: asyncio.AbstractEventLoop | None = None

TTL_INDEX_NAME = "notifications_created_at_ttl"


def set_notification_client(client: AsyncIOMotorClient | None) -> None:
    """Inject a custom motor client instance (primarily for tests)."""

    global _client, _database, _initialized, _owns_client
    _client = client
    _database = None
    _initialized = False
    _owns_client = False


async def _ensure_indexes(ttl_seconds: int) -> None:
    collection = get_notification_collection()
    existing = await collection.index_information()

    current_ttl = None
    ttl_index = existing.get(TTL_INDEX_NAME)
    if isinstance(ttl_index, Mapping):
        current_ttl = ttl_index.get("expireAfterSeconds")

    if current_ttl is not None and int(current_ttl) != ttl_seconds:
        try:
            await collection.drop_index(TTL_INDEX_NAME)
        except OperationFailure:
            pass

    await collection.create_index(
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        name="notifications_user_created_at",
    )
    await collection.create_index(
        [("created_at", ASCENDING)],
        expireAfterSeconds=ttl_seconds,
        name=TTL_INDEX_NAME,
    )


async def init_notification_store(*, client: AsyncIOMotorClient | None = None, force: bool = False) -> None:
    """Initialise the beanie document store backing the notification inbox.

    Safe to call once per job: a client this module created is rebuilt when
    the running event loop changes, since motor clients are loop-bound.
    """

    global _client, _database, _initialized, _owns_client, _bound_loop

    if client is not None:
        set_notification_client(client)

    loop = asyncio.get_running_loop()
    if _owns_client and _bound_loop is not loop and _client is not None:
        _client.close()
        _client = None
        _initialized = False

    if _initialized and not force:
        return

    settings = get_settings()
    if _client is None:
        _client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True, uuidRepresentation="standard")
        _owns_client = True
    _database = _client[settings.mongo_database]
    _bound_loop = loop

    await init_beanie(database=_database, document_models=[Notification])
    await _ensure_indexes(settings.notification_ttl_seconds)
    _initialized = True


async def close_notification_store() -> None:
    """Dispose the MongoDB client used for the inbox."""

    global _client, _database, _initialized, _owns_client, _bound_loop
    client = _client
    if client is not None:
        client.close()
    _client = None
    _database = None
    _initialized = False
    _owns_client = False
    _bound_loop = None


def get_notification_collection() -> AsyncIOMotorCollection:
    return Notification.get_motor_collection()
