"""
MongoDB databank backend.

Each thing type is a collection in the configured database. Things are
addressed by their schema id column (default ``_id``), so duplicate and
missing-record conditions are detected by the store itself and mapped
onto the databank error taxonomy.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from databank.logging import get_logger
from databank.storage.base import ConnectParams, Databank
from databank.storage.errors import AlreadyExistsError, NotExistsError
from databank.storage.identity import TypeSchema, stamp_id



logger = get_logger(__name__)


# Server error codes for unique index violations
DUPLICATE_KEY_CODES = frozenset({11000, 11001, 12582})


def is_duplicate_key_error(exc: BaseException) -> bool:
    """Whether a store error is a unique-key violation."""
    if isinstance(exc, DuplicateKeyError):
        return True
    return isinstance(exc, PyMongoError) and getattr(exc, "code", None) in DUPLICATE_KEY_CODES


@dataclass
class MongoSession:
    """Open client plus the database handle things live in."""
    client: AsyncIOMotorClient
    database: AsyncIOMotorDatabase


class MongoDatabank(Databank):
    """
    MongoDB-based databank.

    Uses Motor for non-blocking access. The client is created on connect()
    and verified with a ping so that connection failures surface there
    rather than on the first operation.
    """

    backend_name = "mongodb"
    native_id_col = "_id"
    cursor_errors = (PyMongoError,)

    def __init__(
        self,
        schema: Optional[Mapping[str, Union[TypeSchema, Mapping[str, Any]]]] = None,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ):
        """
        Initialize MongoDB databank.

        Args:
            schema: Optional per-type identity columns
            client_factory: Builds the Motor client from host, port and options
        """
        super().__init__(schema)
        self._client_factory = client_factory

    async def _open_session(self, params: ConnectParams) -> MongoSession:
        """Create the client, ping the server and prepare identity indexes."""
        client = self._client_factory(
            host=params.host,
            port=params.port,
            **params.options,
        )
        try:
            await client.admin.command("ping")
            database = client[params.database_name]
            await self._ensure_indexes(database)
        except Exception:
            client.close()
            raise

        return MongoSession(client=client, database=database)

    async def _close_session(self, session: MongoSession) -> None:
        session.client.close()

    async def _ensure_indexes(self, database: AsyncIOMotorDatabase) -> None:
        """Make every custom id column unique so duplicates are rejected."""
        for type_, entry in self.schema.items():
            if entry.id_col == self.native_id_col:
                continue

            await database[type_].create_index(
                [(entry.id_col, ASCENDING)],
                unique=True,
                name=f"databank_{entry.id_col.replace('.', '_')}_unique",
            )
            logger.info(
                "Identity index ensured",
                collection=type_,
                id_col=entry.id_col,
            )

    def _collection(self, session: MongoSession, type_: str) -> AsyncIOMotorCollection:
        return session.database[type_]

    async def create(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        """Insert value as a new document, stamped with its logical id."""
        session = self._require_connected()
        collection = self._collection(session, type_)

        document = stamp_id(value, self.id_col(type_), id_)

        try:
            result = await collection.insert_one(document)
        except PyMongoError as exc:
            if is_duplicate_key_error(exc):
                raise AlreadyExistsError(type_, id_) from exc
            raise

        document.setdefault("_id", result.inserted_id)
        logger.debug("Thing created", type=type_, id=id_)
        return document

    async def read(self, type_: str, id_: Any) -> dict[str, Any]:
        session = self._require_connected()
        collection = self._collection(session, type_)

        document = await collection.find_one(self.selector(type_, id_))
        if document is None:
            raise NotExistsError(type_, id_)
        return dict(document)

    async def update(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        """Replace the matching document; no partial or merge semantics."""
        session = self._require_connected()
        collection = self._collection(session, type_)

        replacement = stamp_id(value, self.id_col(type_), id_)

        result = await collection.replace_one(self.selector(type_, id_), replacement)
        if result.matched_count == 0:
            raise NotExistsError(type_, id_)

        logger.debug("Thing updated", type=type_, id=id_)
        return replacement

    async def delete(self, type_: str, id_: Any) -> None:
        session = self._require_connected()
        collection = self._collection(session, type_)

        result = await collection.delete_one(self.selector(type_, id_))
        if result.deleted_count == 0:
            raise NotExistsError(type_, id_)

        logger.debug("Thing deleted", type=type_, id=id_)

    async def _open_cursor(
        self,
        session: MongoSession,
        type_: str,
        criteria: dict[str, Any],
    ) -> Any:
        return self._collection(session, type_).find(criteria)
