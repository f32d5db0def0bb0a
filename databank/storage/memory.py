"""
In-memory databank backend.

Keeps every type as a list of documents in process memory. Useful for
tests and local development: it honours the same identity schema and
error taxonomy as the MongoDB backend without needing a server.

Key features:
- Exact-match criteria with dotted paths ('subject.id')
- Documents are copied on the way in and out
- Data survives disconnect/connect on the same instance
"""

import asyncio
import copy
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from databank.logging import get_logger
from databank.storage.base import ConnectParams, Databank
from databank.storage.errors import AlreadyExistsError, NotExistsError
from databank.storage.identity import get_path, stamp_id


logger = get_logger(__name__)


def matches(document: Mapping[str, Any], criteria: Mapping[str, Any]) -> bool:
    """Whether every criteria field equals the document's value."""
    return all(get_path(document, key) == value for key, value in criteria.items())


class MemoryCursor:
    """Forward-only async iterator over a snapshot of matching documents."""

    def __init__(self, documents: list[dict[str, Any]]):
        self._documents = documents
        self._position = 0

    @property
    def alive(self) -> bool:
        return self._position < len(self._documents)

    def __aiter__(self) -> "MemoryCursor":
        return self

    async def __anext__(self) -> dict[str, Any]:
        if not self.alive:
            raise StopAsyncIteration
        document = self._documents[self._position]
        self._position += 1
        return copy.deepcopy(document)

    async def close(self) -> None:
        self._position = len(self._documents)


class MemoryDatabank(Databank):
    """
    In-memory implementation of Databank.

    Maintains per-type document lists guarded by an asyncio lock, so
    concurrent operations on one instance see a consistent view.

    Usage:
        bank = MemoryDatabank(schema={"user": {"idCol": "nickname"}})
        await bank.connect()
        await bank.create("user", "alice", {"name": "Alice"})
    """

    backend_name = "memory"
    native_id_col = "_id"

    def __init__(self, schema: Optional[Mapping[str, Any]] = None):
        super().__init__(schema)
        self._things: dict[str, list[dict[str, Any]]] = {}
        self._data_lock = asyncio.Lock()

    async def _open_session(self, params: ConnectParams) -> dict[str, list[dict[str, Any]]]:
        return self._things

    async def _close_session(self, session: Any) -> None:
        return None

    def _find_index(
        self,
        documents: list[dict[str, Any]],
        selector: Mapping[str, Any],
    ) -> Optional[int]:
        for index, document in enumerate(documents):
            if matches(document, selector):
                return index
        return None

    async def create(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        """Store a copy of value; the native _id is generated when not the id column."""
        things = self._require_connected()

        document = stamp_id(copy.deepcopy(value), self.id_col(type_), id_)
        document.setdefault(self.native_id_col, uuid.uuid4().hex)

        async with self._data_lock:
            documents = things.setdefault(type_, [])
            if self._find_index(documents, self.selector(type_, id_)) is not None:
                raise AlreadyExistsError(type_, id_)
            documents.append(document)

        logger.debug("Thing created", type=type_, id=id_)
        return copy.deepcopy(document)

    async def read(self, type_: str, id_: Any) -> dict[str, Any]:
        things = self._require_connected()

        async with self._data_lock:
            documents = things.get(type_, [])
            index = self._find_index(documents, self.selector(type_, id_))
            if index is None:
                raise NotExistsError(type_, id_)
            return copy.deepcopy(documents[index])

    async def update(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        things = self._require_connected()

        replacement = stamp_id(copy.deepcopy(value), self.id_col(type_), id_)

        async with self._data_lock:
            documents = things.get(type_, [])
            index = self._find_index(documents, self.selector(type_, id_))
            if index is None:
                raise NotExistsError(type_, id_)

            # Replacement keeps the stored native key, like a server-side replace
            replacement.setdefault(self.native_id_col, documents[index][self.native_id_col])
            documents[index] = replacement

        logger.debug("Thing updated", type=type_, id=id_)
        return copy.deepcopy(replacement)

    async def delete(self, type_: str, id_: Any) -> None:
        things = self._require_connected()

        async with self._data_lock:
            documents = things.get(type_, [])
            index = self._find_index(documents, self.selector(type_, id_))
            if index is None:
                raise NotExistsError(type_, id_)
            documents.pop(index)

        logger.debug("Thing deleted", type=type_, id=id_)

    async def _open_cursor(
        self,
        session: dict[str, list[dict[str, Any]]],
        type_: str,
        criteria: dict[str, Any],
    ) -> MemoryCursor:
        async with self._data_lock:
            snapshot = [
                document
                for document in session.get(type_, [])
                if matches(document, criteria)
            ]
        return MemoryCursor(snapshot)

    # =========================================
    # Testing utilities
    # =========================================

    async def clear_all(self) -> None:
        """Drop every stored thing (for testing)."""
        async with self._data_lock:
            self._things.clear()
