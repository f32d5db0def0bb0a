"""
Abstract base class for databank backends.

This module defines the contract that all storage implementations must follow,
whether MongoDB, in-memory, or any other document store.

Design principles:
- Type-agnostic: things are addressed by (type, id), values are plain dicts
- Async-first: every operation is a coroutine that returns once or raises once
- Uniform errors: backends normalize to databank.storage.errors
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Optional, Union

from databank.logging import get_logger
from databank.storage.errors import AlreadyConnectedError, NotConnectedError
from databank.storage.identity import (
    DEFAULT_ID_COL,
    Schema,
    TypeSchema,
    get_id_col,
    parse_schema,
    resolve_selector,
)


logger = get_logger(__name__)


ResultHandler = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]


class ConnectionState(str, Enum):
    """Lifecycle state of a databank's single session."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass
class ConnectParams:
    """
    Parameters for opening a session with the store.

    Unknown keys are kept in options and forwarded to the store client.
    A schema given here replaces the databank's schema on connect.
    """
    host: str = "localhost"
    port: int = 27017
    database_name: str = "test"
    options: dict[str, Any] = field(default_factory=dict)
    schema: Optional[Mapping[str, Any]] = None

    DATABASE_KEYS: ClassVar[tuple[str, ...]] = ("database_name", "databaseName", "db")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConnectParams":
        """
        Create from a plain mapping.

        Accepts database_name, databaseName or db for the database; the
        first non-empty one wins and none of them reach the store client.
        Missing or empty values fall back to the defaults.
        """
        data = dict(data)
        defaults = cls()

        database_names = [data.pop(key, None) for key in cls.DATABASE_KEYS]
        database_name = next(
            (name for name in database_names if name),
            defaults.database_name,
        )
        host = data.pop("host", None) or defaults.host
        port = data.pop("port", None) or defaults.port
        schema = data.pop("schema", None)
        options = dict(data.pop("options", None) or {})
        options.update(data)
        return cls(
            host=host,
            port=int(port),
            database_name=database_name,
            options=options,
            schema=schema,
        )


class Databank(ABC):
    """
    Abstract interface for databank backends.

    Holds at most one session. connect() and disconnect() are serialized
    by an internal lock; every other operation checks the state first and
    never contacts the store while disconnected.

    Usage:
        bank = MongoDatabank(schema={"user": {"idCol": "nickname"}})
        await bank.connect({"host": "localhost", "databaseName": "test"})

        await bank.create("user", "alice", {"name": "Alice"})
        user = await bank.read("user", "alice")

        await bank.search("user", {"name": "Alice"}, print)
        await bank.disconnect()
    """

    backend_name: ClassVar[str] = "abstract"

    # Field the store uses as primary key; default identity column
    native_id_col: ClassVar[str] = DEFAULT_ID_COL

    # Per-item cursor failures that search() remembers instead of raising
    cursor_errors: ClassVar[tuple[type[BaseException], ...]] = (Exception,)

    def __init__(
        self,
        schema: Optional[Mapping[str, Union[TypeSchema, Mapping[str, Any]]]] = None,
    ):
        """
        Initialize an unconnected databank.

        Args:
            schema: Optional per-type identity columns. Must not be
                changed while operations are in flight.
        """
        self.schema: dict[str, TypeSchema] = parse_schema(schema)
        self._state = ConnectionState.DISCONNECTED
        self._session: Optional[Any] = None
        self._params: Optional[ConnectParams] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def params(self) -> Optional[ConnectParams]:
        """Parameters of the open session, None while disconnected."""
        return self._params

    # =========================================
    # Connection lifecycle
    # =========================================

    async def connect(
        self,
        params: Optional[Union[ConnectParams, Mapping[str, Any]]] = None,
    ) -> None:
        """
        Open the session.

        Args:
            params: Connection parameters; defaults to localhost:27017/test

        Raises:
            AlreadyConnectedError: If a session is already open
            Exception: Whatever the store raised while opening, unchanged
        """
        if params is None:
            params = ConnectParams()
        elif not isinstance(params, ConnectParams):
            params = ConnectParams.from_mapping(params)

        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                raise AlreadyConnectedError()

            if params.schema is not None:
                self.schema = parse_schema(params.schema)

            self._session = await self._open_session(params)
            self._params = params
            self._state = ConnectionState.CONNECTED

        logger.info(
            "Databank connected",
            backend=self.backend_name,
            host=params.host,
            port=params.port,
            database=params.database_name,
        )

    async def disconnect(self) -> None:
        """
        Close the session.

        The databank is disconnected afterwards even if closing fails;
        the close error is then raised to the caller.

        Raises:
            NotConnectedError: If no session is open
        """
        async with self._lock:
            if self._state is not ConnectionState.CONNECTED:
                raise NotConnectedError()

            session = self._session
            self._session = None
            self._params = None
            self._state = ConnectionState.DISCONNECTED
            await self._close_session(session)

        logger.info("Databank disconnected", backend=self.backend_name)

    @abstractmethod
    async def _open_session(self, params: ConnectParams) -> Any:
        """Open and return a live session handle, or raise the store's error."""
        pass

    @abstractmethod
    async def _close_session(self, session: Any) -> None:
        """Release a session handle returned by _open_session."""
        pass

    def _require_connected(self) -> Any:
        """Return the live session or raise NotConnectedError."""
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError()
        return self._session

    # =========================================
    # Identity
    # =========================================

    def id_col(self, type_: str) -> str:
        """Field holding the logical id for type_."""
        return get_id_col(self.schema, type_, self.native_id_col)

    def selector(self, type_: str, id_: Any) -> dict[str, Any]:
        """Equality filter addressing (type_, id_)."""
        return resolve_selector(self.schema, type_, id_, self.native_id_col)

    # =========================================
    # CRUD
    # =========================================

    @abstractmethod
    async def create(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        """
        Store a new thing.

        Args:
            type_: Type of thing, e.g. 'user' or 'activity'
            id_: Unique id within the type, e.g. a nickname or UUID
            value: Document to store

        Returns:
            The stored document, including store-added fields

        Raises:
            NotConnectedError: If disconnected
            AlreadyExistsError: If (type_, id_) is taken
        """
        pass

    @abstractmethod
    async def read(self, type_: str, id_: Any) -> dict[str, Any]:
        """
        Fetch an existing thing.

        Raises:
            NotConnectedError: If disconnected
            NotExistsError: If there is no such thing
        """
        pass

    @abstractmethod
    async def update(self, type_: str, id_: Any, value: dict[str, Any]) -> dict[str, Any]:
        """
        Replace the whole content of an existing thing.

        Returns:
            The new document

        Raises:
            NotConnectedError: If disconnected
            NotExistsError: If there is no such thing
        """
        pass

    @abstractmethod
    async def delete(self, type_: str, id_: Any) -> None:
        """
        Remove an existing thing.

        Raises:
            NotConnectedError: If disconnected
            NotExistsError: If there is no such thing
        """
        pass

    # =========================================
    # Search
    # =========================================

    @abstractmethod
    async def _open_cursor(self, session: Any, type_: str, criteria: dict[str, Any]) -> Any:
        """
        Start an exact-match query and return an async iterator over results.

        The iterator may expose an ``alive`` flag; once it is False after a
        failure no further documents will be produced.
        """
        pass

    async def search(
        self,
        type_: str,
        criteria: Mapping[str, Any],
        on_result: ResultHandler,
    ) -> int:
        """
        Deliver every thing of type_ matching criteria to on_result.

        on_result is called once per document, in cursor order, and is
        awaited when it returns an awaitable. search() itself completes only
        after the cursor is drained.

        Args:
            type_: Type of thing
            criteria: Exact matches, like {'subject.id': 'tag:example.org,2011:evan'}
            on_result: Called once per result found

        Returns:
            Number of documents delivered

        Raises:
            NotConnectedError: If disconnected (on_result is never called)
            Exception: The last per-item cursor error, after draining
        """
        session = self._require_connected()
        cursor = await self._open_cursor(session, type_, dict(criteria))

        delivered = 0
        last_error: Optional[BaseException] = None

        while True:
            try:
                document = await cursor.__anext__()
            except StopAsyncIteration:
                break
            except self.cursor_errors as exc:
                last_error = exc
                if not getattr(cursor, "alive", False):
                    break
                continue

            outcome = on_result(document)
            if inspect.isawaitable(outcome):
                await outcome
            delivered += 1

        logger.debug(
            "Search finished",
            backend=self.backend_name,
            type=type_,
            delivered=delivered,
            failed=last_error is not None,
        )

        if last_error is not None:
            raise last_error
        return delivered

    async def iter_search(
        self,
        type_: str,
        criteria: Mapping[str, Any],
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Async-iterator form of search(); a cursor error ends the stream.
        The cursor is closed when the stream ends, including when the
        consumer stops early.

        Usage:
            async for user in bank.iter_search("user", {"active": True}):
                ...
        """
        session = self._require_connected()
        cursor = await self._open_cursor(session, type_, dict(criteria))
        try:
            async for document in cursor:
                yield document
        finally:
            close = getattr(cursor, "close", None)
            if close is not None:
                outcome = close()
                if inspect.isawaitable(outcome):
                    await outcome
