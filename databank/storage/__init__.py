"""
Storage abstraction layer.

Provides a uniform databank interface (connect, create, read, update,
delete, search) over pluggable document stores.

Supported backends:
- MongoDB (recommended for production)
- In-memory (tests and local development)
"""

from databank.storage.base import (
    ConnectParams,
    ConnectionState,
    Databank,
)
from databank.storage.errors import (
    AlreadyConnectedError,
    AlreadyExistsError,
    DatabankError,
    NotConnectedError,
    NotExistsError,
)
from databank.storage.factory import (
    StorageBackend,
    connect_params,
    create_databank,
    get_storage_backend,
)
from databank.storage.identity import (
    TypeSchema,
    get_id_col,
    parse_schema,
    resolve_selector,
)

__all__ = [
    # Abstract interface
    "ConnectParams",
    "ConnectionState",
    "Databank",
    # Errors
    "AlreadyConnectedError",
    "AlreadyExistsError",
    "DatabankError",
    "NotConnectedError",
    "NotExistsError",
    # Identity
    "TypeSchema",
    "get_id_col",
    "parse_schema",
    "resolve_selector",
    # Factory functions
    "StorageBackend",
    "connect_params",
    "create_databank",
    "get_storage_backend",
]
