"""
Databank factory.

Creates the configured backend and its connection parameters from
settings, so callers never import a backend module directly.
"""

from enum import Enum
from typing import TYPE_CHECKING

from databank.logging import get_logger
from databank.storage.base import ConnectParams, Databank


if TYPE_CHECKING:
    from databank.config import Settings


logger = get_logger(__name__)


class StorageBackend(str, Enum):
    """Supported databank backends."""
    MONGODB = "mongodb"
    MEMORY = "memory"


def get_storage_backend(settings: "Settings") -> StorageBackend:
    """
    Determine which backend to use based on settings.
    
    Args:
        settings: Application settings
        
    Returns:
        The configured storage backend
        
    Raises:
        ValueError: If the backend name is not supported
    """
    backend_str = settings.storage_backend.lower()
    
    try:
        return StorageBackend(backend_str)
    except ValueError:
        raise ValueError(
            f"Unsupported storage backend: {backend_str}. "
            f"Supported backends: {[b.value for b in StorageBackend]}"
        )


def connect_params(settings: "Settings") -> ConnectParams:
    """Build connection parameters from settings."""
    return ConnectParams(
        host=settings.mongodb_host,
        port=settings.mongodb_port,
        database_name=settings.mongodb_database,
        options=dict(settings.mongodb_options),
    )


def create_databank(settings: "Settings") -> Databank:
    """
    Create a databank instance based on settings.
    
    Args:
        settings: Application settings
        
    Returns:
        Configured databank (not yet connected)
    """
    backend = get_storage_backend(settings)
    
    if backend == StorageBackend.MONGODB:
        from databank.storage.mongodb import MongoDatabank
        
        logger.info(
            "Creating MongoDB databank",
            database=settings.mongodb_database,
            schema_types=sorted(settings.databank_schema),
        )
        return MongoDatabank(schema=settings.databank_schema)
    
    elif backend == StorageBackend.MEMORY:
        from databank.storage.memory import MemoryDatabank
        
        logger.info("Creating in-memory databank")
        return MemoryDatabank(schema=settings.databank_schema)
    
    else:
        raise ValueError(f"Unsupported backend: {backend}")
