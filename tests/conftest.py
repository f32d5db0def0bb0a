"""
Pytest configuration and fixtures.
"""

import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before settings are first read
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from databank.storage.memory import MemoryDatabank  # noqa: E402


@pytest.fixture
def user_schema():
    """Schema keying users by nickname instead of the native _id."""
    return {"user": {"idCol": "nickname"}}


@pytest_asyncio.fixture
async def memory_bank():
    """Connected in-memory databank with no schema."""
    bank = MemoryDatabank()
    await bank.connect()
    yield bank
    if bank.is_connected:
        await bank.disconnect()
