"""
pytest configuration for the TravelShare API.

Settings are read once at import time, so the environment is prepared here
before any application module is imported.
"""

import os

os.environ.setdefault("ACCESS_SECRET", "test-access-secret")
os.environ["DOCUMENT_STORE_BACKEND"] = "memory"
os.environ["LOG_TO_FILE"] = "false"
os.environ["TRANSACTION_RETRY_BASE_DELAY"] = "0"
os.environ["SENTRY_DSN"] = ""

import pytest

from infrastructure.database.memory.document_store import MemoryDocumentStore
from infrastructure.database.paths import user_doc


@pytest.fixture
def store():
    return MemoryDocumentStore(retry_base_delay=0)


@pytest.fixture
def seed_user(store):
    async def _seed(user_id: str, followers: int = 0, following: int = 0, **fields):
        data = {"name": user_id.title(), "followers": followers, "following": following, **fields}
        await store.set(user_doc(user_id), data)
        return data

    return _seed
