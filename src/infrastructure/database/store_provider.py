# File: infrastructure/database/store_provider.py

from typing import Optional

from common.config.settings import settings
from common.logging.logger import log_info
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.memory.document_store import MemoryDocumentStore
from infrastructure.database.mongodb.connection import MongoDBConnection
from infrastructure.database.mongodb.document_store import MongoDocumentStore

document_store: Optional[DocumentStore] = None


async def init_document_store() -> DocumentStore:
    """Create the configured document store backend."""
    global document_store
    if document_store is not None:
        return document_store

    if settings.DOCUMENT_STORE_BACKEND == "memory":
        document_store = MemoryDocumentStore()
    else:
        await MongoDBConnection.connect()
        store = MongoDocumentStore(MongoDBConnection.get_client(), MongoDBConnection.get_db())
        await store.ensure_indexes()
        document_store = store

    log_info("Document store ready", extra={"backend": document_store.backend})
    return document_store


async def close_document_store():
    global document_store
    if document_store is not None:
        await document_store.close()
        document_store = None
    await MongoDBConnection.disconnect()
    log_info("Document store closed")


async def get_document_store() -> DocumentStore:
    """Dependency to get the document store."""
    if document_store is None:
        return await init_document_store()
    return document_store
