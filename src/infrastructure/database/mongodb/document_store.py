# File: infrastructure/database/mongodb/document_store.py

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from common.exceptions.base_exception import ConflictException, NotFoundException, ServiceUnavailableException
from common.logging.logger import log_error, log_info, log_warning
from infrastructure.database.document_store import (
    Document,
    DocumentRef,
    DocumentStore,
    SnapshotCallback,
    Subscription,
    T,
    Transaction,
    TransactionRetry,
    WriteOp,
    resolve_server_values,
)

COMMIT_RETRIES = 3

INDEXES = {
    "users": [
        {"keys": [("username", ASCENDING)], "unique": True, "partialFilterExpression": {"username": {"$type": "string"}}},
    ],
    "users.followers": [
        {"keys": [("target_user_id", ASCENDING), ("followedAt", DESCENDING)]},
        {"keys": [("follower_user_id", ASCENDING), ("followedAt", DESCENDING)]},
    ],
}


def _to_document(doc_id: str, raw: Optional[Dict[str, Any]]) -> Optional[Document]:
    if raw is None:
        return None
    doc = dict(raw)
    doc.pop("_id", None)
    doc["id"] = doc_id
    return doc


def _duplicate(path: str, error: DuplicateKeyError) -> ConflictException:
    log_warning("Mongo unique index rejected write", extra={"path": path, "error": str(error)})
    return ConflictException()


class MongoTransaction(Transaction):
    def __init__(self, store: "MongoDocumentStore", session: AsyncIOMotorClientSession):
        super().__init__()
        self._store = store
        self._session = session

    async def _read(self, ref: DocumentRef) -> Optional[Document]:
        raw = await self._store.db[ref.collection].find_one({"_id": ref.key}, session=self._session)
        return _to_document(ref.id, raw)


class MongoDocumentStore(DocumentStore):
    """
    Document store backed by MongoDB multi-document transactions.

    Requires a replica set or sharded cluster. Write conflicts surface as
    errors labelled ``TransientTransactionError`` and restart the attempt.
    """

    backend = "mongodb"

    def __init__(
        self,
        client: AsyncIOMotorClient,
        db: AsyncIOMotorDatabase,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        super().__init__(max_attempts=max_attempts, retry_base_delay=retry_base_delay)
        self.client = client
        self.db = db
        self._watchers: List[asyncio.Task] = []

    async def ensure_indexes(self):
        try:
            for collection, indexes in INDEXES.items():
                for index in indexes:
                    options = {key: value for key, value in index.items() if key != "keys"}
                    await self.db[collection].create_index(index["keys"], **options)
            log_info("Mongo indexes ensured", extra={"collections": list(INDEXES)})
        except PyMongoError as e:
            log_error("Mongo create_index failed", extra={"error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to prepare indexes: Internal DB error")

    async def get(self, ref: DocumentRef) -> Optional[Document]:
        try:
            raw = await self.db[ref.collection].find_one({"_id": ref.key})
            return _to_document(ref.id, raw)
        except PyMongoError as e:
            log_error("Mongo find_one failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to find document: Internal DB error")

    async def set(self, ref: DocumentRef, data: Document) -> None:
        try:
            await self._write(WriteOp("set", ref, data))
        except DuplicateKeyError as e:
            raise _duplicate(ref.path, e) from e
        except PyMongoError as e:
            log_error("Mongo replace_one failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to write document: Internal DB error")

    async def update(self, ref: DocumentRef, fields: Document) -> None:
        try:
            await self._write(WriteOp("update", ref, fields))
        except DuplicateKeyError as e:
            raise _duplicate(ref.path, e) from e
        except PyMongoError as e:
            log_error("Mongo update_one failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to update document: Internal DB error")

    async def delete(self, ref: DocumentRef) -> None:
        try:
            await self._write(WriteOp("delete", ref))
        except PyMongoError as e:
            log_error("Mongo delete_one failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to delete document: Internal DB error")

    async def find(
        self,
        collection: str,
        filters: Optional[Document] = None,
        limit: Optional[int] = None,
        sort: Optional[Tuple[str, int]] = None,
    ) -> List[Document]:
        try:
            cursor = self.db[collection].find(filters or {})
            if sort:
                cursor = cursor.sort(sort[0], DESCENDING if sort[1] < 0 else ASCENDING)
            if limit:
                cursor = cursor.limit(limit)
            raw_docs = await cursor.to_list(length=limit)
            return [_to_document(str(raw["_id"]).rsplit("/", 1)[-1], raw) for raw in raw_docs]
        except PyMongoError as e:
            log_error("Mongo find failed", extra={"collection": collection, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Failed to fetch documents: Internal DB error")

    def subscribe(self, ref: DocumentRef, callback: SnapshotCallback) -> Subscription:
        ready = asyncio.Event()
        task = asyncio.get_running_loop().create_task(self._watch(ref, callback, ready))
        self._watchers.append(task)

        def _cancel():
            task.cancel()
            if task in self._watchers:
                self._watchers.remove(task)

        return Subscription(_cancel, ready=ready)

    async def _watch(self, ref: DocumentRef, callback: SnapshotCallback, ready: asyncio.Event):
        pipeline = [{"$match": {"documentKey._id": ref.key}}]
        try:
            async with self.db[ref.collection].watch(pipeline, full_document="updateLookup") as stream:
                # The cursor is open server side from here on.
                ready.set()
                async for change in stream:
                    if change.get("operationType") == "delete":
                        snapshot = None
                    else:
                        snapshot = _to_document(ref.id, change.get("fullDocument"))
                    try:
                        callback(snapshot)
                    except Exception as e:
                        log_error("Document listener failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
        except PyMongoError as e:
            log_error("Mongo change stream failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
        finally:
            ready.set()

    async def close(self) -> None:
        for task in list(self._watchers):
            task.cancel()
        self._watchers.clear()

    async def _attempt(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        try:
            async with await self.client.start_session() as session:
                session.start_transaction(
                    read_concern=ReadConcern("snapshot"),
                    write_concern=WriteConcern("majority"),
                )
                try:
                    txn = MongoTransaction(self, session)
                    result = await fn(txn)
                    for op in txn.writes:
                        await self._write(op, session=session)
                    await self._commit(session)
                    return result
                except BaseException:
                    if session.in_transaction:
                        await session.abort_transaction()
                    raise
        except DuplicateKeyError as e:
            raise _duplicate("transaction", e) from e
        except PyMongoError as e:
            if e.has_error_label("TransientTransactionError"):
                raise TransactionRetry(str(e)) from e
            log_error("Mongo transaction failed", extra={"error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("Transaction failed: Internal DB error")

    async def _commit(self, session: AsyncIOMotorClientSession):
        for attempt in range(1, COMMIT_RETRIES + 1):
            try:
                await session.commit_transaction()
                return
            except PyMongoError as e:
                if not e.has_error_label("UnknownTransactionCommitResult"):
                    raise
                log_warning("Mongo commit result unknown, retrying commit", extra={"attempt": attempt, "error": str(e)})

        log_error("Mongo commit result still unknown", extra={"attempts": COMMIT_RETRIES})
        raise ServiceUnavailableException("Transaction commit could not be confirmed")

    async def _write(self, op: WriteOp, session: Optional[AsyncIOMotorClientSession] = None):
        collection = self.db[op.ref.collection]
        if op.kind == "set":
            await collection.replace_one({"_id": op.ref.key}, resolve_server_values(op.data), upsert=True, session=session)
        elif op.kind == "update":
            result = await collection.update_one({"_id": op.ref.key}, {"$set": resolve_server_values(op.data)}, session=session)
            if result.matched_count == 0:
                raise NotFoundException(f"No document to update: {op.ref.path}")
        else:
            await collection.delete_one({"_id": op.ref.key}, session=session)
