# File: infrastructure/database/memory/document_store.py

import asyncio
from copy import deepcopy
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from common.exceptions.base_exception import NotFoundException
from common.logging.logger import log_debug, log_error
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


class MemoryTransaction(Transaction):
    def __init__(self, store: "MemoryDocumentStore"):
        super().__init__()
        self._store = store
        self.read_versions: Dict[str, int] = {}

    async def _read(self, ref: DocumentRef) -> Optional[Document]:
        await asyncio.sleep(0)
        self.read_versions[ref.path] = self._store.version_of(ref)
        return self._store.snapshot(ref)


class MemoryDocumentStore(DocumentStore):
    """
    In-process document store with optimistic concurrency.

    Every document carries a version bumped on each write. A transaction
    records the version of everything it read and commits only if none of
    them moved in the meantime, otherwise the attempt is retried.
    """

    backend = "memory"

    def __init__(self, max_attempts: Optional[int] = None, retry_base_delay: Optional[float] = None):
        super().__init__(max_attempts=max_attempts, retry_base_delay=retry_base_delay)
        self._docs: Dict[str, Document] = {}
        self._versions: Dict[str, int] = {}
        self._listeners: Dict[str, List[SnapshotCallback]] = {}

    @property
    def documents(self) -> Dict[str, Document]:
        return deepcopy(self._docs)

    def version_of(self, ref: DocumentRef) -> int:
        return self._versions.get(ref.path, 0)

    def snapshot(self, ref: DocumentRef) -> Optional[Document]:
        doc = self._docs.get(ref.path)
        if doc is None:
            return None
        return {**deepcopy(doc), "id": ref.id}

    async def get(self, ref: DocumentRef) -> Optional[Document]:
        await asyncio.sleep(0)
        return self.snapshot(ref)

    async def set(self, ref: DocumentRef, data: Document) -> None:
        await asyncio.sleep(0)
        self._apply([WriteOp("set", ref, dict(data))])

    async def update(self, ref: DocumentRef, fields: Document) -> None:
        await asyncio.sleep(0)
        self._apply([WriteOp("update", ref, dict(fields))])

    async def delete(self, ref: DocumentRef) -> None:
        await asyncio.sleep(0)
        self._apply([WriteOp("delete", ref)])

    async def find(
        self,
        collection: str,
        filters: Optional[Document] = None,
        limit: Optional[int] = None,
        sort: Optional[Tuple[str, int]] = None,
    ) -> List[Document]:
        await asyncio.sleep(0)
        filters = filters or {}
        matches = []
        for path in sorted(self._docs):
            ref = DocumentRef(path)
            if ref.collection != collection:
                continue
            doc = self._docs[path]
            if all(doc.get(field) == value for field, value in filters.items()):
                matches.append(self.snapshot(ref))

        if sort:
            field, direction = sort
            present = [doc for doc in matches if doc.get(field) is not None]
            absent = [doc for doc in matches if doc.get(field) is None]
            present.sort(key=lambda doc: doc[field], reverse=direction < 0)
            matches = present + absent

        return matches[:limit] if limit else matches

    def subscribe(self, ref: DocumentRef, callback: SnapshotCallback) -> Subscription:
        listeners = self._listeners.setdefault(ref.path, [])
        listeners.append(callback)

        def _cancel():
            if callback in listeners:
                listeners.remove(callback)
            if not listeners and self._listeners.get(ref.path) is listeners:
                del self._listeners[ref.path]

        return Subscription(_cancel)

    async def _attempt(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        txn = MemoryTransaction(self)
        result = await fn(txn)

        await asyncio.sleep(0)
        for path, version in txn.read_versions.items():
            if self._versions.get(path, 0) != version:
                raise TransactionRetry(f"{path} changed since it was read")

        self._apply(txn.writes)
        return result

    def _apply(self, writes: List[WriteOp]):
        staged: Dict[str, Optional[Document]] = {}
        for op in writes:
            path = op.ref.path
            current = staged[path] if path in staged else self._docs.get(path)
            if op.kind == "set":
                staged[path] = resolve_server_values(op.data)
            elif op.kind == "update":
                if current is None:
                    raise NotFoundException(f"No document to update: {path}")
                staged[path] = {**current, **resolve_server_values(op.data)}
            else:
                staged[path] = None

        for path, doc in staged.items():
            if doc is None:
                self._docs.pop(path, None)
            else:
                self._docs[path] = deepcopy(doc)
            self._versions[path] = self._versions.get(path, 0) + 1

        if writes:
            log_debug("Memory store applied writes", extra={"paths": list(staged)})

        for path in staged:
            self._notify(DocumentRef(path))

    def _notify(self, ref: DocumentRef):
        snapshot = self.snapshot(ref)
        for callback in list(self._listeners.get(ref.path, [])):
            try:
                callback(deepcopy(snapshot))
            except Exception as e:
                log_error("Document listener failed", extra={"path": ref.path, "error": str(e)}, exc_info=True)
