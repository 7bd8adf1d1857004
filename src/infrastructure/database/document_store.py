# File: infrastructure/database/document_store.py

import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, NamedTuple, Optional, Tuple, TypeVar

from common.config.settings import settings
from common.exceptions.base_exception import TransactionConflictException
from common.logging.logger import log_error, log_info, log_warning

T = TypeVar("T")

Document = Dict[str, Any]
SnapshotCallback = Callable[[Optional[Document]], None]


class _ServerTimestamp:
    """Placeholder replaced by the store's clock when a write is applied."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def resolve_server_values(data: Document) -> Document:
    now = datetime.now(timezone.utc)
    return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in data.items()}


@dataclass(frozen=True)
class DocumentRef:
    """
    Slash separated document path such as ``users/bob/followers/alice``.

    Collection segments are joined with ``.`` to name the backing collection
    (``users.followers``); id segments are joined with ``/`` to form the key.
    """

    path: str

    def __post_init__(self):
        segments = self.path.split("/")
        if len(segments) % 2 != 0 or any(not segment.strip() for segment in segments):
            raise ValueError(f"Invalid document path: {self.path!r}")

    @classmethod
    def of(cls, *segments: str) -> "DocumentRef":
        for segment in segments:
            if not isinstance(segment, str) or not segment or "/" in segment:
                raise ValueError(f"Invalid path segment: {segment!r}")
        return cls("/".join(segments))

    @property
    def segments(self) -> List[str]:
        return self.path.split("/")

    @property
    def collection(self) -> str:
        return ".".join(self.segments[0::2])

    @property
    def key(self) -> str:
        return "/".join(self.segments[1::2])

    @property
    def id(self) -> str:
        return self.segments[-1]

    def __str__(self) -> str:
        return self.path


class WriteOp(NamedTuple):
    kind: Literal["set", "update", "delete"]
    ref: DocumentRef
    data: Optional[Document] = None


class TransactionRetry(Exception):
    """Raised by a backend when an attempt lost a race and must restart from fresh reads."""


class Subscription:
    """
    Handle returned by ``DocumentStore.subscribe``.

    Backends that open their change feed in the background pass ``ready``;
    ``wait_ready`` returns once changes are being delivered, so a read made
    afterwards cannot miss a write.
    """

    def __init__(self, cancel: Callable[[], None], ready: Optional[asyncio.Event] = None):
        self._cancel = cancel
        self._ready = ready
        self.active = True

    async def wait_ready(self, timeout: Optional[float] = None):
        if self._ready is not None:
            await asyncio.wait_for(self._ready.wait(), timeout)

    def unsubscribe(self):
        if self.active:
            self.active = False
            self._cancel()


class Transaction(ABC):
    """
    Read set followed by a buffered write set.

    Reads must happen before any write is queued; queued writes are applied
    all-or-nothing when the owning store commits the attempt.
    """

    def __init__(self):
        self.writes: List[WriteOp] = []
        self.reads: List[DocumentRef] = []

    async def get(self, ref: DocumentRef) -> Optional[Document]:
        if self.writes:
            raise RuntimeError("Transaction reads must be executed before writes.")
        self.reads.append(ref)
        return await self._read(ref)

    def set(self, ref: DocumentRef, data: Document):
        self.writes.append(WriteOp("set", ref, dict(data)))

    def update(self, ref: DocumentRef, fields: Document):
        self.writes.append(WriteOp("update", ref, dict(fields)))

    def delete(self, ref: DocumentRef):
        self.writes.append(WriteOp("delete", ref))

    @abstractmethod
    async def _read(self, ref: DocumentRef) -> Optional[Document]:
        ...


class DocumentStore(ABC):
    """Keyed document CRUD plus an atomic multi-document transaction primitive."""

    backend: str = "abstract"

    def __init__(self, max_attempts: Optional[int] = None, retry_base_delay: Optional[float] = None):
        self.max_attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
        self.retry_base_delay = settings.TRANSACTION_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay

    @abstractmethod
    async def get(self, ref: DocumentRef) -> Optional[Document]:
        ...

    @abstractmethod
    async def set(self, ref: DocumentRef, data: Document) -> None:
        ...

    @abstractmethod
    async def update(self, ref: DocumentRef, fields: Document) -> None:
        ...

    @abstractmethod
    async def delete(self, ref: DocumentRef) -> None:
        ...

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: Optional[Document] = None,
        limit: Optional[int] = None,
        sort: Optional[Tuple[str, int]] = None,
    ) -> List[Document]:
        ...

    @abstractmethod
    def subscribe(self, ref: DocumentRef, callback: SnapshotCallback) -> Subscription:
        """Invoke ``callback`` with the new document (or None once deleted) on every change."""

    @abstractmethod
    async def _attempt(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """Run ``fn`` once inside a fresh transaction and commit; raise TransactionRetry on conflict."""

    async def close(self) -> None:
        return None

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]], max_attempts: Optional[int] = None) -> T:
        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                result = await self._attempt(fn)
                if attempt > 1:
                    log_info("Transaction committed after retry", extra={"backend": self.backend, "attempt": attempt})
                return result
            except TransactionRetry as e:
                log_warning("Transaction conflict", extra={
                    "backend": self.backend,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "error": str(e),
                })
                if attempt < attempts:
                    await asyncio.sleep(self._backoff(attempt))

        log_error("Transaction retries exhausted", extra={"backend": self.backend, "max_attempts": attempts})
        raise TransactionConflictException()

    def _backoff(self, attempt: int) -> float:
        if not self.retry_base_delay:
            return 0
        return self.retry_base_delay * (2 ** (attempt - 1)) * random.uniform(0.5, 1.0)
