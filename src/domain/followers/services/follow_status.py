# File: domain/followers/services/follow_status.py

import asyncio
from typing import Callable, Optional

from common.config.settings import settings
from common.exceptions.base_exception import ServiceUnavailableException
from common.logging.logger import log_debug, log_error
from common.translations.messages import Language, get_message
from domain.followers.entities.follower_entity import FollowStatus
from domain.followers.services.toggle_follow import toggle_follow
from infrastructure.database.document_store import Document, DocumentStore, Subscription
from infrastructure.database.paths import follower_doc

INDETERMINATE = FollowStatus(is_following=False, is_loading=True)


async def check_follow_status(
    store: DocumentStore,
    target_user_id: Optional[str],
    follower_user_id: Optional[str],
    timeout: Optional[float] = None,
    language: Language = "en",
) -> FollowStatus:
    """
    Report whether ``follower_user_id`` follows ``target_user_id`` without writing anything.

    A missing id yields the indeterminate status (not following, still
    loading) rather than a confirmed ``False``.
    """
    if not target_user_id or not follower_user_id:
        return INDETERMINATE

    timeout = timeout or settings.FOLLOW_STATUS_TIMEOUT
    try:
        marker = await asyncio.wait_for(store.get(follower_doc(target_user_id, follower_user_id)), timeout)
    except asyncio.TimeoutError:
        log_error("Follow status read timed out", extra={
            "target_user_id": target_user_id,
            "follower_user_id": follower_user_id,
            "timeout": timeout,
        })
        raise ServiceUnavailableException(get_message("server.unavailable", language))

    return FollowStatus(is_following=marker is not None, is_loading=False)


class FollowStatusWatcher:
    """
    Live follow status for one (target, follower) pair.

    Holds the current value plus a loading flag, keeps it in sync with the
    marker document through the store subscription and exposes ``toggle``
    as the mutation function.
    """

    def __init__(
        self,
        store: DocumentStore,
        target_user_id: Optional[str],
        follower_user_id: Optional[str],
        on_change: Optional[Callable[[FollowStatus], None]] = None,
        timeout: Optional[float] = None,
        language: Language = "en",
    ):
        self.store = store
        self.target_user_id = target_user_id
        self.follower_user_id = follower_user_id
        self.on_change = on_change
        self.timeout = timeout
        self.language = language
        self._status = INDETERMINATE
        self._subscription: Optional[Subscription] = None
        self._seen_change = False

    @property
    def status(self) -> FollowStatus:
        return self._status

    @property
    def is_following(self) -> bool:
        return self._status.is_following

    @property
    def is_loading(self) -> bool:
        return self._status.is_loading

    async def start(self) -> FollowStatus:
        if not self.target_user_id or not self.follower_user_id:
            self._publish(INDETERMINATE)
            return self._status

        if self._subscription is None:
            ref = follower_doc(self.target_user_id, self.follower_user_id)
            self._subscription = self.store.subscribe(ref, self._on_snapshot)
            await self._wait_for_feed()

        initial = await check_follow_status(
            self.store, self.target_user_id, self.follower_user_id, timeout=self.timeout, language=self.language,
        )
        # A change delivered while the read was in flight is newer than the read.
        if not self._seen_change:
            self._publish(initial)
        return self._status

    async def _wait_for_feed(self):
        timeout = self.timeout or settings.FOLLOW_STATUS_TIMEOUT
        try:
            await self._subscription.wait_ready(timeout)
        except asyncio.TimeoutError:
            log_error("Follow status feed did not open", extra={
                "target_user_id": self.target_user_id,
                "follower_user_id": self.follower_user_id,
                "timeout": timeout,
            })
            self.stop()
            raise ServiceUnavailableException(get_message("server.unavailable", self.language))

    def stop(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def toggle(self) -> bool:
        now_following = await toggle_follow(
            self.store, self.target_user_id, self.follower_user_id, language=self.language,
        )
        self._publish(FollowStatus(is_following=now_following, is_loading=False))
        return now_following

    async def __aenter__(self) -> "FollowStatusWatcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.stop()

    def _on_snapshot(self, marker: Optional[Document]):
        self._seen_change = True
        self._publish(FollowStatus(is_following=marker is not None, is_loading=False))

    def _publish(self, status: FollowStatus):
        if status == self._status and not status.is_loading:
            return
        self._status = status
        log_debug("Follow status changed", extra={
            "target_user_id": self.target_user_id,
            "follower_user_id": self.follower_user_id,
            "is_following": status.is_following,
            "is_loading": status.is_loading,
        })
        if self.on_change is not None:
            self.on_change(status)
