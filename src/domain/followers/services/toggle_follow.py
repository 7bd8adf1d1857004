# File: domain/followers/services/toggle_follow.py

from typing import Optional

from common.exceptions.base_exception import (
    InvalidOperationException,
    NotFoundException,
    TransactionConflictException,
    UnauthorizedException,
)
from common.logging.logger import log_error, log_info, log_warning
from common.translations.messages import Language, get_message
from domain.followers.entities.follower_entity import FollowMarker
from domain.users.entities.user_entity import to_counter
from infrastructure.database.document_store import DocumentStore, Transaction
from infrastructure.database.paths import follower_doc, user_doc


def increment(value) -> int:
    return to_counter(value) + 1


def decrement(value) -> int:
    return max(to_counter(value) - 1, 0)


async def toggle_follow(
    store: DocumentStore,
    target_user_id: str,
    follower_user_id: Optional[str],
    language: Language = "en",
) -> bool:
    """
    Flip whether ``follower_user_id`` follows ``target_user_id``.

    The marker document and both counters are read and written inside a
    single store transaction, so concurrent toggles on the same pair are
    serialized by the store's conflict retry. ``follower_user_id`` must come
    from a verified session.

    Returns:
        bool: True if the follower now follows the target, False otherwise.

    Raises:
        UnauthorizedException: No caller identity.
        InvalidOperationException: Caller tried to follow themselves.
        NotFoundException: Either account does not exist.
        TransactionConflictException: Retries exhausted under contention.
        ServiceUnavailableException: Store I/O failure.
    """
    if not follower_user_id:
        raise UnauthorizedException(get_message("auth.unauthenticated", language))

    if follower_user_id == target_user_id:
        log_warning("Self follow rejected", extra={"user_id": follower_user_id})
        raise InvalidOperationException(get_message("follow.self", language))

    follower_ref = user_doc(follower_user_id)
    target_ref = user_doc(target_user_id)
    marker_ref = follower_doc(target_user_id, follower_user_id)

    async def _toggle(txn: Transaction) -> bool:
        follower = await txn.get(follower_ref)
        target = await txn.get(target_ref)
        marker = await txn.get(marker_ref)

        if follower is None or target is None:
            log_error("Follow toggle references a missing account", extra={
                "target_user_id": target_user_id,
                "follower_user_id": follower_user_id,
                "target_exists": target is not None,
                "follower_exists": follower is not None,
            })
            raise NotFoundException(get_message("user.not_found", language))

        if marker is not None:
            txn.delete(marker_ref)
            txn.update(target_ref, {"followers": decrement(target.get("followers"))})
            txn.update(follower_ref, {"following": decrement(follower.get("following"))})
            return False

        txn.set(marker_ref, FollowMarker(target_user_id=target_user_id, follower_user_id=follower_user_id).to_document())
        txn.update(target_ref, {"followers": increment(target.get("followers"))})
        txn.update(follower_ref, {"following": increment(follower.get("following"))})
        return True

    try:
        now_following = await store.run_transaction(_toggle)
    except TransactionConflictException:
        raise TransactionConflictException(get_message("follow.conflict", language))

    log_info("Follow toggled", extra={
        "target_user_id": target_user_id,
        "follower_user_id": follower_user_id,
        "following": now_following,
    })
    return now_following
