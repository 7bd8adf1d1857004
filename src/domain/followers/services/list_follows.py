# File: domain/followers/services/list_follows.py

from typing import List

from common.logging.logger import log_info
from domain.followers.entities.follower_entity import FollowMarker
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.paths import FOLLOWERS_COLLECTION

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def _clamp_limit(limit: int) -> int:
    return max(1, min(limit or DEFAULT_LIMIT, MAX_LIMIT))


async def list_followers(store: DocumentStore, user_id: str, limit: int = DEFAULT_LIMIT) -> List[FollowMarker]:
    """Markers targeting ``user_id``, newest first."""
    docs = await store.find(
        FOLLOWERS_COLLECTION,
        {"target_user_id": user_id},
        limit=_clamp_limit(limit),
        sort=("followedAt", -1),
    )
    log_info("Followers listed", extra={"user_id": user_id, "count": len(docs)})
    return [FollowMarker(**doc) for doc in docs]


async def list_following(store: DocumentStore, user_id: str, limit: int = DEFAULT_LIMIT) -> List[FollowMarker]:
    """Markers whose follower is ``user_id``, newest first."""
    docs = await store.find(
        FOLLOWERS_COLLECTION,
        {"follower_user_id": user_id},
        limit=_clamp_limit(limit),
        sort=("followedAt", -1),
    )
    log_info("Following listed", extra={"user_id": user_id, "count": len(docs)})
    return [FollowMarker(**doc) for doc in docs]
