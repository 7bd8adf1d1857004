# File: domain/followers/services/reconcile_counters.py

from pydantic import BaseModel

from common.exceptions.base_exception import NotFoundException
from common.logging.logger import log_info, log_warning
from common.translations.messages import Language, get_message
from domain.users.entities.user_entity import to_counter
from infrastructure.database.document_store import DocumentStore, Transaction
from infrastructure.database.paths import FOLLOWERS_COLLECTION, user_doc


class CounterDrift(BaseModel):
    before: int
    after: int


class ReconcileResult(BaseModel):
    user_id: str
    followers: CounterDrift
    following: CounterDrift

    @property
    def changed(self) -> bool:
        return self.followers.before != self.followers.after or self.following.before != self.following.after


async def reconcile_user_counters(store: DocumentStore, user_id: str, language: Language = "en") -> ReconcileResult:
    """
    Recount the follow markers of ``user_id`` and rewrite its counters when they drifted.

    Marker counts are taken outside the transaction, so this is meant for
    quiet periods rather than under live follow traffic.
    """
    followers = len(await store.find(FOLLOWERS_COLLECTION, {"target_user_id": user_id}))
    following = len(await store.find(FOLLOWERS_COLLECTION, {"follower_user_id": user_id}))
    ref = user_doc(user_id)

    async def _reconcile(txn: Transaction) -> ReconcileResult:
        user = await txn.get(ref)
        if user is None:
            raise NotFoundException(get_message("user.not_found", language))

        result = ReconcileResult(
            user_id=user_id,
            followers=CounterDrift(before=to_counter(user.get("followers")), after=followers),
            following=CounterDrift(before=to_counter(user.get("following")), after=following),
        )
        if result.changed or user.get("followers") != followers or user.get("following") != following:
            txn.update(ref, {"followers": followers, "following": following})
        return result

    result = await store.run_transaction(_reconcile)

    if result.changed:
        log_warning("Follow counters drifted and were rewritten", extra=result.model_dump())
    else:
        log_info("Follow counters consistent", extra={"user_id": user_id})
    return result
