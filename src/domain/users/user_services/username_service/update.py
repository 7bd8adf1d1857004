# domain/users/user_services/username_service/update.py
from typing import Optional

from common.exceptions.base_exception import ConflictException, NotFoundException
from common.logging.logger import log_info
from common.translations.messages import Language, get_message
from infrastructure.database.document_store import DocumentStore, SERVER_TIMESTAMP, Transaction
from infrastructure.database.paths import user_doc, username_doc


async def update_username(store: DocumentStore, user_id: str, username: str, language: Language = "en") -> Optional[str]:
    """
    Point the user at ``username`` and move its claim in one transaction.

    The ``usernames/{username}`` claim is read inside the transaction, so two
    users racing for the same name cannot both commit. The previous claim, if
    any, is released in the same commit.

    Returns:
        The username held before the change (None if there was none).
    """
    username = username.lower()
    ref = user_doc(user_id)
    claim_ref = username_doc(username)

    async def _update(txn: Transaction) -> Optional[str]:
        existing = await txn.get(ref)
        if existing is None:
            raise NotFoundException(get_message("user.not_found", language))

        claim = await txn.get(claim_ref)
        if claim is not None and claim.get("user_id") != user_id:
            raise ConflictException(get_message("username.taken", language))

        previous = existing.get("username")
        if previous == username and claim is not None:
            return previous

        txn.set(claim_ref, {"user_id": user_id, "username": username, "claimed_at": SERVER_TIMESTAMP})
        if previous and previous != username:
            txn.delete(username_doc(previous))
        txn.update(ref, {"username": username, "updated_at": SERVER_TIMESTAMP})
        return previous

    previous = await store.run_transaction(_update)
    if previous and previous != username:
        log_info("Username claim released", extra={"user_id": user_id, "username": previous})
    return previous
