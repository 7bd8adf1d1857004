# File: domain/users/user_services/profile_service.py

from typing import Any, Dict, Optional, Tuple

from common.exceptions.base_exception import BadRequestException, NotFoundException
from common.logging.logger import log_info
from common.translations.messages import Language, get_message
from domain.users.entities.user_entity import UserAccount
from infrastructure.database.document_store import DocumentStore, SERVER_TIMESTAMP, Transaction
from infrastructure.database.paths import USERS_COLLECTION, user_doc

EDITABLE_FIELDS = ("name", "bio", "avatar_url")


async def ensure_user_profile(
    store: DocumentStore,
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Tuple[UserAccount, bool]:
    """
    Create ``users/{user_id}`` on first sign-in.

    The username is left unset so the client can prompt for one. An existing
    profile is returned untouched.

    Returns:
        (UserAccount, bool): the profile and whether it was created now.
    """
    ref = user_doc(user_id)

    async def _ensure(txn: Transaction) -> Tuple[dict, bool]:
        existing = await txn.get(ref)
        if existing is not None:
            return existing, False

        profile = {
            "name": name or "New User",
            "email": email,
            "avatar_url": avatar_url,
            "followers": 0,
            "following": 0,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }
        txn.set(ref, profile)
        return profile, True

    _, created = await store.run_transaction(_ensure)
    if created:
        log_info("User profile created", extra={"user_id": user_id})

    # Re-read so server timestamps come back resolved.
    return await get_user_profile(store, user_id), created


async def update_user_profile(
    store: DocumentStore,
    user_id: str,
    changes: Dict[str, Any],
    language: Language = "en",
) -> UserAccount:
    """Apply edits to the free-form profile fields. Counters, email and username are not editable here."""
    fields = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    if not fields:
        raise BadRequestException(get_message("user.no_changes", language))

    ref = user_doc(user_id)

    async def _update(txn: Transaction):
        if await txn.get(ref) is None:
            raise NotFoundException(get_message("user.not_found", language))
        txn.update(ref, {**fields, "updated_at": SERVER_TIMESTAMP})

    await store.run_transaction(_update)
    log_info("User profile updated", extra={"user_id": user_id, "fields": sorted(fields)})
    return await get_user_profile(store, user_id, language=language)


async def get_user_profile(store: DocumentStore, user_id: str, language: Language = "en") -> UserAccount:
    doc = await store.get(user_doc(user_id))
    if doc is None:
        raise NotFoundException(get_message("user.not_found", language))
    return UserAccount(**doc)


async def find_user_by_username(store: DocumentStore, username: str, language: Language = "en") -> UserAccount:
    docs = await store.find(USERS_COLLECTION, {"username": username.strip().lower()}, limit=1)
    if not docs:
        raise NotFoundException(get_message("user.not_found", language))
    return UserAccount(**docs[0])
