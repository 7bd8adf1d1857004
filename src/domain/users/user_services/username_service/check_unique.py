# domain/users/user_services/username_service/check_unique.py
from typing import Optional

from common.exceptions.base_exception import ConflictException
from common.logging.logger import log_info
from common.translations.messages import Language, get_message
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.paths import USERS_COLLECTION


async def check_username_unique(
    store: DocumentStore,
    username: str,
    language: Language = "en",
    user_id: Optional[str] = None,
) -> bool:
    """Cheap pre-check against profiles; the claim written by ``update_username`` is what enforces it."""
    match = await store.find(USERS_COLLECTION, {"username": username.lower()}, limit=1)
    if match and match[0]["id"] != user_id:
        log_info("Username already taken", extra={"username": username})
        raise ConflictException(get_message("username.taken", language))

    return True
