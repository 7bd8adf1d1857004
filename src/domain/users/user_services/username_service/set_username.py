# domain/users/user_services/username_service/set_username.py
from common.logging.logger import log_info
from common.translations.messages import Language
from domain.users.user_services.username_service.check_unique import check_username_unique
from domain.users.user_services.username_service.reserve import check_reserved_username
from domain.users.user_services.username_service.update import update_username
from domain.users.user_services.username_service.validate import validate_username
from infrastructure.database.document_store import DocumentStore


async def set_username(store: DocumentStore, user_id: str, username: str, language: Language = "en") -> str:
    """Validate and assign (or change) a unique username; returns the stored (lowercased) form."""
    normalized = validate_username(username, language)
    check_reserved_username(normalized, language)
    await check_username_unique(store, normalized, language, user_id=user_id)
    previous = await update_username(store, user_id, normalized, language)

    if previous == normalized:
        log_info("Username unchanged", extra={"user_id": user_id, "username": normalized})
    else:
        log_info("Username set successfully", extra={"user_id": user_id, "username": normalized, "previous": previous})
    return normalized
