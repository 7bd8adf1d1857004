import re

from common.exceptions.base_exception import BadRequestException
from common.translations.messages import Language, get_message

USERNAME_REGEX = re.compile(r"^[a-z0-9._]{3,30}$")


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def is_valid_username(username: str) -> bool:
    """Letters, digits, dots and underscores; no leading/trailing or doubled separators."""
    if not USERNAME_REGEX.match(username):
        return False
    if username[0] in "._" or username[-1] in "._":
        return False
    return "__" not in username and ".." not in username


def validate_username(username: str, language: Language = "en") -> str:
    normalized = normalize_username(username)
    if not is_valid_username(normalized):
        raise BadRequestException(get_message("username.invalid", language))
    return normalized
