from common.exceptions.base_exception import BadRequestException
from common.translations.messages import Language, get_message

# Reserved usernames that would shadow app routes or staff accounts
RESERVED_USERNAMES = {
    "admin",
    "administrator",
    "root",
    "system",
    "support",
    "login",
    "logout",
    "auth",
    "api",
    "me",
    "username",
    "profile",
    "settings",
    "search",
    "store",
    "events",
    "groups",
    "locations",
    "moderation",
    "followers",
    "following",
    "signup",
    "signin",
    "owner",
}

def check_reserved_username(username: str, language: Language = "en"):
    if username.lower() in RESERVED_USERNAMES:
        raise BadRequestException(get_message("username.reserved", language))

    return True
