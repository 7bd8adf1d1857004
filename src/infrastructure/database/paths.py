# File: infrastructure/database/paths.py
# Canonical layout: users/{user_id}, users/{target_user_id}/followers/{follower_user_id}
# and usernames/{username} (one claim per taken username)

from infrastructure.database.document_store import DocumentRef

USERS = "users"
FOLLOWERS = "followers"
USERNAMES = "usernames"

USERS_COLLECTION = USERS
FOLLOWERS_COLLECTION = f"{USERS}.{FOLLOWERS}"


def user_doc(user_id: str) -> DocumentRef:
    return DocumentRef.of(USERS, user_id)


def follower_doc(target_user_id: str, follower_user_id: str) -> DocumentRef:
    return DocumentRef.of(USERS, target_user_id, FOLLOWERS, follower_user_id)


def username_doc(username: str) -> DocumentRef:
    return DocumentRef.of(USERNAMES, username)
