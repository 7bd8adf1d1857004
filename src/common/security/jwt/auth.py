# File: common/security/jwt/auth.py
from typing import Optional

from fastapi import Depends, Request

from common.exceptions.base_exception import ForbiddenException, UnauthorizedException
from common.logging.logger import log_info, log_warning
from common.security.jwt.decode import decode_token
from common.translations.messages import get_message
from domain.auth.entities.token_entity import CurrentUser


def get_token_from_header(request: Request) -> Optional[str]:
    """Extract the Bearer token from the Authorization header, None if the header is absent."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedException("Missing or invalid Authorization header")
    return token.strip()


def authenticate_token(token: str) -> CurrentUser:
    """Verify a bearer token and return the caller it identifies."""
    current_user = CurrentUser.from_payload(decode_token(token, token_type="access"))
    log_info("User authorized", extra={
        "user_id": current_user.user_id,
        "role": current_user.role,
        "session_id": current_user.session_id,
    })
    return current_user


async def get_current_user(request: Request) -> CurrentUser:
    """Authenticate and return the current user based on the provided token."""
    token = get_token_from_header(request)
    if token is None:
        raise UnauthorizedException("Missing or invalid Authorization header")
    return authenticate_token(token)


async def get_optional_user(request: Request) -> Optional[CurrentUser]:
    """Like get_current_user, but anonymous callers yield None. A bad token is still rejected."""
    token = get_token_from_header(request)
    if token is None:
        return None
    return authenticate_token(token)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not (current_user.is_admin or current_user.is_owner):
        log_warning("Non-admin attempted an admin operation", extra={"user_id": current_user.user_id})
        raise ForbiddenException(get_message("auth.forbidden"))
    return current_user
