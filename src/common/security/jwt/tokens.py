from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from jose import jwt

from common.config.settings import settings
from common.logging.logger import log_info


def generate_jti() -> str:
    """Generate a unique JWT identifier (jti)."""
    return str(uuid4())


def get_timestamps(expires_in_minutes: int = 0) -> tuple[int, int]:
    """Calculate issued-at (iat) and expiration (exp) timestamps."""
    now = datetime.now(timezone.utc)
    iat = int(now.timestamp())
    exp = int((now + timedelta(minutes=expires_in_minutes)).timestamp())
    return iat, exp


def generate_access_token(
    user_id: str,
    role: str = "user",
    admin: bool = False,
    owner: bool = False,
    name: Optional[str] = None,
    email: Optional[str] = None,
    picture: Optional[str] = None,
    session_id: Optional[str] = None,
    expires_in_minutes: Optional[int] = None,
) -> str:
    """
    Mint an access token the way the identity provider does.

    Used by development tooling and tests; production tokens come from the
    external identity provider signed with the same secret.
    """
    iat, exp = get_timestamps(expires_in_minutes if expires_in_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "iss": settings.TOKEN_ISSUER,
        "aud": settings.TOKEN_AUDIENCE,
        "sub": user_id,
        "jti": generate_jti(),
        "role": role,
        "token_type": "access",
        "iat": iat,
        "exp": exp,
        "admin": admin,
        "owner": owner,
    }
    optional_claims = {"name": name, "email": email, "picture": picture, "session_id": session_id}
    payload.update({key: value for key, value in optional_claims.items() if value is not None})

    token = jwt.encode(payload, settings.ACCESS_SECRET, algorithm=settings.ALGORITHM)
    log_info("Access token generated", extra={"jti": payload["jti"], "user_id": user_id})
    return token
