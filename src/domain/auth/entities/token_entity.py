# File: domain/auth/entities/token_entity.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenPayload(BaseModel):
    """Access token claims issued by the identity provider."""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., min_length=1, description="Subject identifier (user ID)")
    role: str = Field("user", description="User role (e.g., user, admin)")
    token_type: str = Field("access", description="Token type")
    jti: str = Field(..., description="JWT identifier")
    iat: Optional[int] = Field(default=None, description="Issued-at timestamp")
    exp: int = Field(..., description="Expiration timestamp")
    session_id: Optional[str] = Field(default=None, description="Session identifier")

    # Role claims
    admin: bool = Field(False, description="Administrator claim")
    owner: bool = Field(False, description="Application owner claim")

    # Profile claims used on first sign-in
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None)
    picture: Optional[str] = Field(default=None, description="Avatar URL")


class CurrentUser(BaseModel):
    user_id: str
    role: str = "user"
    is_admin: bool = False
    is_owner: bool = False
    session_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "CurrentUser":
        return cls(
            user_id=payload.sub,
            role=payload.role,
            is_admin=payload.admin or payload.role == "admin",
            is_owner=payload.owner,
            session_id=payload.session_id,
            name=payload.name,
            email=payload.email,
            picture=payload.picture,
        )
