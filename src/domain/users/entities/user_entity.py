from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_counter(value: Any) -> int:
    """Stored counters may be missing or corrupt; anything that is not a non-negative int reads as 0."""
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(value, 0)


class UserAccount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = "New User"
    username: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None

    # Counters
    followers: int = Field(0, ge=0)
    following: int = Field(0, ge=0)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("followers", "following", mode="before")
    @classmethod
    def _clamp_counter(cls, value: Any) -> int:
        return to_counter(value)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> str:
        return value or "New User"
