from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.database.document_store import SERVER_TIMESTAMP


class FollowState(str, Enum):
    NOT_FOLLOWING = "not_following"
    FOLLOWING = "following"


class FollowMarker(BaseModel):
    """Existence of users/{target_user_id}/followers/{follower_user_id} means the follower follows the target."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    target_user_id: str
    follower_user_id: str
    followed_at: Optional[datetime] = Field(None, alias="followedAt")

    def to_document(self) -> dict:
        return {
            "target_user_id": self.target_user_id,
            "follower_user_id": self.follower_user_id,
            "followedAt": self.followed_at or SERVER_TIMESTAMP,
        }


class FollowStatus(BaseModel):
    is_following: bool = Field(False, description="Whether the follower currently follows the target")
    is_loading: bool = Field(True, description="True while the value is still resolving")

    @property
    def state(self) -> FollowState:
        return FollowState.FOLLOWING if self.is_following else FollowState.NOT_FOLLOWING
