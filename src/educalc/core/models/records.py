"""
USER MODELS - Session user record and feedback records
"""

from datetime import datetime
from typing import List, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .calculations import History, new_record_id

GUEST_REGISTER_NUMBER = "GUEST-USER"
GUEST_NAME = "Guest User"
DEFAULT_SCHOLAR_NAME = "Scholar"


class UserRecord(BaseModel):
    """The acting user's session state"""

    id: str = Field(..., description="Stable per-user identifier (register number for accounts)")
    register_number: str = Field(..., description="University register number")
    name: str = Field(..., description="Display name")
    stream: str = Field("", description="Home department / stream")
    role: Literal["student", "admin"] = "student"
    history: History = Field(default_factory=History)
    badges: List[str] = Field(default_factory=list)
    is_guest: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def new_guest(cls) -> "UserRecord":
        return cls(
            id=f"guest-{uuid4().hex[:9]}",
            register_number=GUEST_REGISTER_NUMBER,
            name=GUEST_NAME,
            is_guest=True,
        )

    def with_history(self, history: History) -> "UserRecord":
        return self.model_copy(update={"history": history})


class FeedbackRecord(BaseModel):
    """Star rating plus comment left by a user"""

    id: str = Field(default_factory=new_record_id)
    user_id: str
    user_name: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("comment", mode="before")
    @classmethod
    def strip_comment(cls, v):
        return v.strip() if isinstance(v, str) else v


__all__ = [
    "GUEST_REGISTER_NUMBER",
    "GUEST_NAME",
    "DEFAULT_SCHOLAR_NAME",
    "UserRecord",
    "FeedbackRecord",
]
