"""
User model.

Users are created on their first interaction with the bot and are never
hard-deleted; only the ban, admin and language fields change afterwards.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """A chat-platform user known to the watcher service."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    user_id: int = Field(..., description="Stable external identity")
    display_name: str = Field(default="", description="Display name at first interaction")
    is_banned: bool = Field(default=False, description="Banned users are refused by the access gate")
    is_admin: bool = Field(default=False, description="Admins bypass membership checks")
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="First interaction time")
    language: str | None = Field(default=None, description="Preferred language code, unset until chosen")

    def status(self) -> "SubjectStatus":
        """Project the fields the access gate needs."""
        return SubjectStatus(is_banned=self.is_banned, is_admin=self.is_admin, language=self.language)


@dataclass(frozen=True)
class SubjectStatus:
    """Ban/admin/language projection of a User held in the subject-status cache."""

    is_banned: bool
    is_admin: bool
    language: str | None
