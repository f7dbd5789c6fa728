"""Service-wide configuration document persisted in config.json."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConfigDocument(BaseModel):
    """
    Single mutable settings record.

    Read before almost every interaction and written rarely (admin toggles
    and edits of the required-membership list).
    """

    model_config = ConfigDict(extra="ignore")

    online: bool = Field(default=True, description="When false, non-admins get a maintenance reply")
    admin_notifications: bool = Field(default=False, description="Forward service events to the admin")
    required_groups: list[str] = Field(default_factory=list, description="Channels a user must be a member of")

    @field_validator("required_groups")
    @classmethod
    def deduplicate_groups(cls, v: list[str]) -> list[str]:
        """The list has set semantics; keep first occurrences only."""
        return list(dict.fromkeys(v))
