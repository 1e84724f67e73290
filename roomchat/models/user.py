"""
User model for RoomChat.

Users are identified on the wire by id; usernames double as a soft
identity and are matched case-insensitively when someone joins.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AVATAR_COLORS = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E9",
    "#F8B500",
    "#FF6F61",
)


class UserStatus(str, Enum):
    """Presence status."""

    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"


class User(BaseModel):
    """A chat participant."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(..., description="User unique identifier")
    username: str = Field(..., description="Display name")
    avatar: str = Field(..., description="Avatar colour")
    status: UserStatus = Field(default=UserStatus.ONLINE, description="Presence status")
    joined_at: int = Field(..., description="Creation time, epoch milliseconds")
    last_seen: int | None = Field(default=None, description="Last disconnect time, epoch milliseconds")

    @property
    def is_online(self) -> bool:
        return self.status != UserStatus.OFFLINE.value

    def to_wire(self) -> dict:
        """Client-facing representation."""
        return self.model_dump(by_alias=True, exclude_none=True)


def avatar_color_for(username: str) -> str:
    """Pick a stable avatar colour from the sum of the username's code points."""
    return AVATAR_COLORS[sum(ord(ch) for ch in username) % len(AVATAR_COLORS)]
