"""
Room model for RoomChat.

A room's participant set is the persisted record of who belongs to the
room. It is distinct from the live subscription index kept by the
connection registry, which only tracks open connections.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Room(BaseModel):
    """A named chat room."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Room identifier, e.g. 'general'")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Short description")
    created_at: int = Field(..., description="Creation time, epoch milliseconds")
    participants: set[str] = Field(default_factory=set, description="User ids belonging to the room")


class RoomInfo(BaseModel):
    """Summary of a room as listed to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str
    participant_count: int

    @classmethod
    def from_room(cls, room: Room) -> "RoomInfo":
        return cls(
            id=room.id,
            name=room.name,
            description=room.description,
            participant_count=len(room.participants),
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


DEFAULT_ROOMS: tuple[tuple[str, str, str], ...] = (
    ("general", "General", "Welcome to the general chat room!"),
    ("random", "Random", "Off-topic discussions and fun stuff"),
    ("tech", "Tech", "Technology discussions and help"),
)
