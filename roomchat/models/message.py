"""
Message model and its client-facing DTO.

Deletion is a tombstone: the row stays so that replies can still name
the author of the message they answered.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Message(BaseModel):
    """A persisted chat message."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)

    id: str = Field(..., description="Message unique identifier")
    room_id: str
    author_id: str
    content: str
    created_at: int = Field(..., description="Epoch milliseconds")
    edited_at: int | None = None
    reply_to: str | None = Field(default=None, description="Id of the message this one answers")
    is_deleted: bool = False


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageAuthor(_WireModel):
    id: str
    username: str
    avatar: str


class ReplyPreview(_WireModel):
    id: str
    author_username: str
    content_preview: str


class MessageDTO(_WireModel):
    """
    Message as delivered to clients.

    Field order is part of the wire format.
    """

    id: str
    room_id: str
    author: MessageAuthor
    content: str
    created_at: int
    reply_to: ReplyPreview | None = None
    edited_at: int | None = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
