"""Pydantic schemas for frames and messages received from clients."""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import FileDescriptor, Message


class Envelope(BaseModel):
    """One WebSocket frame: {"event": ..., "data": ...}."""

    event: str = Field(min_length=1)
    data: Any = None


class FileDescriptorPayload(BaseModel):
    """Descriptor returned by POST /upload and echoed back in file messages."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(min_length=1)
    original_name: str = Field(alias="originalName", min_length=1)
    size: int = Field(ge=0)
    mimetype: str
    path: str = Field(min_length=1)

    def to_descriptor(self) -> FileDescriptor:
        return FileDescriptor(
            filename=self.filename,
            original_name=self.original_name,
            size=self.size,
            mimetype=self.mimetype,
            path=self.path,
        )


class _MessagePayload(BaseModel):
    timestamp: str

    @field_validator("timestamp")
    @classmethod
    def _iso_timestamp(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError("timestamp must be ISO-8601") from e
        return value


class TextMessagePayload(_MessagePayload):
    """Text variant of a client message."""

    type: Literal["text"]
    text: str

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value

    def to_message(self) -> Message:
        return Message.text_message(self.text, self.timestamp)


class FileMessagePayload(_MessagePayload):
    """File variant of a client message."""

    type: Literal["file"]
    file: FileDescriptorPayload

    def to_message(self) -> Message:
        return Message.file_message(self.file.to_descriptor(), self.timestamp)


MessagePayload = Annotated[
    Union[TextMessagePayload, FileMessagePayload],
    Field(discriminator="type"),
]
