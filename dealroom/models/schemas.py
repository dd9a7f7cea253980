"""Pydantic models for conversations, messages and document previews.

The streaming flag on ``Message`` is excluded from serialisation so a
half-revealed reply can never be written back to the backend.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatScope(str, Enum):
    """What a conversation is about: a deal or a portfolio company."""

    DEAL = "deal"
    COMPANY = "company"


class Message(BaseModel):
    """A single chat message in a conversation.

    Attributes:
        id: Durable identifier, or a temporary token while streaming.
        conversation_id: Owning conversation.
        role: The speaker (user, assistant, or system).
        content: The message text, growing while streaming.
        attachments: Attachment descriptors stored with the message.
        created_at: Creation timestamp.
        is_streaming: True only while content is still being revealed.
            Never serialised, so it cannot reach storage.
    """

    id: str
    conversation_id: str
    role: Role
    content: str = ""
    attachments: list[dict] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    is_streaming: bool = Field(default=False, exclude=True)

    @field_validator("attachments", mode="before")
    @classmethod
    def null_attachments(cls, v: list[dict] | None) -> list[dict]:
        # Stored rows may carry NULL instead of an empty list
        return v if v is not None else []


class Conversation(BaseModel):
    """A conversation attached to a deal or a portfolio company."""

    id: str
    subject_id: str
    user_id: str
    title: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FileType(str, Enum):
    """Renderer families for document previews."""

    PDF = "pdf"
    IMAGE = "image"
    TEXT = "text"
    WORD = "word"
    EXCEL = "excel"
    UNKNOWN = "unknown"


class DocumentRef(BaseModel):
    """Immutable description of a file to preview.

    Attributes:
        id: Identity of the document, used to detect a change of reference.
        name: Display filename, used for extension sniffing.
        mime_type: Declared content type; optional and often unreliable.
        storage_path: Path of the file inside one of the storage areas.
        inline_text: Pre-extracted text that bypasses byte fetching.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    mime_type: str | None = None
    storage_path: str | None = None
    inline_text: str | None = None

    @property
    def identity(self) -> tuple[str | None, str, str | None]:
        return (self.id, self.name, self.storage_path)


class TablePreview(BaseModel):
    """Rectangular grid extracted from a spreadsheet or CSV file.

    Attributes:
        headers: First row of the sheet.
        rows: Data rows, capped for display.
        total_rows: Number of data rows in the source before capping.
        truncated: Whether rows were dropped from the preview.
    """

    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    total_rows: int = Field(default=0, ge=0)
    truncated: bool = False


class PDFInfo(BaseModel):
    """Summary of a PDF shown next to the embedded viewer."""

    pages: int = Field(ge=0)
    title: str | None = None
