"""Pydantic models shared by the chat and preview layers.

Provides type safety and validation for data exchanged with the backend.

Models:
    - Message: Chat message, including the transient streaming flag
    - Conversation: Conversation attached to a deal or company
    - DocumentRef: File reference handed to the preview resolver
    - TablePreview: Spreadsheet grid prepared for display
    - PDFInfo: Page count and title of a PDF
"""

from dealroom.models.schemas import (
    ChatScope,
    Conversation,
    DocumentRef,
    FileType,
    Message,
    PDFInfo,
    Role,
    TablePreview,
)

__all__ = [
    "ChatScope",
    "Conversation",
    "DocumentRef",
    "FileType",
    "Message",
    "PDFInfo",
    "Role",
    "TablePreview",
]
