"""Table-level access for conversations, messages and documents."""

import logging
from typing import Any

from dealroom.backend.client import BackendClient
from dealroom.models.schemas import ChatScope, Conversation, DocumentRef, Message, Role, utcnow

logger = logging.getLogger(__name__)

_SCOPE_TABLES = {
    ChatScope.DEAL: ("deal_conversations", "deal_conversation_messages", "deal_id"),
    ChatScope.COMPANY: ("portfolio_conversations", "portfolio_conversation_messages", "company_id"),
}


class ConversationRepository:
    """Conversations and messages of one chat scope."""

    def __init__(self, client: BackendClient, scope: ChatScope) -> None:
        self._client = client
        self.scope = scope
        self.conversations_table, self.messages_table, self.subject_column = _SCOPE_TABLES[scope]

    def _to_conversation(self, row: dict[str, Any]) -> Conversation:
        return Conversation(subject_id=row[self.subject_column], **row)

    async def list_conversations(self, subject_id: str) -> list[Conversation]:
        rows = await self._client.select(
            self.conversations_table,
            filters={self.subject_column: subject_id},
            order="updated_at.desc",
        )
        return [self._to_conversation(row) for row in rows]

    async def create_conversation(self, subject_id: str, user_id: str, title: str) -> Conversation:
        row = await self._client.insert(
            self.conversations_table,
            {self.subject_column: subject_id, "user_id": user_id, "title": title},
        )
        return self._to_conversation(row)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        rows = await self._client.select(
            self.messages_table,
            filters={"conversation_id": conversation_id},
            order="created_at.asc",
        )
        return [Message.model_validate(row) for row in rows]

    async def insert_message(self, conversation_id: str, role: Role, content: str) -> Message:
        row = await self._client.insert(
            self.messages_table,
            {
                "conversation_id": conversation_id,
                "role": role.value,
                "content": content,
                "attachments": [],
            },
        )
        return Message.model_validate(row)

    async def touch_conversation(self, conversation_id: str) -> None:
        await self._client.update(
            self.conversations_table,
            {"updated_at": utcnow().isoformat()},
            filters={"id": conversation_id},
        )

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation after its messages."""
        await self._client.delete(self.messages_table, filters={"conversation_id": conversation_id})
        await self._client.delete(self.conversations_table, filters={"id": conversation_id})
        logger.info(f"Deleted conversation {conversation_id} ({self.scope.value})")


class DocumentRepository:
    """Documents attached to portfolio companies."""

    table = "portfolio_documents"

    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def list_documents(self, company_id: str) -> list[DocumentRef]:
        rows = await self._client.select(
            self.table,
            filters={"company_id": company_id},
            order="created_at.desc",
        )
        return [
            DocumentRef(
                id=row.get("id"),
                name=row.get("original_file_name") or row["name"],
                mime_type=row.get("mime_type"),
                storage_path=row.get("storage_path"),
                inline_text=row.get("text_content"),
            )
            for row in rows
        ]
