"""Conversation handling for deal and portfolio company chats.

Glues the conversation repository, the inference webhook and the streaming
presenter together: the user message is stored, the webhook answers with a
full reply, the presenter reveals it, and the reply is stored once revealed.
"""

import logging
from collections.abc import Callable

from dealroom.backend.client import BackendError
from dealroom.backend.repositories import ConversationRepository
from dealroom.chat.presenter import StreamingPresenter
from dealroom.chat.webhook import InferenceClient, InferenceError, NoUsableReplyError
from dealroom.models.schemas import ChatScope, Conversation, Message, Role

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I could not generate a response. Please try again."
TITLE_LENGTH = 50

Notifier = Callable[[str, str], None]


def _log_notification(message: str, kind: str) -> None:
    level = logging.WARNING if kind == "negative" else logging.INFO
    logger.log(level, message)


def conversation_title(content: str) -> str:
    """Title of a new conversation: the first 50 characters of its first message."""
    if len(content) > TITLE_LENGTH:
        return content[:TITLE_LENGTH] + "..."
    return content


class ChatService:
    """State and actions of one chat panel.

    Args:
        repository: Conversation storage for the panel's scope.
        inference: Webhook client producing assistant replies.
        presenter: Streaming presenter owning the visible message list.
        scope: Whether the chat is about a deal or a portfolio company.
        subject_id: Id of the deal or company.
        user_id: Id of the signed-in user.
        subject_name: Display name sent to the deal webhook.
        notify: Toast callback taking (message, kind) where kind is
            ``positive`` or ``negative``.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        inference: InferenceClient,
        presenter: StreamingPresenter,
        *,
        scope: ChatScope,
        subject_id: str,
        user_id: str,
        subject_name: str = "",
        notify: Notifier | None = None,
    ) -> None:
        self._repository = repository
        self._inference = inference
        self.presenter = presenter
        self.scope = scope
        self.subject_id = subject_id
        self.user_id = user_id
        self.subject_name = subject_name
        self._notify = notify or _log_notification
        self.conversations: list[Conversation] = []
        self.active_conversation_id: str | None = None
        self.is_loading = False
        self._unsaved_reply: tuple[str, str, str] | None = None

    @property
    def messages(self) -> list[Message]:
        return self.presenter.messages

    @property
    def is_streaming(self) -> bool:
        return self.presenter.is_streaming

    def _set_messages(self, messages: list[Message]) -> None:
        self.presenter.messages[:] = messages

    async def load_conversations(self) -> list[Conversation]:
        try:
            self.conversations = await self._repository.list_conversations(self.subject_id)
        except BackendError as e:
            logger.error(f"Failed to load conversations for {self.subject_id}: {e}")
            self._notify("Unable to load conversations", "negative")
        return self.conversations

    async def select_conversation(self, conversation_id: str | None) -> None:
        self.presenter.stop_stream()
        self.active_conversation_id = conversation_id
        if conversation_id is None:
            self._set_messages([])
            return

        try:
            messages = await self._repository.list_messages(conversation_id)
        except BackendError as e:
            logger.error(f"Error loading messages of {conversation_id}: {e}")
            return
        self._set_messages(messages)

    def new_conversation(self) -> None:
        self.presenter.stop_stream()
        self.active_conversation_id = None
        self._set_messages([])

    async def delete_conversation(self, conversation_id: str) -> None:
        try:
            await self._repository.delete_conversation(conversation_id)
        except BackendError as e:
            logger.error(f"Error deleting conversation {conversation_id}: {e}")
            self._notify("Error while deleting the conversation", "negative")
            return

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.active_conversation_id == conversation_id:
            self.active_conversation_id = None
            self._set_messages([])
        self._notify("Conversation deleted", "positive")

    async def send_message(self, content: str) -> None:
        """Store the user's message, fetch the reply and start revealing it.

        Ignored when the message is blank or a reply is already in progress.
        """
        if not content.strip() or self.is_loading or self.is_streaming:
            return

        self.is_loading = True
        try:
            conversation_id = await self._ensure_conversation(content)
            user_message = await self._repository.insert_message(conversation_id, Role.USER, content)
            if self.active_conversation_id == conversation_id:
                self.messages.append(user_message)

            try:
                reply = await self._inference.ask(
                    self.scope,
                    message=content,
                    user_id=self.user_id,
                    conversation_id=conversation_id,
                    subject_id=self.subject_id,
                    subject_name=self.subject_name,
                )
            except NoUsableReplyError as e:
                logger.warning(f"Webhook reply had no usable text: {e}")
                reply = FALLBACK_REPLY
        except (BackendError, InferenceError) as e:
            logger.error(f"Chat error ({self.scope.value} {self.subject_id}): {e}")
            self._notify(str(e) or "Connection error", "negative")
            return
        finally:
            self.is_loading = False

        if self.active_conversation_id != conversation_id:
            # Another conversation is on screen now, so the reply is only stored
            logger.info(f"Conversation changed while waiting, storing reply for {conversation_id}")
            await self._persist_reply(conversation_id, None, reply)
            return

        message = self.presenter.start_stream(
            conversation_id,
            reply,
            lambda full_text: self._persist_reply(conversation_id, message.id, full_text),
        )
        self._unsaved_reply = (conversation_id, message.id, reply)

    async def stop_streaming(self) -> None:
        """Reveal the rest of the reply at once and store it.

        Stopping the presenter alone does not signal completion, so the
        reply is persisted here.
        """
        if not self.is_streaming or self._unsaved_reply is None:
            return
        self.presenter.stop_stream()
        await self._persist_reply(*self._unsaved_reply)

    async def _ensure_conversation(self, content: str) -> str:
        if self.active_conversation_id is not None:
            return self.active_conversation_id

        conversation = await self._repository.create_conversation(
            self.subject_id, self.user_id, conversation_title(content)
        )
        self.active_conversation_id = conversation.id
        self.conversations.insert(0, conversation)
        return conversation.id

    async def _persist_reply(self, conversation_id: str, temp_id: str | None, full_text: str) -> None:
        """Store a reply and swap its temporary bubble, if shown, for the stored message."""
        if temp_id is not None:
            self._unsaved_reply = None
        try:
            durable = await self._repository.insert_message(conversation_id, Role.ASSISTANT, full_text)
            if temp_id is not None:
                self.presenter.replace_message(temp_id, durable)
            await self._repository.touch_conversation(conversation_id)
        except BackendError as e:
            # The revealed text stays on screen even though it was not stored
            logger.error(f"Failed to save assistant reply in {conversation_id}: {e}")
            self._notify("The reply could not be saved", "negative")
