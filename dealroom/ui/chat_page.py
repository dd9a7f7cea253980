"""NiceGUI chat panel for deals and portfolio companies."""

import logging
import uuid
from html import escape

from nicegui import app, context, ui

from dealroom.backend.client import get_backend_client
from dealroom.backend.repositories import ConversationRepository
from dealroom.chat.presenter import StreamingPresenter
from dealroom.chat.service import ChatService
from dealroom.chat.webhook import get_inference_client
from dealroom.config import get_config
from dealroom.models.schemas import ChatScope, Message, Role
from dealroom.ui.formatting import markdown_to_html
from dealroom.ui.lifecycle import release_on_delete

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; }

    .message-user {
        background: #1e293b;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .typing-cursor::after {
        content: '▍';
        animation: blink 1s steps(1) infinite;
    }

    @keyframes blink { 50% { opacity: 0; } }

    .conversation-item:hover { background: #eef2ff; }
    .conversation-active { background: #e0e7ff; }
</style>
"""


def current_user_id() -> str:
    """Id of the browser's user, kept in NiceGUI's per-user storage."""
    user_id = app.storage.user.get("user_id")
    if not user_id:
        user_id = str(uuid.uuid4())
        app.storage.user["user_id"] = user_id
    return user_id


@ui.page("/deals/{deal_id}/chat")
async def deal_chat_page(deal_id: str, company: str = "") -> None:
    """Chat about a deal."""
    await render_chat(ChatScope.DEAL, deal_id, subject_name=company)


@ui.page("/companies/{company_id}/chat")
async def company_chat_page(company_id: str) -> None:
    """Chat about a portfolio company."""
    await render_chat(ChatScope.COMPANY, company_id)


async def render_chat(scope: ChatScope, subject_id: str, subject_name: str = "") -> None:
    ui.add_head_html(CUSTOM_CSS)
    config = get_config()
    bubbles: dict[str, ui.html] = {}

    root = ui.row().classes("w-full h-screen p-4 gap-4 no-wrap")

    def notify(message: str, kind: str) -> None:
        # Callbacks may run outside the page's slot context
        with root:
            ui.notify(message, type=kind)

    def on_change() -> None:
        streaming = presenter.streaming_message
        if streaming is not None and streaming.id in bubbles:
            bubbles[streaming.id].set_content(markdown_to_html(streaming.content))
            return
        with root:
            message_list.refresh()
            controls.refresh()

    presenter = StreamingPresenter(
        interval_ms=config.typing_interval_ms,
        chunk_size=config.chunk_size,
        on_change=on_change,
    )
    service = ChatService(
        ConversationRepository(get_backend_client(), scope),
        get_inference_client(),
        presenter,
        scope=scope,
        subject_id=subject_id,
        user_id=current_user_id(),
        subject_name=subject_name,
        notify=notify,
    )
    release_on_delete(context.client, presenter.close)

    def render_message(msg: Message) -> None:
        is_user = msg.role is Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        cursor = " typing-cursor" if msg.is_streaming else ""

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[75%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        content = escape(msg.content).replace("\n", "<br>")
                        html = ui.html(content, sanitize=False)
                    else:
                        html = ui.html(markdown_to_html(msg.content), sanitize=False)
                    html.classes(f"text-sm leading-relaxed{cursor}")
                    bubbles[msg.id] = html
                ui.label(msg.created_at.astimezone().strftime("%I:%M %p")).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    @ui.refreshable
    def message_list() -> None:
        bubbles.clear()
        if not service.messages:
            with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                ui.icon("forum").classes("text-5xl text-gray-300")
                ui.label("Ask anything about this company").classes("text-lg text-gray-400")
            return
        for msg in service.messages:
            render_message(msg)

    @ui.refreshable
    def conversation_list() -> None:
        if not service.conversations:
            ui.label("No conversations yet").classes("text-sm text-gray-400 px-2")
        for conversation in service.conversations:
            active = " conversation-active" if conversation.id == service.active_conversation_id else ""
            with ui.row().classes(
                f"w-full items-center no-wrap rounded px-2 py-1 cursor-pointer conversation-item{active}"
            ) as row:
                ui.label(conversation.title).classes("flex-grow text-sm truncate")
                ui.button(
                    icon="delete",
                    on_click=lambda c=conversation: delete_conversation(c.id),
                ).props("flat round dense size=sm color=grey")
            row.on("click", lambda c=conversation: select_conversation(c.id))

    @ui.refreshable
    def controls() -> None:
        if service.is_streaming:
            ui.button(icon="stop", on_click=stop_streaming).props("round unelevated color=grey-8")
        else:
            ui.button(icon="send", on_click=send_message).props(
                "round unelevated color=indigo"
            ).bind_enabled_from(service, "is_loading", backward=lambda loading: not loading)

    def refresh_all() -> None:
        message_list.refresh()
        conversation_list.refresh()
        controls.refresh()

    async def select_conversation(conversation_id: str) -> None:
        await service.select_conversation(conversation_id)
        refresh_all()

    async def delete_conversation(conversation_id: str) -> None:
        await service.delete_conversation(conversation_id)
        refresh_all()

    def new_conversation() -> None:
        service.new_conversation()
        refresh_all()

    async def stop_streaming() -> None:
        await service.stop_streaming()
        refresh_all()

    async def send_message() -> None:
        text = input_field.value or ""
        if not text.strip():
            return
        input_field.value = ""
        await service.send_message(text)
        refresh_all()

    with root:
        with ui.column().classes("w-72 h-full bg-white rounded-xl shadow p-3 gap-2"):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Conversations").classes("text-base font-semibold")
                ui.button(icon="add", on_click=new_conversation).props("flat round dense")
            with ui.scroll_area().classes("flex-grow w-full"):
                conversation_list()

        with ui.column().classes("flex-grow h-full bg-white rounded-xl shadow gap-0"):
            with ui.row().classes("w-full px-5 py-4 border-b items-center gap-3"):
                ui.icon("smart_toy").classes("text-indigo-600 text-2xl")
                title = subject_name or ("Deal assistant" if scope is ChatScope.DEAL else "Company assistant")
                ui.label(title).classes("text-lg font-semibold")

            with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
                with ui.column().classes("w-full p-5 gap-4"):
                    message_list()
                    ui.spinner("dots", size="lg").classes("text-indigo-500").bind_visibility_from(
                        service, "is_loading"
                    )

            with ui.row().classes("w-full p-4 gap-3 items-end border-t no-wrap"):
                input_field = (
                    ui.textarea(placeholder="Type a message...")
                    .props("autogrow outlined dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_message)
                )
                controls()

    await service.load_conversations()
    conversation_list.refresh()
