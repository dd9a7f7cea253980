"""Client for the external inference webhooks.

The webhooks answer with either a JSON object or a list of objects, and the
reply text may sit under one of several field names. ``decode_reply``
turns that loose shape into a single string or an explicit error.
"""

import logging
from typing import Any

import httpx

from dealroom.config import AppConfig, get_config
from dealroom.models.schemas import ChatScope

logger = logging.getLogger(__name__)

REPLY_FIELDS = ("message", "output", "response")


class InferenceError(Exception):
    """Raised when the inference webhook cannot be reached or fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidReplyError(InferenceError):
    """Raised when the webhook answers with an unexpected JSON shape."""


class NoUsableReplyError(InferenceError):
    """Raised when none of the known reply fields contains text."""


def decode_reply(payload: Any) -> str:
    """Extract the assistant text from a webhook payload.

    Args:
        payload: Decoded JSON body, an object or a list of objects.

    Returns:
        The first non-blank value among ``message``, ``output`` and ``response``.

    Raises:
        InvalidReplyError: If the payload is neither an object nor a non-empty list.
        NoUsableReplyError: If no known field holds text.
    """
    if isinstance(payload, list):
        if not payload:
            raise InvalidReplyError("Webhook returned an empty list")
        payload = payload[0]

    if not isinstance(payload, dict):
        raise InvalidReplyError(f"Unexpected reply type: {type(payload).__name__}")

    for field in REPLY_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value

    raise NoUsableReplyError(f"No usable field in reply (expected one of {', '.join(REPLY_FIELDS)})")


class InferenceClient:
    """Posts user messages to the scope's webhook and returns the reply text."""

    def __init__(self, config: AppConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._config = config or get_config()
        self._client = client or httpx.AsyncClient(timeout=self._config.request_timeout)

    def webhook_url(self, scope: ChatScope) -> str:
        if scope is ChatScope.DEAL:
            return self._config.deal_chat_webhook_url
        return self._config.company_chat_webhook_url

    async def ask(
        self,
        scope: ChatScope,
        *,
        message: str,
        user_id: str,
        conversation_id: str,
        subject_id: str,
        subject_name: str = "",
    ) -> str:
        """Send a message and wait for the complete reply.

        Raises:
            InferenceError: On transport failure or non-2xx status.
            InvalidReplyError: If the body is not a recognised shape.
            NoUsableReplyError: If the body carries no reply text.
        """
        body: dict[str, str] = {
            "message": message,
            "user_id": user_id,
            "conversation_id": conversation_id,
        }
        if scope is ChatScope.DEAL:
            body["deal_id"] = subject_id
            body["company_name"] = subject_name
        else:
            body["portfolio_company_id"] = subject_id

        try:
            response = await self._client.post(self.webhook_url(scope), json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise InferenceError(
                f"Server error: {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise InferenceError(f"Connection failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidReplyError("Webhook reply is not valid JSON") from e

        return decode_reply(payload)

    async def aclose(self) -> None:
        await self._client.aclose()


# Module-level singleton instance
_inference_client: InferenceClient | None = None


def get_inference_client() -> InferenceClient:
    """Get or create the global inference client."""
    global _inference_client
    if _inference_client is None:
        _inference_client = InferenceClient()
    return _inference_client
