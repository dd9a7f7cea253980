"""Access to the external backend-as-a-service.

All persistence and file storage live in the backend; this package only
issues HTTP calls against its table and storage endpoints.

Responsibilities:
    - Authenticated REST calls (select, insert, update, delete)
    - Object downloads from named storage areas
    - Conversation, message and document repositories
"""

from dealroom.backend.client import BackendClient, BackendError, get_backend_client
from dealroom.backend.repositories import ConversationRepository, DocumentRepository

__all__ = [
    "BackendClient",
    "BackendError",
    "ConversationRepository",
    "DocumentRepository",
    "get_backend_client",
]
