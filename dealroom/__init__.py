"""Dealroom - conversational assistant and document previews for a VC workspace.

Combines FastAPI for HTTP endpoints, NiceGUI for the interface, httpx for
the backend and inference webhooks, and Pydantic for data validation.

Components:
    - chat: simulated streaming presenter, webhook client, chat orchestration
    - preview: file type detection, converters, multi-area preview resolution
    - backend: REST and storage client plus table repositories
    - parsing: PDF inspection and text extraction
    - api: health check, object URLs and raw downloads
    - ui: chat and document pages
    - models: shared data shapes
"""

__version__ = "0.1.0"
