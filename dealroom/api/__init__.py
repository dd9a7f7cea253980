"""FastAPI endpoints for dealroom.

HTTP routes backing the NiceGUI pages mounted on the same application.

Endpoints:
    - GET /health: Service health status
    - GET /blobs/{token}: Bytes behind a live object URL
    - GET /documents/raw: Raw file download across storage areas
"""

from dealroom.api.app import app, create_app

__all__ = ["app", "create_app"]
