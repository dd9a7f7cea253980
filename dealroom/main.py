"""Main application entry point.

Runs FastAPI with NiceGUI mounted on the same server (port 8000 by default).
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run FastAPI with the NiceGUI pages mounted.

    FastAPI serves the health check, object URLs and raw downloads,
    NiceGUI serves the chat and document pages.
    """
    import uvicorn
    from nicegui import ui

    from dealroom.api.app import create_app
    from dealroom.ui import chat_page, documents_page  # noqa: F401 - Registers the pages

    app = create_app()

    ui.run_with(
        app,
        title="Dealroom",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "dealroom-secret"),
    )

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting Dealroom on http://{host}:{port}")
    logger.info(f"Deal chat available at http://{host}:{port}/deals/<deal_id>/chat")
    logger.info(f"Company documents available at http://{host}:{port}/companies/<company_id>/documents")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
