"""Application configuration with environment variable loading.

Pydantic-based settings for the backend-as-a-service connection, the
inference webhooks, the simulated streaming cadence and document previews.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_STORAGE_AREAS = ("portfolio-documents", "report-files", "deck-files")


def _storage_areas_from_env() -> list[str]:
    raw = os.getenv("STORAGE_AREAS", "")
    areas = [area.strip() for area in raw.split(",") if area.strip()]
    return areas or list(DEFAULT_STORAGE_AREAS)


class AppConfig(BaseModel):
    """Configuration for the dealroom front-end.

    Attributes:
        backend_url: Base URL of the backend-as-a-service (REST + storage).
        backend_key: Anonymous API key sent with every backend request.
        deal_chat_webhook_url: Inference webhook for deal conversations.
        company_chat_webhook_url: Inference webhook for portfolio company conversations.
        typing_interval_ms: Period of the simulated typing timer.
        chunk_size: Characters revealed per timer tick.
        storage_areas: Storage buckets tried, in order, when fetching a file.
        preview_max_rows: Data rows shown in a spreadsheet preview.
        zoom_min: Lowest zoom percentage.
        zoom_max: Highest zoom percentage.
        zoom_step: Zoom increment in percentage points.
        request_timeout: Timeout in seconds for backend and webhook calls.
    """

    # Values read from the environment go through the same validators
    model_config = ConfigDict(validate_default=True)

    backend_url: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_URL", "http://localhost:54321"),
        description="Backend-as-a-service base URL",
    )
    backend_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", ""),
        description="Backend API key",
    )
    deal_chat_webhook_url: str = Field(
        default_factory=lambda: os.getenv(
            "DEAL_CHAT_WEBHOOK_URL", "http://localhost:5678/webhook/chat_with_your_deals"
        ),
        description="Webhook answering deal conversations",
    )
    company_chat_webhook_url: str = Field(
        default_factory=lambda: os.getenv(
            "COMPANY_CHAT_WEBHOOK_URL", "http://localhost:5678/webhook/chat_with_your_company"
        ),
        description="Webhook answering portfolio company conversations",
    )
    typing_interval_ms: int = Field(
        default_factory=lambda: int(os.getenv("TYPING_INTERVAL_MS", "30")),
        ge=1,
        le=1000,
        description="Milliseconds between two simulated typing ticks",
    )
    chunk_size: int = Field(
        default_factory=lambda: int(os.getenv("TYPING_CHUNK_SIZE", "1")),
        ge=1,
        description="Characters revealed per typing tick",
    )
    storage_areas: list[str] = Field(
        default_factory=_storage_areas_from_env,
        description="Storage areas tried in order when downloading a file",
    )
    preview_max_rows: int = Field(default=100, ge=1, description="Rows shown in table previews")
    zoom_min: int = Field(default=50, ge=10)
    zoom_max: int = Field(default=200, le=1000)
    zoom_step: int = Field(default=25, ge=1)
    request_timeout: float = Field(default=120.0, gt=0)

    @field_validator("backend_key")
    @classmethod
    def validate_backend_key(cls, v: str) -> str:
        """Validate that the backend key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("Backend key required. Set SUPABASE_ANON_KEY in .env")
        return v.strip()

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("storage_areas")
    @classmethod
    def validate_storage_areas(cls, v: list[str]) -> list[str]:
        """Require at least one storage area."""
        areas = [area.strip() for area in v if area.strip()]
        if not areas:
            raise ValueError("At least one storage area is required")
        return areas

    @model_validator(mode="after")
    def validate_zoom_range(self) -> "AppConfig":
        if not self.zoom_min <= 100 <= self.zoom_max:
            raise ValueError("Zoom range must include 100%")
        return self


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the application configuration from environment.

    Returns:
        The shared AppConfig instance.

    Raises:
        ValueError: If no backend key is set.
    """
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
