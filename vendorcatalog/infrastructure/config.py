"""Catalog engine configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Catalog engine settings loaded from environment variables."""

    # Remote catalog service
    api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Catalog service base URL",
    )
    api_token: str = Field(
        default="",
        description="Bearer credential supplied by the session collaborator",
    )
    request_timeout_seconds: float = 30.0

    # Timers
    search_debounce_seconds: float = 0.5
    autosave_delay_seconds: float = 2.0
    draft_status_decay_seconds: float = 2.0

    # Listing
    default_page_size: int = 20
    max_page_size: int = 100

    # Drafts (unset keeps drafts in memory for the session)
    draft_storage_path: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "env_prefix": "VENDOR_CATALOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
