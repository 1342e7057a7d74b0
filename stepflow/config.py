"""Application configuration using Pydantic Settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Stepflow Workflow Generator"
    debug: bool = False

    # n8n Configuration
    # Local instances expose the public API under /api/v1
    n8n_base_url: str = "http://localhost:5678/api/v1"
    n8n_api_key: str = ""
    n8n_timeout: float = 30.0

    # ==========================================================================
    # WORKFLOW GENERATION
    # ==========================================================================

    workflow_name: str = "Generated Workflow"

    # Model pinned on openAi nodes for the Assistant platform
    assistant_model: str = "gpt-4-turbo"

    # Canvas layout (presentation only)
    layout_trigger_x: int = 100
    layout_start_x: int = 400
    layout_step_spacing: int = 400
    layout_inner_spacing: int = 200
    layout_y: int = 300
    layout_error_offset_y: int = 200

    def n8n_editor_url(self) -> str:
        """Base URL of the n8n editor UI (API URL without /api/v1)."""
        return self.n8n_base_url.replace("/api/v1", "").rstrip("/")

    def has_n8n_api_key(self) -> bool:
        """Check if an n8n API key is configured."""
        return bool(self.n8n_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
