"""
Centralized configuration management

All configuration values are read from environment variables,
with sensible defaults for development.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # --- FastAPI ---
    app_host: str = "0.0.0.0"
    app_port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "APP_PORT"))
    log_level: str = "info"

    # --- Request limits ---
    render_max_body_bytes: int = 10 * 1024 * 1024

    # --- Viewport defaults ---
    render_viewport_width: int = 1200
    render_viewport_height: int = 800
    render_device_scale_factor: float = 1.0
    # Larger width/height overrides are clamped to these values.
    render_max_viewport_width: int = 16384
    render_max_viewport_height: int = 16384
    # Larger deviceScaleFactor overrides are clamped to this value.
    render_max_device_scale_factor: float = 4.0

    # --- Pipeline timing ---
    render_load_timeout_ms: int = 30000
    render_settle_delay_ms: int = 500
    # Element captures wait at most this long for the element to become visible.
    render_element_capture_timeout_ms: int = 5000

    # --- Browser ---
    browser_headless: bool = True
    browser_args: str = (
        "--no-sandbox,--disable-setuid-sandbox,--disable-dev-shm-usage,"
        "--disable-accelerated-2d-canvas,--no-first-run,--disable-gpu"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def browser_arg_list(self) -> list[str]:
        return [a.strip() for a in self.browser_args.split(",") if a.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance (singleton)."""
    return Settings()
