"""
docpipe/core/config.py

Centralised configuration loaded from environment variables.
Use a .env file locally; the container runtime injects these in production.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── Application ────────────────────────────────────────────────────────────
    app_name: str = "Site Docs Conversion API"
    app_version: str = "1.0.0"
    debug: bool = False

    # ── Scratch files ──────────────────────────────────────────────────────────
    scratch_dir: str = "./data/scratch"
    scratch_allowed_extensions: List[str] = ["xlsx", "pdf"]
    scratch_sweep_age_seconds: int = 3600    # leftovers older than this are swept at startup

    # ── Converter (LibreOffice) ────────────────────────────────────────────────
    converter_path: str = "libreoffice"
    conversion_timeout_seconds: float = 60.0
    converter_max_concurrency: int = 1       # 0 = unbounded
    converter_busy_retries: int = 1

    # ── Upload limits ──────────────────────────────────────────────────────────
    max_upload_bytes: int = 25 * 1024 * 1024
    storage_max_upload_bytes: int = 20 * 1024 * 1024

    # ── Object storage (Backblaze B2) ──────────────────────────────────────────
    b2_key_id: Optional[str] = None
    b2_application_key: Optional[str] = None
    b2_bucket_id: Optional[str] = None
    b2_bucket_name: Optional[str] = None
    b2_public_url: Optional[str] = None
    b2_api_url: str = "https://api.backblazeb2.com"
    b2_key_prefix: str = "damage-reports"
    storage_timeout_seconds: float = 30.0

    # ── Task priority suggestion (OpenAI) ──────────────────────────────────────
    openai_api_key: Optional[str] = None
    priority_model: str = "gpt-4o-mini"
    priority_timeout_seconds: float = 20.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Single shared instance; import this everywhere.
settings = Settings()
