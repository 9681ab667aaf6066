from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    db_path: str = "data/app.db"
    log_level: str = "INFO"

    # "chromium" (headless browser via Playwright) or "weasyprint"
    print_engine: str = "chromium"
    browser_ws_endpoint: str | None = None
    chrome_path: str | None = None
    pdf_timeout_seconds: float = 60.0
    set_content_timeout_ms: float = 30000.0

    default_owner_id: int = 1


settings = Settings()
