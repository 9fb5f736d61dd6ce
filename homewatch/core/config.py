"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Home Watch CRM"
    debug: bool = False
    log_dir: Path = Path.home() / ".logs" / "homewatch"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./homewatch.db"

    # Report header
    company_name: str = "Basic Home Watch Checklist"
    company_tagline: str = "PROPERTY INSPECTIONS & SERVICES"
    company_phone: str = "239.572.2025"
    company_email: str = "info@239homeservices.com"
    logo_path: Path = Path("static/logo.png")

    # Supabase Storage
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    checklist_bucket: str = "checklist-photos"
    signed_url_ttl_seconds: int = 60 * 60 * 6

    # SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_secure: bool | None = None  # None: implicit TLS only on port 465
    email_from: str = ""
    smtp_timeout_seconds: float = 30.0

    # Remote photo downloads
    http_timeout_seconds: float = 30.0

    # PDF output
    pdf_page_compression: bool = True


settings = Settings()
