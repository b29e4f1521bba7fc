from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Catalog Diff"
    app_env: str = "dev"
    log_level: str = "INFO"

    data_dir: Path = Path("data")
    uploads_dir: Path = Path("uploads")

    max_upload_bytes: int = 25 * 1024 * 1024
    index_limit: int = 500
    list_page_size: int = 50
    persist_debounce_seconds: float = 0.25

    max_workers: int = 4
    job_start_delay_seconds: float = 0.7

    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3001
