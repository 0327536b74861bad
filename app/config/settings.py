from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Loaded once at process start and passed to components at construction.
    Instances are frozen.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "checkup"
    db_username: str = "checkup"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    files_root: Path = Path("/app/files")
    accepted_mime_types: list[str] = ["image/jpeg", "image/png", "application/pdf"]
    max_upload_bytes: int = 10 * 1024 * 1024

    pdf_engine: str = "pdfplumber"
    ocr_languages: str = "eng"
    ocr_min_text_chars: int = 20
    ocr_max_pages: int = 20

    analysis_provider: str = "openai"
    analysis_api_key: str = ""
    analysis_model_name: str = "gpt-4o-mini"
    analysis_base_url: str | None = None
    analysis_timeout_seconds: float = 60.0
    analysis_temperature: float = 0.2
    analysis_structured_output: bool = True
    analysis_max_attempts: int = 3
    analysis_retry_base_delay_seconds: float = 1.0
    analysis_retry_max_delay_seconds: float = 10.0

    worker_concurrency: int = 4
    job_poll_interval_seconds: int = 5
    stale_processing_seconds: int = 900
    embedded_worker: bool = True

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"

    api_host: str = "0.0.0.0"
    api_port: int = 3001
