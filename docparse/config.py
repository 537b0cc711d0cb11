"""Application configuration via environment variables."""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Service
    service_port: int = 8001
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:4321", "http://localhost:3000"]

    # External parse service
    parse_service_url: str = "http://localhost:8000/file_parse"
    parse_timeout_seconds: int = 600
    parse_lang: str = "ch"
    parse_method: str = "auto"
    parse_backend: str = "pipeline"
    parse_table_enable: bool = True
    parse_formula_enable: bool = True

    # Job tracking
    job_ttl_seconds: int = 3600
    job_workers: int = 4
    job_timeout_seconds: int = 600
    job_sweep_interval_seconds: int = 0  # 0 = expire on lookup only

    # Uploads
    upload_dir: Optional[str] = None
    max_upload_bytes: int = 100 * 1024 * 1024
    allowed_extensions: List[str] = [".pdf", ".docx", ".pptx", ".xlsx", ".txt", ".md"]
    upload_server_url: Optional[str] = None
    download_timeout_seconds: int = 120

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
