# Configuration management

from pydantic_settings import BaseSettings  # type: ignore
from functools import lru_cache
from typing import Dict, Optional


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./uploads.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Upload metadata table
    upload_table: str = "uploads"
    upload_sequence: str = "upload_id_seq"  # Postgres only
    # Logical column name -> physical column name (None = same name)
    upload_column_map: Dict[str, Optional[str]] = {}

    # Storage
    upload_path: str = "./uploads"
    upload_url: str = "http://localhost/uploads"
    location_scheme: str = "flat"  # flat or hashed

    # Processing
    require_mime_type: bool = True
    resize_failure_threshold: int = 400

    # Application
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    # Observability
    metrics_enabled: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
