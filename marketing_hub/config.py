"""
Configuration management for Marketing Hub
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Marketing Hub"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4
    cors_origins: str = "*"  # Comma-separated list, "*" allows all

    # Database
    database_url: str = "sqlite:///./marketing_hub.db"

    # Webhook ingestion (Dataslayer pushes)
    webhook_service_name: str = "dataslayer"
    webhook_default_source: str = "dataslayer"

    # Google Drive CSV import
    drive_service_name: str = "google_drive"
    drive_import_source: str = "marketing_cloud"
    drive_import_max_errors: int = 10  # Errors returned for a single file import
    drive_folder_max_errors: int = 5  # Errors returned per file in a folder import

    # Google Sheets sync (tabs populated by the Apps Script export)
    sheets_service_name: str = "google_sheets"
    google_api_key: Optional[str] = None
    google_spreadsheet_id: Optional[str] = None

    # External calls
    external_call_timeout_seconds: int = 30

    # Audit log
    sync_log_error_preview: int = 5  # Row errors joined into sync_log.error_message
    sync_log_error_max_chars: int = 1000

    # Scheduler
    enable_scheduler: bool = False
    scheduler_timezone: str = "UTC"
    sheets_sync_schedule: str = "0 6 * * *"
    aggregate_refresh_schedule: str = "30 6 * * *"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
