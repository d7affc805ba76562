from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Valta"
    app_version: str = "0.1.0"

    supabase_url: str = ""
    supabase_key: str = ""

    storage_bucket: str = "valta"
    teams_path: str = "teams.csv"
    activities_path: str = "activities.csv"
    max_blob_size: int = 1 * 1024 * 1024

    sync_interval_seconds: float = 60.0

    log_level: str = "INFO"
    logs_dir: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
