from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./meapp.db"
    STORAGE_KEY: str = "meapp_single_2026_v1"
    AUTOSAVE_DEBOUNCE_MS: int = 250
    OWNER_NAME: str = ""
    OWNER_TITLE: str = "2026 Orientation: Living It Out Loud"
    EXPORT_APP_LABEL: str = "ME App"
    EXPORT_VERSION: str = "single_2026_v1.1"
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_prefix = "MEAPP_"

settings = Settings()
