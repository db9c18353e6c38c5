from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env before any settings are read
load_dotenv()


class Settings(BaseSettings):
    """
    Application settings, read from environment variables (and .env).

    Usage:
        from imageform.config import get_settings
        bucket = get_settings().storage_bucket
    """

    app_name: str = Field(default="Image Form Backend")

    # Supabase project (storage uploads only)
    supabase_url: Optional[str] = Field(default=None)
    supabase_service_key: Optional[str] = Field(default=None)

    # Postgres connection string (Supabase pooler in production)
    database_url: str = Field(default="sqlite:///./submissions.db")

    storage_bucket: str = Field(default="images")
    submissions_table: str = Field(default="form_submissions")

    # Comma separated list of allowed frontend origins
    cors_origins: str = Field(default="http://localhost:5173")

    log_level: str = Field(default="INFO")

    # Drafts nobody touched for this long are dropped with their previews
    draft_idle_seconds: float = Field(default=1800)
    max_drafts: int = Field(default=1000)

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance, one per process."""
    return Settings()
