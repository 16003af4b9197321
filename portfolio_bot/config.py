from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Security: Read from .env, never hardcode defaults here
    BOT_TOKEN: str
    SHARED_SECRET: str
    OPENAI_API_KEY: str | None = None # Only needed for date extraction

    # Telegram Bot API
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TRANSPORT_TIMEOUT: float = 10.0

    # Date/time extraction (LLM)
    OPENAI_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.0
    EXTRACTION_TIMEOUT: float = 15.0

    # Where the menu tree and the sessions live.
    # "static" / "memory" are meant for local development only.
    MENU_SOURCE: Literal["static", "database"] = "database"
    SESSION_STORE: Literal["memory", "database"] = "database"

    # Database Configuration
    DATABASE_URL: str

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
