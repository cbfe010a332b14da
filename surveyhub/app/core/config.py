"""Application configuration.

Defines `Settings` read from environment variables (and `.env`).
"""
# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "SurveyHub"
    DEBUG: bool = False
    LOG_PATH: str = "logging"
    LOG_FILE: str = "surveyhub.log"
    SECRET_KEY: str = "change-me-in-env"
    DATABASE_URL: str = "sqlite:///./surveyhub.db"

    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"
    OWNER_LINK_TTL: int = 60 * 60 * 24  # 24h

    SHARE_TOKEN_BYTES: int = 16  # 22 url-safe characters
    SHARE_TOKEN_MAX_ATTEMPTS: int = 5


settings = Settings()
