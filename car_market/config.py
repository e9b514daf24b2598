"""
Docstring for car_market.config

Конфигурация приложения.
Всё берется из .env файла.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Pydantic Settings конфиг
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str

    # Redis (без него кэш просто отключен)
    REDIS_URL: Optional[str] = None
    CAR_OPTIONS_CACHE_TTL: int = 300

    # JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 14

    # Google Sign-In
    GOOGLE_CLIENT_ID: Optional[str] = None

    # Server
    DEBUG: bool = False
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    # Загрузка файлов
    UPLOAD_DIR: str = "public"

    # RATE-LIMITS
    RATE_LIMIT_ENABLED: bool = True
    REGISTER_RATE_LIMIT: str = "5/minute" # Значения по-умолчанию, на случай
    LOGIN_RATE_LIMIT: str = "10/minute"   # если в .env не указаны иные значения

# Создаем глобальный объект settings
settings = Settings()
