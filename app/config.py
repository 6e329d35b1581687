# app/config.py
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    # Строка подключения обязательна: без неё сервис не стартует
    DATABASE_URL: str = Field(..., min_length=1)

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    ENVIRONMENT: str = Field(default="development")

    LOG_LEVEL: str = Field(default="INFO")
    LOG_DIR: Optional[str] = Field(default=None)

    DB_ECHO: bool = Field(default=False)
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)

    STATIC_DIR: str = Field(default="public")
    CORS_ORIGINS: List[str] = Field(default=["*"])

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
