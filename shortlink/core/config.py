from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    PROJECT_NAME: str = "URL Shortener"

    # Storage. DATABASE_URL wins; otherwise a Postgres URL is built when all parts are set.
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: Optional[str] = None

    # Redis is optional; cache and rate limiting are skipped without it
    REDIS_HOST: Optional[str] = None
    REDIS_PORT: int = 6379
    CACHE_TTL: int = 86400

    BASE_URL: Optional[str] = None
    SHORT_CODE_LENGTH: int = 6
    NOT_FOUND_PAGE: str = str(PACKAGE_DIR / "static" / "not-found.html")

    SAFE_BROWSING_API_KEY: Optional[str] = None
    SAFE_BROWSING_ENDPOINT: str = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
    SAFE_BROWSING_TIMEOUT: float = 5.0

    RATE_LIMIT_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 60

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        parts = (self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_SERVER, self.POSTGRES_DB)
        if all(parts):
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        return "sqlite:///./shortlink.db"


settings = Settings()
