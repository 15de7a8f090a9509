import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: Optional[str]) -> List[str]:
    return [o.strip() for o in (raw or "*").split(",") if o.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "5000"))
    cors_origins: List[str] = field(default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS")))

    # Database settings
    database_file: str = os.getenv("LIBRARY_DB_FILE", "books.db")
    database_pool_size: int = int(os.getenv("DATABASE_POOL_SIZE", "10"))
    database_timeout: float = float(os.getenv("DATABASE_TIMEOUT", "5"))  # sqlite busy timeout, seconds
    database_acquire_timeout: float = float(os.getenv("DATABASE_ACQUIRE_TIMEOUT", "30"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Management API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Pagination settings
    default_page: int = 1
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "4"))


settings = Settings()
