from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import validator

class Settings(BaseSettings):
    # Project settings
    PROJECT_NAME: str = "Genshin Dictionary"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Multilingual Genshin Impact dictionary built from the game TextMaps"
    API_V1_STR: str = "/api/v1"

    # Database - prefer discrete Postgres settings; fallback to DATABASE_URL
    DATABASE_URL: str = ""  # Optional explicit URL; leave empty to assemble from fields below
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "genshin_dictionary"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    DATABASE_DIALECT: str = "postgresql+asyncpg"  # e.g., postgresql+asyncpg, sqlite+aiosqlite

    # Connection pool; must hold at least one insert batch worth of connections
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: float = 30.0

    # Create tables from ORM metadata on startup
    AUTO_CREATE_TABLES: bool = False

    # TextMap sources
    TEXTMAP_BASE_URL: str = "https://github.com/Masterain98/GenshinData/raw/main/TextMap"
    FETCH_TIMEOUT_SECONDS: float = 120.0

    # Refresh pipeline
    INSERT_BATCH_SIZE: int = 50
    PREVIEW_LENGTH: int = 50
    SHOW_PROGRESS: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @validator("INSERT_BATCH_SIZE", "PREVIEW_LENGTH")
    def ensure_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()

# Helper to assemble DB URL when not explicitly provided
def get_database_url() -> str:
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    from urllib.parse import quote_plus

    user = quote_plus(settings.POSTGRES_USER or "")
    password = quote_plus(settings.POSTGRES_PASSWORD or "")
    host = settings.POSTGRES_HOST
    port = settings.POSTGRES_PORT
    db = settings.POSTGRES_DB
    dialect = settings.DATABASE_DIALECT
    if password:
        cred = f"{user}:{password}@"
    elif user:
        cred = f"{user}@"
    else:
        cred = ""
    return f"{dialect}://{cred}{host}:{port}/{db}"
