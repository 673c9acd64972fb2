import os
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.engine import URL

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _database_url() -> Optional[str]:
    """DATABASE_URL 우선, 없으면 DB_* 조각으로 URL 구성"""
    raw = os.getenv("DATABASE_URL")
    if raw:
        # psycopg 3 드라이버 명시 (SQLAlchemy용)
        if raw.startswith("postgresql://"):
            raw = raw.replace("postgresql://", "postgresql+psycopg://", 1)
        return raw

    name = os.getenv("DB_NAME")
    if not name:
        return None

    port = os.getenv("DB_PORT")
    url = URL.create(
        os.getenv("DB_DRIVER", "postgresql+psycopg"),
        username=os.getenv("DB_USER"),
        password=os.getenv("DB_PASSWORD"),
        host=os.getenv("DB_HOST", "localhost"),
        port=int(port) if port else None,
        database=name,
    )
    return url.render_as_string(hide_password=False)


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    db_schema: Optional[str] = None
    db_pool_size: int = 10
    db_pool_timeout: float = 30.0
    sql_dialect: str = "postgres"

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = GEMINI_OPENAI_BASE_URL
    llm_temperature: float = 0.1
    llm_max_tokens: int = 2000
    llm_timeout: float = 30.0
    llm_max_retries: int = 1

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:4200"])
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.getenv("GEMINI_API_KEY")
        return cls(
            database_url=_database_url(),
            db_schema=os.getenv("DB_SCHEMA") or None,
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
            sql_dialect=os.getenv("SQL_DIALECT", "postgres"),
            gemini_api_key=api_key.strip() if api_key and api_key.strip() else None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", GEMINI_OPENAI_BASE_URL),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.1")),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", "2000")),
            llm_timeout=float(os.getenv("LLM_TIMEOUT", "30")),
            llm_max_retries=int(os.getenv("LLM_MAX_RETRIES", "1")),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:4200"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool("LOG_JSON"),
        )
