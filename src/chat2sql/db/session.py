import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from chat2sql.config import Settings
from chat2sql.errors import DatabaseUnavailable

logger = logging.getLogger(__name__)


class Database:
    """Pooled database capability shared by every request."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        # 고정 크기 풀: 초과 요청은 pool_timeout 동안 대기
        engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
        )
        return cls(engine)

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        # 커밋하지 않음: 반납 시 암묵적 트랜잭션은 rollback
        with self.engine.connect() as conn:
            yield conn

    def ping(self) -> None:
        with self.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


def init_database(settings: Settings) -> Optional[Database]:
    if not settings.database_url:
        logger.error("Database is not configured (set DATABASE_URL or DB_NAME)")
        return None

    try:
        database = Database.from_settings(settings)
        database.ping()
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        return None

    logger.info("Database connected successfully")
    return database


def get_database(request: Request) -> Optional[Database]:
    return getattr(request.app.state, "database", None)


def require_database(database: Optional[Database]) -> Database:
    if database is None:
        raise DatabaseUnavailable("Database connection pool is not initialized")
    return database
