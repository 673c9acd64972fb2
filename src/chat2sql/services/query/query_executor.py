import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from chat2sql.db.session import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuerySuccess:
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class QueryFailure:
    message: str


@dataclass(frozen=True)
class QuerySkipped:
    reason: str = ""


ExecutionOutcome = Union[QuerySuccess, QueryFailure, QuerySkipped]


def _engine_message(exc: SQLAlchemyError) -> str:
    # DB 드라이버가 준 원본 메시지 그대로
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def execute_query(database: Database, sql: str) -> ExecutionOutcome:
    """Run an approved statement on one pooled connection; never raises."""
    logger.info("Executing SQL query: %s", sql, extra={"sql": sql})
    try:
        with database.connect() as conn:
            # 파라미터 없이 cursor.execute(sql) 로 원문 그대로 실행 (%, :name 해석 안 함)
            result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
            rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
    except SQLAlchemyError as e:
        message = _engine_message(e)
        logger.warning("SQL execution error: %s", message, extra={"sql": sql})
        return QueryFailure(message)

    logger.info("Query returned %d rows", len(rows), extra={"sql": sql, "row_count": len(rows)})
    return QuerySuccess(rows)
