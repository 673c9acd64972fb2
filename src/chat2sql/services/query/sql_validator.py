import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import sqlglot
from sqlglot.errors import SqlglotError
from sqlglot.tokens import TokenType

from chat2sql.services.llm.response_parser import GenerationCandidate

logger = logging.getLogger(__name__)

SECURITY_MESSAGE = "For security reasons, I can only execute SELECT queries to retrieve data."


class GateDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class GateResult:
    decision: GateDecision
    reason: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.decision is GateDecision.APPROVED


def is_select_statement(sql: Optional[str]) -> bool:
    """구문 allow-list: 공백 제거 + 대문자화 후 SELECT 로 시작하는지만 확인"""
    if not sql or not sql.strip():
        return False
    return sql.strip().upper().startswith("SELECT")


def count_statements(sql: str, dialect: str = "postgres") -> int:
    """Number of non-empty statements; quoted or commented `;` are not separators."""
    tokens = sqlglot.tokenize(sql, read=dialect)
    count = 0
    pending = False
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            if pending:
                count += 1
            pending = False
        else:
            pending = True
    if pending:
        count += 1
    return count


def _reject(candidate: GenerationCandidate, reason: str) -> GateResult:
    logger.warning(
        "Non-SELECT query blocked for security (%s): %s",
        reason,
        candidate.sql_query,
        extra={"sql": candidate.sql_query, "gate_reason": reason},
    )
    candidate.needs_query = False
    candidate.response_text = SECURITY_MESSAGE
    return GateResult(GateDecision.REJECTED, reason)


def apply_gate(candidate: GenerationCandidate, dialect: str = "postgres") -> GateResult:
    """
    후보 SQL 실행 여부 결정.
    거부 시 candidate 를 직접 수정 (needs_query=False, 보안 안내 문구).
    SQL 자체는 재작성하지 않음.
    """
    sql = candidate.sql_query
    if not sql or not sql.strip():
        candidate.needs_query = False
        return GateResult(GateDecision.SKIPPED, "no query")

    if not is_select_statement(sql):
        return _reject(candidate, "not a SELECT statement")

    try:
        statements = count_statements(sql, dialect)
    except SqlglotError as e:
        return _reject(candidate, f"unreadable statement: {e}")
    if statements > 1:
        return _reject(candidate, "multiple statements")

    if not candidate.needs_query:
        return GateResult(GateDecision.SKIPPED, "query not needed")

    return GateResult(GateDecision.APPROVED)
