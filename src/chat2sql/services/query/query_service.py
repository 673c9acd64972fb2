import logging
from typing import Optional

from chat2sql.db.session import Database
from chat2sql.errors import GenerationTimeout
from chat2sql.schemas.chat import ChatResponse
from chat2sql.services.llm.llm_client import GenerationClient
from chat2sql.services.llm.prompt_builder import build_generation_request
from chat2sql.services.llm.response_parser import interpret_response
from chat2sql.services.query.query_executor import QuerySkipped, execute_query
from chat2sql.services.query.response_composer import compose_generation_failure, compose_response
from chat2sql.services.query.sql_validator import apply_gate
from chat2sql.services.schema.introspector import introspect_schema

logger = logging.getLogger(__name__)


def run_nl_query(
    db: Database,
    llm: GenerationClient,
    question: str,
    schema: Optional[str] = None,
    dialect: str = "postgres",
) -> ChatResponse:
    # 스키마는 요청마다 새로 조회 (캐시 없음)
    description = introspect_schema(db, schema)
    request = build_generation_request(description, question)

    try:
        raw = llm.generate(request.render())
    except GenerationTimeout as e:
        return compose_generation_failure(str(e))

    candidate = interpret_response(raw)
    gate = apply_gate(candidate, dialect)
    if gate.approved:
        outcome = execute_query(db, candidate.sql_query)
    else:
        logger.info("No query execution (%s)", gate.reason, extra={"gate_reason": gate.reason})
        outcome = QuerySkipped(gate.reason or "")

    return compose_response(candidate, outcome)
