from chat2sql.schemas.chat import ChatResponse
from chat2sql.services.llm.response_parser import GenerationCandidate
from chat2sql.services.query.query_executor import (
    ExecutionOutcome,
    QueryFailure,
    QuerySuccess,
)

EXECUTION_FAILURE_TEMPLATE = (
    "I encountered an error while querying the database: {message}. "
    "Please check if the table names and column names are correct."
)
GENERATION_TIMEOUT_TEMPLATE = "The language model did not answer in time: {message}. Please try again."


def compose_response(candidate: GenerationCandidate, outcome: ExecutionOutcome) -> ChatResponse:
    """후보 + 실행 결과 → 최종 응답. sqlQuery 는 거부/실패 시에도 그대로 돌려줌"""
    envelope = ChatResponse(
        sql_query=candidate.sql_query,
        response=candidate.response_text,
        needs_query=candidate.needs_query,
    )

    if isinstance(outcome, QuerySuccess):
        if outcome.row_count == 0:
            envelope.response = f"No results found. {candidate.response_text}"
        else:
            envelope.response = f"Found {outcome.row_count} result(s). {candidate.response_text}"
        envelope.data = outcome.rows
    elif isinstance(outcome, QueryFailure):
        envelope.response = EXECUTION_FAILURE_TEMPLATE.format(message=outcome.message)
        envelope.error = outcome.message

    return envelope


def compose_generation_failure(message: str) -> ChatResponse:
    return ChatResponse(
        sql_query=None,
        response=GENERATION_TIMEOUT_TEMPLATE.format(message=message),
        needs_query=False,
        error=message,
    )
