from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chat2sql.db.session import Database, get_database, require_database
from chat2sql.schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from chat2sql.services.llm.llm_client import (
    GenerationClient,
    get_generation_client,
    require_generation_client,
)
from chat2sql.services.query.query_service import run_nl_query

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def chat(
    request: Request,
    req: Optional[ChatRequest] = None,
    db: Optional[Database] = Depends(get_database),
    llm: Optional[GenerationClient] = Depends(get_generation_client),
):
    """
    자연어 질문 → SQL 생성 → 안전성 검사 → 실행 → 응답
    - 실행 오류/보안 거부는 200 응답의 error/response 로 전달
    - LLM, DB 미초기화는 500
    """
    # 본문 누락, 숫자 등 비문자열 message 도 동일한 400
    message = req.message if req is not None else None
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    llm = require_generation_client(llm)
    db = require_database(db)

    settings = request.app.state.settings
    return run_nl_query(
        db,
        llm,
        message,
        schema=settings.db_schema,
        dialect=settings.sql_dialect,
    )
