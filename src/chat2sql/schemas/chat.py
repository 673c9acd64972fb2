from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    # 누락/비문자열/빈 메시지는 422 가 아니라 라우터에서 400 처리
    message: Any = None


class ChatResponse(BaseModel):
    # bytea/BLOB 값은 JSON 에서 base64 문자열로
    model_config = ConfigDict(populate_by_name=True, ser_json_bytes="base64")

    sql_query: Optional[str] = Field(default=None, alias="sqlQuery")
    response: str
    needs_query: bool = Field(default=False, alias="needsQuery")
    data: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "OK"
    gemini: bool
    database: bool
    timestamp: str


class SchemaResponse(BaseModel):
    schema_: str = Field(alias="schema")
    timestamp: str

    model_config = ConfigDict(populate_by_name=True)
