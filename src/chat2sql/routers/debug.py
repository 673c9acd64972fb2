from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request

from chat2sql.db.session import Database, get_database, require_database
from chat2sql.schemas.chat import ErrorResponse, SchemaResponse
from chat2sql.services.schema.introspector import introspect_schema

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/schema", response_model=SchemaResponse, responses={500: {"model": ErrorResponse}})
def debug_schema(request: Request, db: Optional[Database] = Depends(get_database)):
    """현재 DB 스키마를 프롬프트에 들어가는 형태 그대로 반환"""
    db = require_database(db)
    description = introspect_schema(db, request.app.state.settings.db_schema)
    return SchemaResponse(
        schema=description.render(),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
