from datetime import datetime, timezone

from fastapi import APIRouter, Request

from chat2sql.routers.chat import router as chat_router
from chat2sql.routers.debug import router as debug_router
from chat2sql.schemas.chat import HealthResponse

api_router = APIRouter()
api_router.include_router(chat_router)
api_router.include_router(debug_router)

@api_router.get("/health", response_model=HealthResponse)
def health(request: Request):
    state = request.app.state
    return HealthResponse(
        gemini=getattr(state, "generation_client", None) is not None,
        database=getattr(state, "database", None) is not None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
