from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat2sql.config import Settings
from chat2sql.db.session import Database, init_database
from chat2sql.errors import ServiceError
from chat2sql.logger import configure_logging
from chat2sql.routers.api import api_router
from chat2sql.services.llm.llm_client import GenerationClient, init_generation_client

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(
        "Error in %s: %s (%s)", request.url.path, exc.error, exc.details, extra={"path": request.url.path}
    )
    return JSONResponse(status_code=500, content={"error": exc.error, "details": exc.details})


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    generation_client: Optional[GenerationClient] = None,
    init_services: bool = True,
) -> FastAPI:
    """
    init_services=True 이면 lifespan 에서 Gemini 클라이언트와 DB 풀을 초기화.
    초기화 실패는 프로세스를 죽이지 않고 /api/health 로 노출됨.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_services:
            logger.info("Initializing services...")
            app.state.generation_client = init_generation_client(settings)
            app.state.database = await asyncio.to_thread(init_database, settings)
        yield
        # 외부에서 주입된 DB 는 호출한 쪽이 정리
        if init_services and app.state.database is not None:
            app.state.database.dispose()

    app = FastAPI(title="chat2sql", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.generation_client = generation_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.include_router(api_router, prefix="/api")
    return app

app = create_app()
