import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from config.database.session import init_db_schema
from thumbnail.adapter.input.web.analysis_router import analysis_router, history_router
from thumbnail.adapter.input.web.response.api_response import error_response
from thumbnail.infrastructure.config.dependency_injection import create_container


load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan 훅에서 DB 스키마를 준비합니다.
    """
    # 테이블이 없으면 자동 생성 (운영 DB 에서는 DB_AUTO_CREATE=false 로 끌 수 있다)
    if os.getenv("DB_AUTO_CREATE", "true").lower() in ("1", "true", "yes"):
        init_db_schema()
    yield


app = FastAPI(title="Thumbnail Analyzer", version="0.1.0", lifespan=lifespan)
app.state.container = create_container()

app.include_router(analysis_router)
app.include_router(history_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    first_error = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()))
    message = f"{location} {first_error.get('msg', 'Invalid request')}".strip()
    return error_response("VALIDATION_ERROR", message, 400)


@app.get("/health")
def health_check() -> dict[str, str]:
    """
    헬스체크 엔드포인트입니다.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)
