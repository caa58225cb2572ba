import json
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from thumbnail.adapter.input.web.response.api_response import error_response, preflight_response, success_response
from thumbnail.application.exceptions import AnalysisServiceError
from thumbnail.infrastructure.config.dependency_injection import Container

logger = logging.getLogger(__name__)

analysis_router = APIRouter(tags=["analysis"])
history_router = APIRouter(prefix="/v1/analysis", tags=["analysis-history"])


def _container(request: Request) -> Container:
    return request.app.state.container


async def _run(action: Callable[..., Any], *args, **kwargs) -> JSONResponse:
    # 한국어 주석: 유스케이스는 동기 코드이므로 스레드풀에서 실행하고, 예외는 모두 응답 봉투로 바꾼다.
    try:
        result = await run_in_threadpool(action, *args, **kwargs)
    except AnalysisServiceError as exc:
        if exc.status_code >= 500:
            logger.error("[analysis_router] 요청 처리 실패: %s", exc.message)
        return error_response(exc.code, exc.message, exc.status_code)
    except Exception as exc:
        logger.exception("[analysis_router] 예기치 못한 오류")
        return error_response("SERVER_ERROR", str(exc) or "Internal server error", 500)
    return success_response(result)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        # 본문이 JSON 이 아니면 유스케이스의 검증 단계에서 오류로 처리된다.
        return None


@analysis_router.options("/analyze-thumbnails")
async def analyze_thumbnails_preflight():
    return preflight_response()


@analysis_router.post("/analyze-thumbnails")
@analysis_router.post("/v1/analysis/create")
async def analyze_thumbnails(
    request: Request,
    authorization: Optional[str] = Header(default=None),
):
    usecase = _container(request).analyze_thumbnails_usecase()
    payload = await _read_json(request)
    return await _run(usecase.analyze, authorization, payload)


@history_router.options("/{path:path}")
async def history_preflight(path: str):
    return preflight_response()


@history_router.get("/list")
async def list_analyses(
    request: Request,
    page: int = Query(default=1),
    limit: int = Query(default=20),
    status: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
):
    usecase = _container(request).analysis_history_usecase()
    return await _run(
        usecase.list_analyses,
        authorization,
        page=page,
        limit=limit,
        status=status,
        category=category,
        search=search,
    )


@history_router.get("/{analysis_id}")
async def get_analysis(
    analysis_id: str,
    request: Request,
    authorization: Optional[str] = Header(default=None),
):
    usecase = _container(request).analysis_history_usecase()
    return await _run(usecase.get_analysis, authorization, analysis_id)


@history_router.put("/{analysis_id}")
async def update_analysis(
    analysis_id: str,
    request: Request,
    authorization: Optional[str] = Header(default=None),
):
    usecase = _container(request).analysis_history_usecase()
    payload = await _read_json(request)
    return await _run(usecase.update_analysis, authorization, analysis_id, payload)


@history_router.delete("/{analysis_id}")
async def delete_analysis(
    analysis_id: str,
    request: Request,
    authorization: Optional[str] = Header(default=None),
):
    usecase = _container(request).analysis_history_usecase()
    return await _run(usecase.delete_analysis, authorization, analysis_id)
