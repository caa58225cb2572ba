from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse

# 한국어 주석: 브라우저/앱 클라이언트가 직접 호출하므로 모든 응답에 CORS 헤더를 붙인다.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

# PUT/DELETE 는 단순 요청이 아니므로 preflight 응답에 허용 메서드를 함께 알려준다.
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}


def preflight_response() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=PREFLIGHT_HEADERS)


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": True, "data": data}),
        headers=CORS_HEADERS,
    )


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
        headers=CORS_HEADERS,
    )
