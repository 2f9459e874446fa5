from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

# Storefront and provider callbacks hit these endpoints cross-origin
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey, X-Internal-API-Key",
}


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder(content),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def error_response(
    message: str,
    status_code: int,
    trace_id: str | None = None,
    details: Any = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    if trace_id:
        body["traceId"] = trace_id
    return json_response(body, status_code=status_code)


def preflight_response() -> Response:
    """OPTIONS answer: status 200, CORS headers, no body."""
    return Response(status_code=200, headers=CORS_HEADERS)
