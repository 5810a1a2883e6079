"""Request-id middleware and JSON error handlers shared by every API route."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from trellone.core.config import settings
from trellone.core.errors import TrelloneError
from trellone.core.logging import bind_request_id, get_logger, reset_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-Id"
HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
MAX_REQUEST_ID_LENGTH = 128

logger = get_logger(__name__)


class RequestContextMiddleware:
    """Assign a request id to each HTTP request and log its outcome."""

    def __init__(self, app: ASGIApp) -> None:
        self._app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        token = bind_request_id(request_id)
        started = perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        async def _send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = MutableHeaders(scope=message)
                if REQUEST_ID_HEADER not in headers:
                    headers.append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self._app(scope, receive, _send)
        finally:
            duration_ms = (perf_counter() - started) * 1000
            _log_request(scope, status_code=status_code, duration_ms=duration_ms)
            reset_request_id(token)


def _incoming_request_id(scope: Scope) -> str | None:
    value = Headers(scope=scope).get(REQUEST_ID_HEADER)
    if value is None:
        return None
    value = value.strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH:
        return None
    return value


def _log_request(scope: Scope, *, status_code: int, duration_ms: float) -> None:
    path = str(scope.get("path", ""))
    if path in HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "method": scope.get("method"),
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    threshold = settings.request_log_slow_ms
    if threshold and duration_ms >= threshold:
        logger.warning(
            "http.request.slow",
            extra={**extra, "slow_threshold_ms": threshold},
        )
        return
    logger.info("http.request.complete", extra=extra)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(*, detail: Any, request_id: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if request_id:
        payload["request_id"] = request_id
    return payload


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


def _json_response(
    *,
    status_code: int,
    payload: dict[str, Any],
    request_id: str | None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    response_headers = dict(headers or {})
    if request_id:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=payload, headers=response_headers)


async def _request_validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise TypeError("Expected RequestValidationError")
    request_id = _get_request_id(request)
    return _json_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        payload=_error_payload(detail=_json_safe(exc.errors()), request_id=request_id),
        request_id=request_id,
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        raise TypeError("Expected ResponseValidationError")
    request_id = _get_request_id(request)
    logger.error(
        "http.response.validation_failed path=%s errors=%s",
        request.url.path,
        len(exc.errors()),
    )
    return _json_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        payload=_error_payload(detail="Internal Server Error", request_id=request_id),
        request_id=request_id,
    )


async def _http_exception_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        raise TypeError("Expected StarletteHTTPException")
    request_id = _get_request_id(request)
    payload = _error_payload(detail=_json_safe(exc.detail), request_id=request_id)
    if isinstance(exc, TrelloneError):
        payload.update(exc.extra_payload())
    return _json_response(
        status_code=exc.status_code,
        payload=payload,
        request_id=request_id,
        headers=exc.headers,
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _get_request_id(request)
    logger.error(
        "http.request.unhandled_error path=%s error=%s",
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return _json_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        payload=_error_payload(detail="Internal Server Error", request_id=request_id),
        request_id=request_id,
    )


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and JSON exception handlers on ``app``."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
