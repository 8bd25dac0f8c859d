# app/backend/middleware/security.py
import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import Response

from app.backend.core.config import Settings
from app.backend.core.errors import PayloadTooLarge, error_body, unhandled_exception_handler

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("app.access")

_QUIET_PATHS = {"/health", "/metrics"}

_BASE_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Content-Security-Policy": (
        "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; "
        "object-src 'none'; frame-ancestors 'none'"
    ),
}


def apply_security_headers(response: Response, settings: Settings) -> Response:
    for key, value in _BASE_SECURITY_HEADERS.items():
        response.headers.setdefault(key, value)
    if settings.is_production:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


async def request_monitor_middleware(request: Request, call_next):
    start = time.perf_counter()
    settings = request.app.state.settings
    try:
        response = await call_next(request)
    except Exception as exc:
        # ServerErrorMiddleware 는 이 스택 바깥이라 보안 헤더가 붙지 않는다
        response = apply_security_headers(await unhandled_exception_handler(request, exc), settings)
    duration_ms = (time.perf_counter() - start) * 1000

    monitor = request.app.state.monitor
    monitor.record_request(duration_ms)
    if response.status_code >= 400:
        monitor.record_error()

    if settings.request_logging and request.url.path not in _QUIET_PATHS:
        client = request.client.host if request.client else "-"
        access_logger.info(
            '%s "%s %s" %s %.1fms',
            client, request.method, request.url.path, response.status_code, duration_ms,
        )
    return response


async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    return apply_security_headers(response, request.app.state.settings)


class BodyLimitMiddleware:
    """
    Pure-ASGI request size limit. A declared ``Content-Length`` is checked up front;
    bodies without one (chunked) are counted as they are received, and the read
    fails with ``PayloadTooLarge`` once the count passes ``max_bytes``.
    """

    def __init__(self, app, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw = Headers(scope=scope).get("content-length")
        if raw is not None:
            try:
                size = int(raw)
            except ValueError:
                response = JSONResponse(status_code=400, content=error_body("Invalid Content-Length header"))
                await response(scope, receive, send)
                return
            if size > self.max_bytes:
                logger.warning("request body too large: %s bytes (limit %s)", size, self.max_bytes)
                await self._reject(scope, receive, send)
                return

        received = 0
        started = False

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning("streamed request body over limit %s", self.max_bytes)
                    raise PayloadTooLarge()
            return message

        async def tracking_send(message):
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLarge:
            # 라우터 밖에서 본문을 읽은 경우
            if started:
                raise
            await self._reject(scope, receive, send)

    @staticmethod
    async def _reject(scope, receive, send) -> None:
        response = JSONResponse(status_code=413, content=error_body(PayloadTooLarge.default_detail))
        await response(scope, receive, send)


class HeadAsGetMiddleware:
    """
    Routes are declared for GET only; HEAD is served by the GET handler with the
    body dropped, so every GET route (health checks included) answers HEAD the same way.
    """

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "HEAD":
            await self.app(scope, receive, send)
            return

        async def send_headers_only(message):
            if message["type"] == "http.response.body":
                message = {"type": "http.response.body", "body": b"", "more_body": message.get("more_body", False)}
            await send(message)

        await self.app(dict(scope, method="GET"), receive, send_headers_only)


async def cors_origin_log_middleware(request: Request, call_next):
    origin = request.headers.get("origin")
    allowed = request.app.state.settings.cors_origin_list
    if origin and allowed and origin not in allowed:
        logger.warning("Blocked by CORS: %s", origin)
    return await call_next(request)


class OptionalGZipMiddleware(GZipMiddleware):
    """GZip that steps aside when the client sends ``x-no-compression``."""

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            for name, _ in scope.get("headers", []):
                if name == b"x-no-compression":
                    await self.app(scope, receive, send)
                    return
        await super().__call__(scope, receive, send)
