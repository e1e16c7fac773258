"""
Request logging middleware with request ID tracking and context propagation.
"""
import json
import logging
import time
import uuid
from contextvars import ContextVar

from healthsync.core.logging_config import LogCategory, _sanitize_data, log_api_request

logger = logging.getLogger(LogCategory.REQUEST)

# Context variable for request ID propagation
request_id_ctx: ContextVar[str] = ContextVar('request_id', default='unknown')
request_path_ctx: ContextVar[str] = ContextVar('request_path', default='unknown')

# Default status code when response is not captured
DEFAULT_STATUS_CODE = 500


def _sanitize_response_body(response_body: str) -> str:
    """
    Sanitize response body to mask sensitive fields.

    JSON bodies are parsed, sanitized and re-serialized; anything else gets
    plain string sanitization.
    """
    if not response_body:
        return response_body

    try:
        parsed = json.loads(response_body)
        return json.dumps(_sanitize_data(parsed))
    except (json.JSONDecodeError, TypeError):
        sanitized = _sanitize_data(response_body)
        return str(sanitized) if sanitized is not None else ""


class RequestLoggingMiddleware:
    """
    Pure ASGI middleware that:
    - Generates a unique request ID for each request (or reuses an incoming x-request-id)
    - Propagates it via context variables for error responses and logs
    - Adds an x-request-id response header
    - Logs method, path, status and duration
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(b"x-request-id")
        request_id = incoming.decode("latin-1")[:64] if incoming else str(uuid.uuid4())
        request_id_ctx.set(request_id)

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "/")
        request_path_ctx.set(path)

        response_captured = None
        response_body = None

        async def send_wrapper(message):
            nonlocal response_captured, response_body
            if message["type"] == "http.response.start":
                response_captured = {"status_code": message.get("status", DEFAULT_STATUS_CODE)}
                headers = list(message.get("headers", []))
                headers.append([b"x-request-id", request_id.encode()])
                message["headers"] = headers
            elif message["type"] == "http.response.body":
                # Keep 4xx bodies for debugging
                body = message.get("body", b"")
                if body and response_captured and 400 <= response_captured["status_code"] < 500:
                    try:
                        response_body = body.decode("utf-8")[:1000]
                    except (UnicodeDecodeError, AttributeError):
                        pass
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(
                "Request failed with exception",
                extra={"request_id": request_id, "method": method, "path": path, "error": str(e)},
                exc_info=True,
            )
            raise
        finally:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            status_code = response_captured["status_code"] if response_captured else DEFAULT_STATUS_CODE
            log_api_request(method, path, status_code, duration_ms, request_id=request_id)
            if response_body and 400 <= status_code < 500:
                logger.warning(
                    "Client error response: %s",
                    _sanitize_response_body(response_body),
                    extra={"request_id": request_id, "path": path},
                )
