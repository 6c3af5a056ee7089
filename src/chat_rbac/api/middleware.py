"""Request-scoped logging context for the FastAPI adapter."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from chat_rbac.common.logging import bind_request_context, clear_request_context, log_context

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_LOGGER = logging.getLogger("chat_rbac.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID per request and log one line when it finishes.

    The ID comes from the ``X-Request-ID`` header when the caller sends one
    and is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        bind_request_context(correlation_id)

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            extra = log_context(
                path=request.url.path,
                method=request.method,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                status_code=response.status_code if response is not None else None,
            )
            if response is not None:
                _REQUEST_LOGGER.info("request.complete", extra=extra)
            else:
                _REQUEST_LOGGER.error("request.error", extra=extra)
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response


def register_request_context(app: FastAPI) -> None:
    """Install :class:`RequestContextMiddleware` on ``app``."""

    app.add_middleware(RequestContextMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_request_context"]
