"""Request/response middleware.

`RequestResponseMiddleware` gives every request an id, times it, logs it,
and turns any exception that escaped the exception handlers into a plain
500 so that each request still receives exactly one JSON response.
`CORSMiddleware` answers every preflight and stamps the permissive CORS
headers on all other responses.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestResponseMiddleware(BaseHTTPMiddleware):
    """Middleware for request ids, timing and access logging."""

    def __init__(
        self,
        app: ASGIApp,
        add_request_id: bool = True,
        log_requests: bool = True,
        log_responses: bool = True,
        include_processing_time: bool = True,
    ):
        super().__init__(app)
        self.add_request_id = add_request_id
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.include_processing_time = include_processing_time

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            if self.log_requests:
                self._log_request(request)

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Unhandled exception in request processing: {type(e).__name__}",
                    extra={"method": request.method, "path": request.url.path},
                    exc_info=True,
                )
                response = JSONResponse(status_code=500, content={"error": "Internal server error"})

            processing_time_ms = int((time.time() - start_time) * 1000)

            if self.add_request_id:
                response.headers["X-Request-ID"] = request_id
            if self.include_processing_time:
                response.headers["X-Processing-Time"] = f"{processing_time_ms}ms"

            if self.log_responses:
                self._log_response(request, response, processing_time_ms)
            return response
        finally:
            request_id_var.reset(token)

    def _log_request(self, request: Request):
        logger.info(
            f"Incoming request: {request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "remote_addr": self._get_client_ip(request),
                "content_type": request.headers.get("content-type", ""),
                "content_length": request.headers.get("content-length", 0),
            },
        )

    def _log_response(self, request: Request, response: Response, processing_time_ms: int):
        if response.status_code >= 500:
            log_level = logging.ERROR
            log_message = f"Server error response: {response.status_code}"
        elif response.status_code >= 400:
            log_level = logging.WARNING
            log_message = f"Client error response: {response.status_code}"
        else:
            log_level = logging.INFO
            log_message = f"Successful response: {response.status_code}"

        logger.log(
            log_level,
            f"{log_message} for {request.method} {request.url.path} ({processing_time_ms}ms)",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "processing_time_ms": processing_time_ms,
            },
        )

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return "unknown"


class CORSMiddleware(BaseHTTPMiddleware):
    """Permissive CORS: any origin, preflight answered on every path."""

    def __init__(
        self,
        app: ASGIApp,
        allow_origin: str = "*",
        allow_methods: Optional[List[str]] = None,
        allow_headers: Optional[List[str]] = None,
    ):
        super().__init__(app)
        self.allow_origin = allow_origin
        self.allow_methods = allow_methods or ["POST", "OPTIONS"]
        self.allow_headers = allow_headers or ["Content-Type", "Authorization"]

    @property
    def cors_headers(self) -> Dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=self.cors_headers)

        response = await call_next(request)
        response.headers.update(self.cors_headers)
        return response
