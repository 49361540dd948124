from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings
from .core.logging import setup_logging
from .middleware.request_response import CORSMiddleware, RequestResponseMiddleware
from .models.exceptions import (
    BrandProxyException,
    EXCEPTION_HANDLERS,
    RoutingError,
    UpstreamError,
    to_http_exception,
)
from .routers import analyze

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared upstream client and report configuration at startup."""
    base = f"http://localhost:{settings.port}"
    logger.info(f"Win brand assistant server running on {base}")
    logger.info(f"API endpoint: {base}/api/analyze")
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY not set. Set it to enable live analysis.")

    app.state.upstream_client = httpx.AsyncClient(timeout=settings.upstream_timeout)
    try:
        yield
    finally:
        await app.state.upstream_client.aclose()
        logger.info("Shutdown complete")


app = FastAPI(
    title=settings.service_name,
    description="Brand guideline analysis proxy for the Anthropic Messages API",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=lifespan,
)

# Added last so it runs first: CORS headers land on every response,
# including the 500 produced by RequestResponseMiddleware.
app.add_middleware(RequestResponseMiddleware)
app.add_middleware(CORSMiddleware)


def _error_response(exc: BrandProxyException, default_status: int = 500) -> JSONResponse:
    for exc_type, handler in EXCEPTION_HANDLERS.items():
        if isinstance(exc, exc_type):
            http_exc = handler(exc)
            break
    else:
        http_exc = to_http_exception(exc, status_code=default_status)
    return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)


@app.exception_handler(BrandProxyException)
async def brand_proxy_exception_handler(request: Request, exc: BrandProxyException):
    """Serialize proxy exceptions to `{"error": message}` with their status."""
    extra = {"path": request.url.path, "error_details": exc.details}
    if isinstance(exc, UpstreamError):
        extra.update(upstream_status=exc.status_code, model=exc.model)
    logger.warning(f"{type(exc).__name__}: {exc.message}", extra=extra)
    return _error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown paths and unsupported methods are both plain 404s."""
    if exc.status_code in (404, 405):
        return _error_response(RoutingError(request.method, request.url.path))
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"error": message})


app.include_router(analyze.router)
