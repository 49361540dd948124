"""Exception classes for the brand analysis proxy.

Each failure path of a request raises exactly one of these. The handler
registry at the bottom maps an exception type to its HTTP status; every
error is serialized to the same `{"error": "<message>"}` body.
"""

from typing import Dict, Any, Optional

from fastapi import HTTPException


class BrandProxyException(Exception):
    """Base exception for all proxy errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ClientInputError(BrandProxyException):
    """Raised when the inbound request body cannot be used."""

    def __init__(self, message: str = "Invalid JSON body", field: Optional[str] = None):
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, details)


class ConfigurationError(BrandProxyException):
    """Raised when the server is missing configuration it needs for a request."""

    def __init__(self, setting: str, message: Optional[str] = None):
        self.setting = setting
        message = message or f"{setting} environment variable not set"
        super().__init__(message, {"setting": setting})


class UpstreamError(BrandProxyException):
    """Raised when the upstream LLM provider call or its response fails."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 model: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.model = model
        super().__init__(message, details)


class RoutingError(BrandProxyException):
    """Raised for any method/path the proxy does not serve."""

    def __init__(self, method: Optional[str] = None, path: Optional[str] = None):
        self.method = method
        self.path = path
        super().__init__("Not found", {"method": method, "path": path})


def to_http_exception(exc: BrandProxyException, status_code: int = 500) -> HTTPException:
    """Convert a proxy exception to an HTTPException carrying the error body."""
    return HTTPException(status_code=status_code, detail={"error": exc.message})


def client_input_to_http_exception(exc: ClientInputError) -> HTTPException:
    return to_http_exception(exc, status_code=400)


def configuration_to_http_exception(exc: ConfigurationError) -> HTTPException:
    return to_http_exception(exc, status_code=500)


def upstream_to_http_exception(exc: UpstreamError) -> HTTPException:
    """Upstream failures of any kind are a bad gateway for our caller."""
    return to_http_exception(exc, status_code=502)


def routing_to_http_exception(exc: RoutingError) -> HTTPException:
    return to_http_exception(exc, status_code=404)


EXCEPTION_HANDLERS = {
    ClientInputError: client_input_to_http_exception,
    ConfigurationError: configuration_to_http_exception,
    UpstreamError: upstream_to_http_exception,
    RoutingError: routing_to_http_exception,
}
