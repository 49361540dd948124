"""Unit tests for middleware components."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.logging import request_id_var
from app.middleware.request_response import CORSMiddleware, RequestResponseMiddleware

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "POST, OPTIONS",
    "access-control-allow-headers": "Content-Type, Authorization",
}


@pytest.fixture
def mini_app():
    """Small app wired with the same middleware stack as the service."""
    app = FastAPI()
    app.add_middleware(RequestResponseMiddleware)
    app.add_middleware(CORSMiddleware)

    @app.post("/ok")
    async def ok():
        return {"request_id": request_id_var.get()}

    @app.post("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return app


@pytest.fixture
def mini_client(mini_app):
    return TestClient(mini_app)


class TestRequestResponseMiddleware:
    """Test request/response middleware."""

    def test_request_id_generated_and_bound(self, mini_client):
        response = mini_client.post("/ok")

        assert response.status_code == 200
        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id

    def test_incoming_request_id_is_reused(self, mini_client):
        response = mini_client.post("/ok", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_processing_time_header(self, mini_client):
        response = mini_client.post("/ok")

        assert response.headers["X-Processing-Time"].endswith("ms")

    def test_unhandled_exception_becomes_500(self, mini_client):
        response = mini_client.post("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    @patch('app.middleware.request_response.logger')
    def test_request_logging(self, mock_logger, mini_client):
        mini_client.post("/ok")

        assert mock_logger.info.called
        assert mock_logger.log.called


class TestCORSMiddleware:
    """Test CORS middleware."""

    @pytest.mark.parametrize("path", ["/ok", "/api/analyze", "/anything/else"])
    def test_preflight_any_path(self, mini_client, path):
        response = mini_client.options(path)

        assert response.status_code == 204
        assert response.content == b""
        for name, value in CORS_HEADERS.items():
            assert response.headers[name] == value

    def test_headers_on_normal_response(self, mini_client):
        response = mini_client.post("/ok")

        for name, value in CORS_HEADERS.items():
            assert response.headers[name] == value

    def test_headers_on_error_response(self, mini_client):
        response = mini_client.post("/boom")

        assert response.headers["access-control-allow-origin"] == "*"
