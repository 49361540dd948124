"""Pytest configuration and fixtures for the brand analysis proxy."""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# Add the api directory to Python path
api_dir = Path(__file__).parent
sys.path.insert(0, str(api_dir))

from app.main import app
from app.core.config import Settings, get_settings
from app.routers.analyze import get_upstream_client


SAMPLE_RESULT = {
    "verdict": "needs_work",
    "summary": "Copy uses an em dash and shouty punctuation.",
    "win_quote": "We can tighten this up - swap the dash and calm the exclamation marks.",
    "issues": [
        {
            "name": "No em dashes",
            "severity": "fail",
            "category": "Copy",
            "excerpt": "Buy now!!! — amazing deal",
            "fix": "Replace the em dash with a spaced hyphen.",
        }
    ],
    "passes": [{"name": "Concise message", "category": "Copy"}],
}


def messages_response(text: str) -> Dict[str, Any]:
    """A Messages API success body whose first content item is `text`."""
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "model": "test-model",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 1200, "output_tokens": 150},
    }


class FakeUpstream:
    """Stands in for the provider at the httpx transport layer."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = messages_response(json.dumps(SAMPLE_RESULT))
        self.error: Optional[Exception] = None
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def reply_text(self, text: str):
        self.status_code = 200
        self.body = messages_response(text)

    def reply(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body

    def fail_with(self, error: Exception):
        self.error = error

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def payload(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        anthropic_base_url="https://api.anthropic.test",
        model="test-model",
        max_tokens=2048,
        strict_result_validation=False,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(test_settings, upstream) -> Generator[TestClient, None, None]:
    """Test client wired to the fake upstream and test settings."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_upstream_client] = lambda: upstream.client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    test_env = {
        "TESTING": "true",
        "SERVICE_ENV": "test",
        "LOG_LEVEL": "DEBUG",
    }

    for key, value in test_env.items():
        os.environ[key] = value

    yield

    for key in test_env.keys():
        os.environ.pop(key, None)


@pytest.fixture
def sample_text_request():
    return {"type": "text", "content": "Buy now!!! — amazing deal"}


@pytest.fixture
def sample_image_request():
    return {"type": "image", "content": "iVBORw0KGgoAAAANSUhEUgAAAAE=", "mimeType": "image/jpeg"}


@pytest.fixture
def sample_result():
    return json.loads(json.dumps(SAMPLE_RESULT))
