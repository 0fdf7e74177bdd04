import json

import httpx
import pytest
from fastapi.testclient import TestClient

from ats_proxy.main import create_app
from config import ProxySettings

TEST_API_KEY = "sk-or-v1-test-key-0123456789"
TEST_BASE_URL = "https://openrouter.test/api/v1"


class FakeOpenRouter:
    """Stands in for OpenRouter behind httpx.MockTransport and records every request."""

    def __init__(self):
        self.requests = []
        self._handler = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def reply(self, status_code=200, json_body=None, text=None):
        if text is not None:
            self._handler = lambda request: httpx.Response(status_code, text=text)
        else:
            self._handler = lambda request: httpx.Response(status_code, json=json_body)

    def reply_with_content(self, content, usage=None):
        body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
        if usage is not None:
            body["usage"] = usage
        self.reply(200, body)

    def fail_with(self, exc_factory):
        def handler(request):
            raise exc_factory(request)
        self._handler = handler

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def last_payload(self):
        return json.loads(self.requests[-1].content)


def make_settings(**overrides) -> ProxySettings:
    values = {
        "api_key": TEST_API_KEY,
        "base_url": TEST_BASE_URL,
        "allowed_origins": ["http://localhost:3000"],
        "referer": "http://localhost:3000",
    }
    values.update(overrides)
    return ProxySettings(**values)


@pytest.fixture
def upstream():
    return FakeOpenRouter()


@pytest.fixture
def make_client(upstream):
    """Factory: make_client(**settings_overrides) -> TestClient with lifespan running."""
    clients = []

    def factory(**overrides):
        app = create_app(make_settings(**overrides), transport=upstream.transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
