import asyncio

import pytest
import requests

from app.core.config import settings
from app.core.exceptions import AIError, AIKillSwitchError
from app.services.openrouter_client import OpenRouterClient


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.posts.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _reply(content):
    return FakeResponse({"choices": [{"message": {"content": content}}]})


def _client(session, api_key="test-key"):
    return OpenRouterClient(api_key=api_key, base_url="https://llm.test/chat", max_attempts=1, session=session)


def _complete(client, **kwargs):
    return asyncio.run(client.complete([{"role": "user", "content": "hi"}], model="test-model", **kwargs))


def test_complete_returns_message_content():
    session = FakeSession(_reply('{"ok": true}'))
    assert _complete(_client(session)) == '{"ok": true}'

    sent = session.posts[0]
    assert sent["url"] == "https://llm.test/chat"
    assert sent["headers"]["Authorization"] == "Bearer test-key"
    assert sent["json"]["model"] == "test-model"
    assert "response_format" not in sent["json"]
    assert "plugins" not in sent["json"]


def test_optional_blocks_are_forwarded():
    session = FakeSession(_reply("[]"))
    fmt = {"type": "json_schema", "json_schema": {"name": "x", "schema": {}}}
    _complete(_client(session), response_format=fmt, plugins=[{"id": "web"}], temperature=0.0)

    payload = session.posts[0]["json"]
    assert payload["response_format"] == fmt
    assert payload["plugins"] == [{"id": "web"}]
    assert payload["temperature"] == 0.0


def test_http_error_maps_to_ai_error():
    session = FakeSession(FakeResponse({"error": "overloaded"}, status_code=503))
    with pytest.raises(AIError) as exc_info:
        _complete(_client(session))
    assert "503" in exc_info.value.message


def test_timeout_maps_to_ai_error():
    session = FakeSession(error=requests.exceptions.Timeout())
    with pytest.raises(AIError, match="timeout"):
        _complete(_client(session))


@pytest.mark.parametrize("response", [
    FakeResponse({"unexpected": True}),
    FakeResponse(None),
    _reply("   "),
])
def test_bad_reply_shapes_map_to_ai_error(response):
    with pytest.raises(AIError):
        _complete(_client(FakeSession(response)))


def test_missing_key_fails_before_request():
    session = FakeSession(_reply("unused"))
    with pytest.raises(AIError):
        _complete(_client(session, api_key=""))
    assert session.posts == []


def test_kill_switch_blocks_requests(monkeypatch):
    monkeypatch.setattr(settings.ai, "kill_switch", True)
    session = FakeSession(_reply("unused"))
    with pytest.raises(AIKillSwitchError):
        _complete(_client(session))
    assert session.posts == []
