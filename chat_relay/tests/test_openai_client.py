import json
import time

import httpx
import pytest

from chat_relay.domain.exceptions import BadGateway, ConfigurationError, UpstreamError, UpstreamTimeout
from chat_relay.domain.models import ChatMessage, ChatRequest
from chat_relay.providers.openai_client import GENERIC_UPSTREAM_ERROR, OpenAIClient, extract_error_message


class SettingsStub:
    openai_api_key = "sk-test"
    http_timeout = 1.0
    openai_base_url = "https://api.openai.com/v1"


def _request(**kw):
    return ChatRequest(model="gpt-3.5-turbo", messages=[ChatMessage(role="user", content="hi")], **kw)

class Resp:
    """流式响应替身：iter_bytes 按 8 字节一块返回响应体。"""

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)

    def __enter__(self):
        return self

    def __exit__(self, *a):
        return False

    def iter_bytes(self):
        raw = self.text.encode("utf-8")
        for i in range(0, len(raw), 8):
            yield raw[i:i + 8]


def _fake_client(monkeypatch, resp=None, exc=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, method, url, json=None, headers=None, **_):
            if captured is not None:
                captured.update(method=method, url=url, payload=json, headers=headers)
            if exc is not None:
                raise exc
            return resp

    monkeypatch.setattr("httpx.Client", Client)


def test_openai_client_parse_basic(monkeypatch):
    captured = {}
    _fake_client(
        monkeypatch,
        Resp(body={"choices": [{"message": {"content": "hello"}}], "usage": {"total_tokens": 5}}),
        captured=captured,
    )
    res = OpenAIClient(SettingsStub()).chat(_request())
    assert res.content == "hello"
    assert res.usage == {"total_tokens": 5}
    assert captured["method"] == "POST"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["client_kwargs"]["timeout"] == 1.0


def test_openai_client_payload_omits_missing_max_tokens(monkeypatch):
    captured = {}
    _fake_client(monkeypatch, Resp(body={"choices": []}), captured=captured)
    OpenAIClient(SettingsStub()).chat(_request(temperature=0.2))
    assert captured["payload"] == {
        "model": "gpt-3.5-turbo",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.2,
    }

    OpenAIClient(SettingsStub()).chat(_request(max_tokens=64))
    assert captured["payload"]["max_tokens"] == 64


def test_openai_client_missing_content_and_usage(monkeypatch):
    _fake_client(monkeypatch, Resp(body={"choices": [{"message": {}}]}))
    res = OpenAIClient(SettingsStub()).chat(_request())
    assert res.content == ""
    assert res.usage is None


def test_openai_client_forwards_upstream_status_and_message(monkeypatch):
    _fake_client(monkeypatch, Resp(status_code=401, body={"error": {"message": "Incorrect API key"}}))
    with pytest.raises(UpstreamError) as ei:
        OpenAIClient(SettingsStub()).chat(_request())
    assert ei.value.http_status == 401
    assert ei.value.message == "Incorrect API key"


def test_openai_client_upstream_error_without_json(monkeypatch):
    _fake_client(monkeypatch, Resp(status_code=503, text="<html>busy</html>"))
    with pytest.raises(UpstreamError) as ei:
        OpenAIClient(SettingsStub()).chat(_request())
    assert ei.value.http_status == 503
    assert ei.value.message == GENERIC_UPSTREAM_ERROR


def test_openai_client_unparseable_success_is_bad_gateway(monkeypatch):
    _fake_client(monkeypatch, Resp(status_code=200, text="not json"))
    with pytest.raises(BadGateway) as ei:
        OpenAIClient(SettingsStub()).chat(_request())
    assert ei.value.http_status == 502


def test_openai_client_timeout(monkeypatch):
    _fake_client(monkeypatch, exc=httpx.ReadTimeout("timed out"))
    with pytest.raises(UpstreamTimeout) as ei:
        OpenAIClient(SettingsStub()).chat(_request())
    assert ei.value.http_status == 504


def test_openai_client_transport_error(monkeypatch):
    _fake_client(monkeypatch, exc=httpx.ConnectError("connection refused"))
    with pytest.raises(BadGateway) as ei:
        OpenAIClient(SettingsStub()).chat(_request())
    assert ei.value.message == "Unable to complete the request to OpenAI."


def test_openai_client_requires_key():
    class NoKey(SettingsStub):
        openai_api_key = None

    with pytest.raises(ConfigurationError) as ei:
        OpenAIClient(NoKey()).chat(_request())
    assert ei.value.http_status == 500


@pytest.mark.parametrize(
    "body, expected",
    [
        ('{"error": {"message": "quota exceeded"}}', "quota exceeded"),
        ('{"error": "flat string"}', GENERIC_UPSTREAM_ERROR),
        ('{"error": {"message": 42}}', GENERIC_UPSTREAM_ERROR),
        ("[1, 2]", GENERIC_UPSTREAM_ERROR),
        ("", GENERIC_UPSTREAM_ERROR),
        (None, GENERIC_UPSTREAM_ERROR),
        ({"error": {"message": "parsed"}}, "parsed"),
    ],
)
def test_extract_error_message_never_raises(body, expected):
    assert extract_error_message(body) == expected


def _settings_for(base_url, timeout):
    class Stub(SettingsStub):
        http_timeout = timeout
        openai_base_url = base_url

    return Stub()


def test_openai_client_times_out_before_headers(slow_upstream):
    base_url = slow_upstream("stall", delay=1.5)
    with pytest.raises(UpstreamTimeout):
        OpenAIClient(_settings_for(base_url, 0.2)).chat(_request())


def test_openai_client_deadline_covers_slow_body(slow_upstream):
    # 每个字节间隔都小于单次读超时，只有总时限能截断
    base_url = slow_upstream("drip", delay=0.05)
    started = time.monotonic()
    with pytest.raises(UpstreamTimeout):
        OpenAIClient(_settings_for(base_url, 0.5)).chat(_request())
    assert time.monotonic() - started < 1.2


def test_openai_client_slow_body_within_deadline(slow_upstream):
    base_url = slow_upstream("drip", delay=0.001)
    res = OpenAIClient(_settings_for(base_url, 5.0)).chat(_request())
    assert res.content == "late"
