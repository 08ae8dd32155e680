import pytest
import requests

from tracker_core import http_client


class FakeResponse:
    def __init__(self, status_code, text="", reason=""):
        self.status_code = status_code
        self.text = text
        self.reason = reason


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_post_json_success_uses_reason(monkeypatch):
    session = FakeSession(FakeResponse(200, text="{}", reason="OK"))
    monkeypatch.setattr(http_client, "http", session)
    response = http_client.post_json("https://example.invalid/api", {"a": 1}, timeout=3)
    assert (response.code, response.message) == (200, "OK")
    assert session.posts == [("https://example.invalid/api", {"a": 1}, 3)]


def test_post_json_error_uses_body(monkeypatch):
    monkeypatch.setattr(http_client, "http",
                        FakeSession(FakeResponse(401, text="Invalid access key", reason="Unauthorized")))
    response = http_client.post_json("https://example.invalid/api", {})
    assert (response.code, response.message) == (401, "Invalid access key")


def test_connection_error_resets_session(monkeypatch):
    broken = FakeSession(error=requests.ConnectionError("reset by peer"))
    fresh = FakeSession(FakeResponse(200, reason="OK"))
    monkeypatch.setattr(http_client, "http", broken)
    monkeypatch.setattr(http_client, "reset_session", lambda old: fresh)

    with pytest.raises(requests.ConnectionError):
        http_client.post_json("https://example.invalid/api", {})
    assert http_client.http is fresh


def test_session_has_no_adapter_retries():
    session = http_client.create_session()
    adapter = session.get_adapter("https://paceman.gg")
    assert adapter.max_retries.total == 0
    assert session.headers["Content-Type"] == "application/json"
    assert session.verify
