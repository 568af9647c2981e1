import json
import logging

import pytest
from starlette.requests import Request

from app.config import Settings
from app.logging_config import JsonFormatter
from app.middleware import retry_after_header
from app.utils import UNKNOWN_CLIENT, client_identifier, first_forwarded_address


def make_request(client=("10.0.0.5", 5000), headers=None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in (headers or {}).items()
        ],
        "client": client,
    }
    return Request(scope)


def test_client_identifier_uses_peer_address():
    assert client_identifier(make_request()) == "10.0.0.5"


def test_client_identifier_falls_back_to_unknown():
    assert client_identifier(make_request(client=None)) == UNKNOWN_CLIENT


def test_client_identifier_prefers_forwarded_when_trusted():
    request = make_request(headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert client_identifier(request, trust_forwarded_for=True) == "203.0.113.9"
    assert client_identifier(request) == "10.0.0.5"


def test_first_forwarded_address_handles_blank_values():
    assert first_forwarded_address(None) is None
    assert first_forwarded_address("") is None
    assert first_forwarded_address(" , 10.0.0.1") is None
    assert first_forwarded_address(" 198.51.100.4 ") == "198.51.100.4"


def test_retry_after_header_whole_seconds():
    assert retry_after_header(60) == "60"
    assert retry_after_header(1.4) == "1"
    assert retry_after_header(0.2) == "1"


def test_settings_defaults(monkeypatch):
    for name in (
        "RATE_LIMIT_REQUESTS",
        "RATE_LIMIT_WINDOW_SECONDS",
        "RATE_LIMIT_TRUST_FORWARDED_FOR",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.rate_limit_requests == 10
    assert settings.rate_limit_window_seconds == 60
    assert settings.trust_forwarded_for is False
    assert settings.log_level == "INFO"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_REQUESTS", "25")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "120")
    monkeypatch.setenv("RATE_LIMIT_TRUST_FORWARDED_FOR", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.rate_limit_requests == 25
    assert settings.rate_limit_window_seconds == 120
    assert settings.trust_forwarded_for is True
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("name", ["RATE_LIMIT_REQUESTS", "RATE_LIMIT_WINDOW_SECONDS"])
@pytest.mark.parametrize("value", ["abc", "0", "-5", "1.5"])
def test_settings_rejects_invalid_integers(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match=name):
        Settings.from_env()


def test_settings_rejects_unknown_flag_value(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_TRUST_FORWARDED_FOR", "ture")

    with pytest.raises(RuntimeError, match="RATE_LIMIT_TRUST_FORWARDED_FOR"):
        Settings.from_env()


def test_settings_accepts_explicit_false_flag(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_TRUST_FORWARDED_FOR", "Off")

    assert Settings.from_env().trust_forwarded_for is False


def test_settings_rejects_unknown_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "bogus")

    with pytest.raises(RuntimeError, match="LOG_LEVEL"):
        Settings.from_env()


def test_json_formatter_includes_client_ip():
    record = logging.LogRecord("app.middleware", logging.WARNING, __file__, 1, "rate limit exceeded", None, None)
    record.client_ip = "9.9.9.9"

    payload = json.loads(JsonFormatter().format(record))

    assert payload == {
        "level": "WARNING",
        "message": "rate limit exceeded",
        "logger": "app.middleware",
        "client_ip": "9.9.9.9",
    }


def test_json_formatter_includes_limiter_configuration():
    record = logging.LogRecord("main", logging.INFO, __file__, 1, "rate limiter configured", None, None)
    record.limit = 10
    record.window = 60

    payload = json.loads(JsonFormatter().format(record))

    assert payload["limit"] == 10
    assert payload["window"] == 60
    assert "client_ip" not in payload
