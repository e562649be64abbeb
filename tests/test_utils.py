import logging
import re
from types import SimpleNamespace

import pytest

from app.config import Settings, normalize_database_url, parse_rate_limit, split_origin_patterns
from app.utils.logging import log_request_error
from app.utils.pagination import MAX_LIMIT, clamp_page
from app.utils.text import estimate_read_time, normalize_tags, slugify


@pytest.mark.parametrize(
    "title,slug",
    [
        ("The Future of AI: Healthcare!", "the-future-of-ai-healthcare"),
        ("  Machine   Learning -- in FinTech ", "machine-learning-in-fintech"),
        ("Café Déjà Vu", "cafe-deja-vu"),
        ("snake_case_title", "snake-case-title"),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_slugify_is_stable():
    assert slugify(slugify("Hello World")) == "hello-world"


def test_normalize_tags():
    assert normalize_tags("ai, ml , ai,,") == ["ai", "ml"]
    assert normalize_tags(["x", " y ", ""]) == ["x", "y"]
    assert normalize_tags(None) is None


def test_estimate_read_time():
    assert estimate_read_time(None) == 1
    assert estimate_read_time("word " * 200) == 1
    assert estimate_read_time("word " * 201) == 2
    assert estimate_read_time("word " * 150, "word " * 150) == 2


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (None, None, (1, 20)),
        (0, 10, (1, 10)),
        (-5, 0, (1, 20)),
        (3, 1000, (3, MAX_LIMIT)),
        (2, -1, (2, 20)),
    ],
)
def test_clamp_page(page, limit, expected):
    params = clamp_page(page, limit)
    assert (params.page, params.limit) == expected


def test_page_offset():
    assert clamp_page(3, 10).offset == 20


def test_split_origin_patterns():
    exact, regex = split_origin_patterns(
        ["http://localhost:5173/", "https://*.vercel.app", "https://ai-solutions.com"]
    )
    assert exact == ["http://localhost:5173", "https://ai-solutions.com"]
    assert re.match(regex, "https://preview-123.vercel.app")
    assert re.match(regex, "https://Preview.Vercel.App")
    assert not re.match(regex, "https://vercel.app")
    assert not re.match(regex, "https://evil.com/.vercel.app")
    assert not re.match(regex, "https://a.b.vercel.app")


def test_split_origin_patterns_without_wildcards():
    assert split_origin_patterns(["https://a.com"]) == (["https://a.com"], None)


def test_parse_rate_limit():
    assert parse_rate_limit("10/hour") == ("hour", 10)
    assert parse_rate_limit("bogus") == ("minute", 5)
    assert parse_rate_limit("3/fortnight") == ("minute", 5)
    assert parse_rate_limit(None) == ("minute", 5)


def test_normalize_database_url():
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"


def test_log_request_error_includes_request_context(caplog):
    request = SimpleNamespace(
        url=SimpleNamespace(path="/api/admin/metrics"),
        method="GET",
        headers={"user-agent": "pytest"},
    )
    with caplog.at_level(logging.ERROR, logger="AISolutions"):
        log_request_error(request, RuntimeError("boom"))

    assert "Unhandled exception: RuntimeError" in caplog.text
    assert "path=/api/admin/metrics" in caplog.text
    assert "method=GET" in caplog.text
    assert "RuntimeError: boom" in caplog.text


def test_settings_read_host_and_port(monkeypatch):
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "8080")
    settings = Settings.from_env()
    assert (settings.host, settings.port) == ("127.0.0.1", 8080)


def test_run_serves_app_on_configured_address(monkeypatch):
    import app.main as main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    main.run(Settings(host="127.0.0.1", port=8080))

    assert calls[0][0] is main.app
    assert calls[0][1]["host"] == "127.0.0.1"
    assert calls[0][1]["port"] == 8080
