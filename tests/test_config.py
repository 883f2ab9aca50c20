from __future__ import annotations

from pathlib import Path

import pytest

from cms_backend.config import Settings, resolve_under


def test_cors_origins_accept_comma_separated_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://studio.example.com")
    monkeypatch.setenv("FRONTEND_URL", "https://www.example.com/")

    settings = Settings(_env_file=None)

    assert settings.cors_origins == ["http://localhost:3000", "https://studio.example.com"]
    assert settings.allowed_origins == [
        "http://localhost:3000",
        "https://studio.example.com",
        "https://www.example.com",
    ]


def test_cors_origins_accept_json_array_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["https://a.example.com", "https://b.example.com"]')
    monkeypatch.delenv("FRONTEND_URL", raising=False)

    settings = Settings(_env_file=None)

    assert settings.allowed_origins == ["https://a.example.com", "https://b.example.com"]


def test_resolve_under_keeps_relative_paths_inside_base(tmp_path):
    base = tmp_path.resolve()
    assert resolve_under(base, Path("data/cms.db")) == base / "data" / "cms.db"
    assert resolve_under(base, Path("/srv/cms.db")) == Path("/srv/cms.db")
    with pytest.raises(ValueError):
        resolve_under(base, Path("../outside.db"))
