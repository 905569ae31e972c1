"""
Unit tests for settings.
"""

import pytest
from pydantic import ValidationError

from msgqueue.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    settings = Settings(_env_file=None)

    assert settings.storage_backend == "memory"
    assert settings.default_visibility_timeout == 30
    assert settings.max_visibility_timeout == 43200
    assert settings.list_page_size == 1000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "sql")
    monkeypatch.setenv("LIST_PAGE_SIZE", "50")

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "sql"
    assert settings.list_page_size == 50


def test_default_visibility_timeout_within_maximum():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_visibility_timeout=120, max_visibility_timeout=60)


def test_rejects_unknown_backend():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, storage_backend="redis")
