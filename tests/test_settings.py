"""Tests for habitlog/settings.py."""

import pytest

from habitlog.errors import ValidationError
from habitlog.settings import load_settings, update_settings, validate_settings


def test_load_settings(store):
    settings = load_settings(store)
    assert settings.yearly_week_offs_allowed == 2
    assert settings.timezone == "UTC"


def test_defaults_without_file(tmp_path):
    from habitlog.store import FileStore

    settings = load_settings(FileStore(tmp_path))
    assert settings.yearly_week_offs_allowed == 0
    assert settings.app_password == "password"


def test_update_settings_merges(store):
    settings = update_settings(store, {"yearly_nothings_allowed": 4, "theme": "dark"})
    assert settings.yearly_nothings_allowed == 4
    assert settings.yearly_week_offs_allowed == 2
    reloaded = load_settings(store)
    assert reloaded.yearly_nothings_allowed == 4
    assert reloaded.extra == {"theme": "dark"}


def test_update_settings_rejects_bad_values(store):
    with pytest.raises(ValidationError):
        update_settings(store, {"yearly_week_offs_allowed": -1})
    with pytest.raises(ValidationError):
        update_settings(store, {"timezone": "Mars/Olympus"})
    assert load_settings(store).yearly_week_offs_allowed == 2


def test_validate_settings():
    assert validate_settings({"yearly_week_offs_allowed": 3, "timezone": "Europe/Berlin"}) == []
    assert validate_settings({"yearly_nothings_allowed": True})
