from pathlib import Path

import pytest
from pydantic import ValidationError

from linkdb.cache import PageCache
from linkdb.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(Settings.model_fields):
        monkeypatch.delenv(f"LINKDB_{name.upper()}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.api_token is None
    assert settings.datastore == Path("data/datastore.php")
    assert settings.port == 8765
    assert settings.fetch_titles is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LINKDB_DATASTORE", "/srv/links.php")
    monkeypatch.setenv("LINKDB_HIDE_PUBLIC_LINKS", "true")
    monkeypatch.setenv("LINKDB_API_TOKEN", "t0ken")
    monkeypatch.setenv("LINKDB_PORT", "9000")
    monkeypatch.setenv("LINKDB_FETCH_TITLES", "0")
    monkeypatch.setenv("LINKDB_HOST", "")
    settings = Settings(_env_file=None)
    assert settings.datastore == Path("/srv/links.php")
    assert settings.hide_public_links is True
    assert settings.api_token == "t0ken"
    assert settings.port == 9000
    assert settings.fetch_titles is False
    assert settings.host == "127.0.0.1"


def test_invalid_value(monkeypatch):
    monkeypatch.setenv("LINKDB_PORT", "eighty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("LINKDB_API_TOKEN", "first")
    settings = get_settings()
    monkeypatch.setenv("LINKDB_API_TOKEN", "second")
    assert get_settings() is settings
    assert settings.api_token == "first"


def test_page_cache(tmp_path: Path):
    cache = PageCache(tmp_path / "cache")
    assert cache.purge() == 0
    assert cache.get("tags") is None
    cache.put("tags", "[]")
    cache.put("days", "[]")
    (tmp_path / "cache" / "keep.txt").write_text("not a page")
    assert cache.get("tags") == "[]"
    assert cache.purge() == 2
    assert cache.get("tags") is None
    assert (tmp_path / "cache" / "keep.txt").exists()
