from dataclasses import fields
from pathlib import Path

import pytest

from bizdash.application.cache import InMemoryHandleCache
from bizdash.config import DEFAULT_SOURCES_PATH, Settings, load_settings
from bizdash.domain.models import AuthenticatedHandle

from fakes import make_source


def test_defaults_without_environment():
    settings = load_settings({})

    assert settings.sources_path == DEFAULT_SOURCES_PATH
    assert settings.terminal == "BIZDASH_WEB"
    assert settings.http_timeout == 60.0
    assert settings.max_workers == 8
    assert settings.top_n == 5
    assert "timestamp_format" not in {f.name for f in fields(Settings)}


def test_environment_overrides(tmp_path: Path):
    settings = load_settings(
        {
            "BIZDASH_SOURCES_PATH": str(tmp_path / "sources.json"),
            "BIZDASH_API_KEY": "key",
            "BIZDASH_HTTP_TIMEOUT": "5.5",
            "BIZDASH_MAX_WORKERS": "3",
        }
    )

    assert settings.sources_path == tmp_path / "sources.json"
    assert settings.api_key == "key"
    assert settings.http_timeout == 5.5
    assert settings.max_workers == 3


def test_invalid_numbers_are_rejected():
    with pytest.raises(ValueError):
        load_settings({"BIZDASH_HTTP_TIMEOUT": "soon"})
    with pytest.raises(ValueError):
        load_settings({"BIZDASH_MAX_WORKERS": "0"})


def test_handle_cache_is_keyed_by_source_and_user():
    cache = InMemoryHandleCache()
    handle = AuthenticatedHandle(source=make_source(1), token="tok")

    cache.put(1, 7, handle)
    cache.put(2, 7, handle)
    cache.put(1, 8, handle)

    assert cache.get(1, 7) is handle
    assert cache.get(1, 9) is None
    cache.invalidate(1, 8)
    assert cache.get(1, 8) is None
    assert len(cache) == 2
