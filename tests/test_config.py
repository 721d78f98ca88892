import os

import pytest
from pydantic import ValidationError

from estyped.config import Settings, TransportOptions, get_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.host == "http://localhost:9200"
    assert settings.verify_ssl is False
    assert settings.transport == TransportOptions.requests
    assert Settings(password="secret").host == "https://localhost:9200"


def test_verify_ssl():
    assert Settings(host="https://search.example.org/").host == "https://search.example.org"
    assert Settings(host="https://search.example.org").verify_ssl is True
    assert Settings(host="https://search.example.org", verify_ssl=False).verify_ssl is False
    with pytest.raises(ValidationError):
        Settings(timeout=0)


def test_environment(monkeypatch):
    monkeypatch.setenv("ESTYPED_HOST", "http://search:9200")
    monkeypatch.setenv("ESTYPED_ENABLE_KEYED_CACHE", "true")
    monkeypatch.setenv("ESTYPED_TRANSPORT", "elasticsearch")
    settings = Settings()
    assert settings.host == "http://search:9200"
    assert settings.enable_keyed_cache
    assert settings.transport == TransportOptions.elasticsearch
    assert TransportOptions.elasticsearch.__doc__.startswith("requests through")


def test_get_settings(monkeypatch, tmp_path):
    env = tmp_path / "test.env"
    env.write_text("ESTYPED_KEYED_CACHE_INDEX_NAME=from_env_file\n")
    monkeypatch.setenv("ESTYPED_ENV_FILE", str(env))
    get_settings.cache_clear()
    try:
        assert get_settings().keyed_cache_index_name == "from_env_file"
    finally:
        # load_dotenv writes to os.environ
        os.environ.pop("ESTYPED_KEYED_CACHE_INDEX_NAME", None)
        get_settings.cache_clear()
