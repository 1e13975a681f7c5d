"""
Tests for environment configuration.
"""

import pytest

from gallery.cache import build_redis_client
from gallery.config import DEFAULT_REDIS_URL, Settings

ENV_VARS = (
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "CLOUDINARY_API_BASE",
    "REDIS_URL",
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_USERNAME",
    "REDIS_PASSWORD",
    "GALLERY_CORS_ORIGINS",
    "GALLERY_API_PREFIX",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings.from_env(dotenv=False)

    assert s.redis_url == DEFAULT_REDIS_URL
    assert s.redis_host is None
    assert s.port == 5000
    assert s.cors_origins == ("*",)
    assert s.api_prefix == ""
    assert s.has_credentials is False


def test_reads_cloudinary_credentials(clean_env):
    clean_env.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    clean_env.setenv("CLOUDINARY_API_KEY", "k")
    clean_env.setenv("CLOUDINARY_API_SECRET", "s")
    clean_env.setenv("CLOUDINARY_API_BASE", "https://api.example.test/v1_1/")

    s = Settings.from_env(dotenv=False)

    assert s.has_credentials is True
    assert s.api_base == "https://api.example.test/v1_1"


def test_prefix_and_origins_are_normalized(clean_env):
    clean_env.setenv("GALLERY_API_PREFIX", "api/")
    clean_env.setenv("GALLERY_CORS_ORIGINS", "http://localhost:3000, https://gallery.example.com")

    s = Settings.from_env(dotenv=False)

    assert s.api_prefix == "/api"
    assert s.cors_origins == ("http://localhost:3000", "https://gallery.example.com")


def test_redis_host_port_wins_over_url(clean_env):
    clean_env.setenv("REDIS_URL", "redis://ignored:6379")
    clean_env.setenv("REDIS_HOST", "cache.internal")
    clean_env.setenv("REDIS_PORT", "6380")
    clean_env.setenv("REDIS_PASSWORD", "pw")

    s = Settings.from_env(dotenv=False)
    client = build_redis_client(s)

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.internal"
    assert kwargs["port"] == 6380
    assert kwargs["username"] == "default"
    assert kwargs["password"] == "pw"
    # replies stay bytes so a corrupt entry surfaces as a validation error, not a decode error
    assert not kwargs.get("decode_responses")


def test_redis_url_used_without_host(clean_env):
    clean_env.setenv("REDIS_URL", "redis://cache.example:6390/0")

    client = build_redis_client(Settings.from_env(dotenv=False))

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.example"
    assert kwargs["port"] == 6390
