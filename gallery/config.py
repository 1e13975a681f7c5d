# gallery/config.py
# Purpose: Read environment configuration once into an immutable Settings object.
# Pitfalls: REDIS_HOST + REDIS_PORT win over REDIS_URL when both are set.

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_API_BASE = "https://api.cloudinary.com/v1_1"
DEFAULT_DELIVERY_BASE = "https://res.cloudinary.com"
DEFAULT_REDIS_URL = "redis://localhost:6379"


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _normalize_prefix(raw: str) -> str:
    prefix = raw.strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


@dataclass(frozen=True)
class Settings:
    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""
    api_base: str = DEFAULT_API_BASE
    delivery_base: str = DEFAULT_DELIVERY_BASE
    upstream_timeout_s: float = 10.0

    redis_url: str = DEFAULT_REDIS_URL
    redis_host: str | None = None
    redis_port: int | None = None
    redis_username: str = "default"
    redis_password: str | None = None

    cors_origins: tuple[str, ...] = ("*",)
    api_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """Build Settings from the process environment (and .env when present)."""
        if dotenv:
            load_dotenv()

        redis_host = os.getenv("REDIS_HOST") or None
        redis_port = os.getenv("REDIS_PORT") or None

        return cls(
            cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
            api_key=os.getenv("CLOUDINARY_API_KEY", ""),
            api_secret=os.getenv("CLOUDINARY_API_SECRET", ""),
            api_base=os.getenv("CLOUDINARY_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            delivery_base=os.getenv("CLOUDINARY_DELIVERY_BASE", DEFAULT_DELIVERY_BASE).rstrip("/"),
            upstream_timeout_s=float(os.getenv("GALLERY_UPSTREAM_TIMEOUT_SEC", "10")),
            redis_url=os.getenv("REDIS_URL", DEFAULT_REDIS_URL),
            redis_host=redis_host,
            redis_port=int(redis_port) if redis_port else None,
            redis_username=os.getenv("REDIS_USERNAME") or "default",
            redis_password=os.getenv("REDIS_PASSWORD") or None,
            cors_origins=_split_csv(os.getenv("GALLERY_CORS_ORIGINS", "*")) or ("*",),
            api_prefix=_normalize_prefix(os.getenv("GALLERY_API_PREFIX", "")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
