from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit

ENV_FILE = Path(".env")

DEFAULT_ENDPOINT = "http://oss-cn-hangzhou.aliyuncs.com"
DEFAULT_PART_SIZE_BYTES = 10 * 1024 * 1024
LOG_FORMATS = ("json", "plain")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


@dataclass
class Settings:
    OSS_ACCESS_KEY_ID: str | None = None
    OSS_ACCESS_KEY_SECRET: str | None = None
    OSS_ENDPOINT: str = DEFAULT_ENDPOINT
    OSS_BUCKET: str | None = None
    OSS_TIMEOUT_SECONDS: float = 60.0
    OSS_PART_SIZE_BYTES: int = DEFAULT_PART_SIZE_BYTES
    TRACE_HTTP: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    def __post_init__(self) -> None:
        endpoint = self.OSS_ENDPOINT.strip()
        if "://" in endpoint:
            scheme = urlsplit(endpoint).scheme.lower()
            if scheme not in ("http", "https"):
                raise ValueError("OSS_ENDPOINT must use http:// or https://.")
        if self.OSS_TIMEOUT_SECONDS <= 0:
            raise ValueError("OSS_TIMEOUT_SECONDS must be positive.")
        if self.OSS_PART_SIZE_BYTES <= 0:
            raise ValueError("OSS_PART_SIZE_BYTES must be positive.")
        if self.LOG_FORMAT not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            OSS_ACCESS_KEY_ID=os.environ.get("OSS_ACCESS_KEY_ID"),
            OSS_ACCESS_KEY_SECRET=os.environ.get("OSS_ACCESS_KEY_SECRET"),
            OSS_ENDPOINT=os.environ.get("OSS_ENDPOINT", cls.OSS_ENDPOINT),
            OSS_BUCKET=os.environ.get("OSS_BUCKET"),
            OSS_TIMEOUT_SECONDS=float(
                os.environ.get("OSS_TIMEOUT_SECONDS", cls.OSS_TIMEOUT_SECONDS)
            ),
            OSS_PART_SIZE_BYTES=int(
                os.environ.get("OSS_PART_SIZE_BYTES", cls.OSS_PART_SIZE_BYTES)
            ),
            TRACE_HTTP=_as_bool(os.environ.get("TRACE_HTTP"), cls.TRACE_HTTP),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            LOG_FORMAT=os.environ.get("LOG_FORMAT", cls.LOG_FORMAT).lower(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
