from __future__ import annotations

import httpx
import pytest

from ossclient.common.config import get_settings
from ossclient.infra.storage.oss_client import OSSStorageClient
from tests.infra.fake_oss import BUCKET, ENDPOINT_HOST, KEY_ID, KEY_SECRET, FakeOSS


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def fake_oss() -> FakeOSS:
    return FakeOSS()


@pytest.fixture()
def oss_client(fake_oss: FakeOSS) -> OSSStorageClient:
    return OSSStorageClient(
        key_id=KEY_ID,
        key_secret=KEY_SECRET,
        endpoint=f"http://{ENDPOINT_HOST}",
        bucket=BUCKET,
        http_client=httpx.AsyncClient(transport=fake_oss.transport),
    )


@pytest.fixture()
def make_file(tmp_path):
    """Write ``size`` deterministic bytes to a temp file and return its path."""

    def _make(size: int, name: str = "payload.bin") -> str:
        path = tmp_path / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return str(path)

    return _make
