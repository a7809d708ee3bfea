from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure environment variables are set before application settings are imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("HASH_CHUNK_SIZE", "4096")

from file_probe.api import dependencies as dependencies_module
from file_probe.main import create_app
from file_probe.services.hashing_service import HashingService
from file_probe.services.probe_service import ProbeService


@pytest.fixture
def hashing_service() -> HashingService:
    return HashingService(chunk_size=4096, max_concurrency=2)


@pytest.fixture
def probe_service(hashing_service) -> ProbeService:
    return ProbeService(hashing_service=hashing_service)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """A small directory tree: two files at the top, one nested."""
    (tmp_path / "notes.txt").write_text("hello world")
    (tmp_path / "blob.bin").write_bytes(bytes(range(256)) * 4)
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "empty.dat").write_bytes(b"")
    return tmp_path


@pytest.fixture
def api_environment(tmp_path: Path) -> dict[str, object]:
    app = create_app()

    # Clear cached dependencies so every test gets services bound to its own root.
    dependencies_module.get_probe_service.cache_clear()
    dependencies_module.get_hashing_service.cache_clear()

    hashing = HashingService(chunk_size=1024, max_concurrency=2)
    probe = ProbeService(hashing_service=hashing, probe_root=tmp_path)
    app.dependency_overrides[dependencies_module.get_hashing_service] = lambda: hashing
    app.dependency_overrides[dependencies_module.get_probe_service] = lambda: probe

    return {"app_instance": app, "root": tmp_path}


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def async_client(api_environment, anyio_backend) -> AsyncGenerator[AsyncClient, None]:
    app = api_environment["app_instance"]
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
