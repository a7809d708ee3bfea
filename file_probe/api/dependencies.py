from __future__ import annotations

from functools import lru_cache

from file_probe.core.config import settings
from file_probe.services.hashing_service import HashingService
from file_probe.services.probe_service import ProbeService


@lru_cache(maxsize=1)
def get_hashing_service() -> HashingService:
    return HashingService(
        chunk_size=settings.hash_chunk_size,
        max_concurrency=settings.hash_max_concurrency,
    )


@lru_cache(maxsize=1)
def get_probe_service() -> ProbeService:
    return ProbeService(hashing_service=get_hashing_service(), probe_root=settings.probe_root)
