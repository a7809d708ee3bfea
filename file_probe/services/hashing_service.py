from __future__ import annotations

import asyncio
import os
import stat
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

from file_probe.core.config import settings
from file_probe.core.logger import get_logger
from file_probe.digest.streaming import Sha256

logger = get_logger(component="HashingService")


class ChecksumUnavailableError(Exception):
    """Raised when a checksum cannot be computed over the complete input."""

    def __init__(self, path: str | os.PathLike[str] | None, reason: str) -> None:
        self.path = None if path is None else os.fspath(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}" if self.path else reason)


class ChecksumOpenError(ChecksumUnavailableError):
    """Raised when the input cannot be opened as a regular file."""


class ChecksumReadError(ChecksumUnavailableError):
    """Raised when reading fails before end of stream."""


class HashingService:
    def __init__(self, chunk_size: int | None = None, max_concurrency: int | None = None) -> None:
        self.chunk_size = settings.hash_chunk_size if chunk_size is None else chunk_size
        self.max_concurrency = settings.hash_max_concurrency if max_concurrency is None else max_concurrency
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")

    def create_digest(self) -> Sha256:
        return Sha256()

    def compute_sha256(self, stream: BinaryIO, *, path: str | os.PathLike[str] | None = None) -> str:
        """Hash ``stream`` from its current position to EOF.

        Seekable streams are rewound afterwards. Raises ``ChecksumReadError``
        if a read fails; the partial digest is discarded.
        """
        digest = self.create_digest()
        try:
            while chunk := stream.read(self.chunk_size):
                digest.update(chunk)
        except OSError as exc:
            raise ChecksumReadError(path, exc.strerror or str(exc)) from exc

        if stream.seekable():
            stream.seek(0)
        return digest.finalize().hex()

    def hash_path(self, path: str | os.PathLike[str]) -> str:
        """Hash a regular file, raising ``ChecksumUnavailableError`` on failure."""
        # stat first so FIFOs and devices are rejected without blocking in open()
        try:
            mode = os.stat(path).st_mode
            if not stat.S_ISREG(mode):
                raise ChecksumOpenError(path, "not a regular file")
            stream = open(path, "rb")
        except OSError as exc:
            raise ChecksumOpenError(path, exc.strerror or str(exc)) from exc
        except ValueError as exc:
            # embedded NUL byte
            raise ChecksumOpenError(path, str(exc)) from exc

        with stream:
            return self.compute_sha256(stream, path=path)

    def compute_file_sha256(self, path: str | os.PathLike[str]) -> str | None:
        """Return the lowercase hex SHA-256 of ``path`` or ``None`` if unavailable."""
        try:
            checksum = self.hash_path(path)
        except ChecksumUnavailableError as exc:
            logger.warning(
                "Checksum unavailable",
                path=exc.path,
                reason=exc.reason,
                error_type=type(exc).__name__,
            )
            return None
        logger.debug("Checksum computed", path=os.fspath(path), checksum=checksum)
        return checksum

    async def compute_many(self, paths: Iterable[str | os.PathLike[str]]) -> list[str | None]:
        """Hash several files concurrently; results keep the input order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _hash_one(path: str | os.PathLike[str]) -> str | None:
            async with semaphore:
                return await asyncio.to_thread(self.compute_file_sha256, path)

        results = await asyncio.gather(*(_hash_one(Path(p)) for p in paths))
        logger.info(
            "Batch checksum completed",
            total=len(results),
            unavailable=sum(1 for r in results if r is None),
        )
        return list(results)
