from __future__ import annotations

import struct

from file_probe.digest.compression import BLOCK_SIZE, INITIAL_STATE, compress

DIGEST_SIZE = 32
_LENGTH_OFFSET = BLOCK_SIZE - 8
_BIT_COUNT_MASK = (1 << 64) - 1
_STATE_WORDS = struct.Struct(">8I")

BytesLike = bytes | bytearray | memoryview


class DigestFinalizedError(RuntimeError):
    """Raised when a finalized digest is updated or finalized again."""


class Sha256:
    """Incremental SHA-256.

    Feed input with any number of :meth:`update` calls, then call
    :meth:`finalize` once to obtain the 32-byte digest. The result only
    depends on the concatenated input, not on how it was split.
    """

    digest_size = DIGEST_SIZE
    block_size = BLOCK_SIZE

    def __init__(self, data: BytesLike | None = None) -> None:
        self._state = INITIAL_STATE
        self._pending = bytearray()
        self._bit_count = 0
        self._finalized = False
        if data is not None:
            self.update(data)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _ensure_open(self) -> None:
        if self._finalized:
            raise DigestFinalizedError("digest has already been finalized")

    def update(self, data: BytesLike) -> None:
        self._ensure_open()
        view = memoryview(data)
        if not view.c_contiguous:
            view = memoryview(view.tobytes())
        view = view.cast("B")
        length = len(view)
        if not length:
            return
        self._bit_count += length * 8

        offset = 0
        if self._pending:
            take = min(BLOCK_SIZE - len(self._pending), length)
            self._pending += view[:take]
            offset = take
            if len(self._pending) < BLOCK_SIZE:
                return
            self._state = compress(self._state, self._pending)
            self._pending.clear()

        # whole blocks straight from the caller's buffer
        while length - offset >= BLOCK_SIZE:
            self._state = compress(self._state, view[offset : offset + BLOCK_SIZE])
            offset += BLOCK_SIZE

        self._pending += view[offset:]

    def finalize(self) -> bytes:
        self._ensure_open()
        self._finalized = True

        block = self._pending
        block.append(0x80)
        if len(block) > _LENGTH_OFFSET:
            block.extend(bytes(BLOCK_SIZE - len(block)))
            self._state = compress(self._state, block)
            block.clear()
        block.extend(bytes(_LENGTH_OFFSET - len(block)))
        block += (self._bit_count & _BIT_COUNT_MASK).to_bytes(8, "big")
        self._state = compress(self._state, block)
        block.clear()

        return _STATE_WORDS.pack(*self._state)


def sha256_digest(data: BytesLike) -> bytes:
    return Sha256(data).finalize()


def sha256_hexdigest(data: BytesLike) -> str:
    return Sha256(data).finalize().hex()
