"""Tests for the streaming SHA-256 engine."""

from __future__ import annotations

import hashlib
import os
import re

import pytest

from file_probe.digest.compression import BLOCK_SIZE, INITIAL_STATE, ROUND_CONSTANTS, compress
from file_probe.digest.streaming import DigestFinalizedError, Sha256, sha256_digest, sha256_hexdigest

HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")

EMPTY_DIGEST = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
ABC_DIGEST = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
TWO_BLOCK_MESSAGE = b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
TWO_BLOCK_DIGEST = "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1"
HELLO_WORLD_DIGEST = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"


# ==================== Known Answer Tests ====================


def test_empty_input_digest():
    assert Sha256().finalize().hex() == EMPTY_DIGEST


def test_abc_digest():
    assert sha256_hexdigest(b"abc") == ABC_DIGEST


def test_two_block_nist_vector():
    # 56 bytes of input forces the length suffix into a second block
    assert len(TWO_BLOCK_MESSAGE) == 56
    assert sha256_hexdigest(TWO_BLOCK_MESSAGE) == TWO_BLOCK_DIGEST


def test_digest_is_32_bytes():
    digest = sha256_digest(b"abc")
    assert isinstance(digest, bytes)
    assert len(digest) == Sha256.digest_size == 32


def test_constants_shape():
    assert len(INITIAL_STATE) == 8
    assert len(ROUND_CONSTANTS) == 64
    assert all(0 <= word <= 0xFFFFFFFF for word in INITIAL_STATE + ROUND_CONSTANTS)


def test_compress_is_pure():
    state = list(INITIAL_STATE)
    block = bytes(BLOCK_SIZE)
    first = compress(state, block)
    second = compress(state, block)
    assert first == second
    assert state == list(INITIAL_STATE)
    assert len(first) == 8


# ==================== Chunk Boundary Independence ====================


def test_hello_world_chunking_is_irrelevant():
    whole = Sha256()
    whole.update(b"hello world")

    split = Sha256()
    split.update(b"hello ")
    split.update(b"world")

    byte_by_byte = Sha256()
    for i in range(len(b"hello world")):
        byte_by_byte.update(b"hello world"[i : i + 1])

    assert whole.finalize().hex() == HELLO_WORLD_DIGEST
    assert split.finalize().hex() == HELLO_WORLD_DIGEST
    assert byte_by_byte.finalize().hex() == HELLO_WORLD_DIGEST


@pytest.mark.parametrize("chunk_size", [1, 3, 55, 56, 63, 64, 65, 127, 1000])
def test_any_chunk_size_matches_single_update(chunk_size):
    data = os.urandom(5000)
    expected = hashlib.sha256(data).hexdigest()

    digest = Sha256()
    for offset in range(0, len(data), chunk_size):
        digest.update(data[offset : offset + chunk_size])

    assert digest.finalize().hex() == expected


def test_zero_length_updates_do_not_change_digest():
    digest = Sha256()
    digest.update(b"")
    digest.update(b"ab")
    digest.update(b"")
    digest.update(b"c")
    digest.update(b"")
    assert digest.finalize().hex() == ABC_DIGEST


def test_accepts_bytearray_and_memoryview():
    data = bytearray(b"hello world")
    digest = Sha256()
    digest.update(data[:6])
    digest.update(memoryview(bytes(data))[6:])
    assert digest.finalize().hex() == HELLO_WORLD_DIGEST


def test_constructor_data_is_hashed():
    assert Sha256(b"abc").finalize().hex() == ABC_DIGEST


# ==================== Padding Boundaries ====================


def test_lengths_around_padding_threshold_match_hashlib():
    for length in range(0, 131):
        data = bytes((i * 7 + length) & 0xFF for i in range(length))
        result = sha256_hexdigest(data)
        assert HEX_DIGEST.match(result), length
        assert result == hashlib.sha256(data).hexdigest(), length


@pytest.mark.parametrize("length", [0, 1, 55, 56, 57, 63, 64, 65])
def test_output_shape_for_boundary_lengths(length):
    assert HEX_DIGEST.match(sha256_hexdigest(b"x" * length))


def test_multi_megabyte_input_matches_hashlib_and_flips_on_single_byte_change():
    data = bytearray(os.urandom(3 * 1024 * 1024 + 17))
    digest = Sha256()
    view = memoryview(data)
    for offset in range(0, len(data), 32 * 1024):
        digest.update(view[offset : offset + 32 * 1024])
    original = digest.finalize().hex()
    assert HEX_DIGEST.match(original)
    assert original == hashlib.sha256(data).hexdigest()

    for position in (0, len(data) // 2, len(data) - 1):
        mutated = bytearray(data)
        mutated[position] ^= 0x01
        assert sha256_hexdigest(mutated) != original, position


def test_non_contiguous_memoryview_is_accepted():
    strided = memoryview(b"aXbXcX")[::2]
    assert not strided.c_contiguous
    assert Sha256(strided).finalize().hex() == ABC_DIGEST


def test_same_input_is_deterministic():
    data = b"determinism" * 97
    assert sha256_hexdigest(data) == sha256_hexdigest(data)


# ==================== Contract Violations ====================


def test_update_after_finalize_raises():
    digest = Sha256(b"abc")
    digest.finalize()
    assert digest.finalized
    with pytest.raises(DigestFinalizedError):
        digest.update(b"more")


def test_finalize_twice_raises():
    digest = Sha256()
    digest.finalize()
    with pytest.raises(DigestFinalizedError):
        digest.finalize()


def test_instances_do_not_share_state():
    first = Sha256(b"a")
    second = Sha256()
    second.update(b"abc")
    assert first.finalize().hex() == hashlib.sha256(b"a").hexdigest()
    assert second.finalize().hex() == ABC_DIGEST
