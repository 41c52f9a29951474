"""Shared fixtures: sample payloads and misbehaving codecs."""

from __future__ import annotations

import random

import pytest

import xpack


def make_text(n_lines: int) -> bytes:
    return b"".join(b"line %d of some fairly repetitive text\n" % i for i in range(n_lines))


def make_noise(n: int, seed: int = 1234) -> bytes:
    return random.Random(seed).randbytes(n)


class NeverShrinks:
    """Compressor that always reports failure-to-shrink."""

    def compress(self, data, max_output_size):
        return None


class EmptyResult:
    """Compressor that reports success with zero bytes."""

    def compress(self, data, max_output_size):
        return b""


class BrokenDecompressor:
    def __init__(self):
        self.calls = 0

    def resize(self, chunk_size):
        pass

    def decompress(self, data, expected_size):
        self.calls += 1
        raise xpack.CodecError("broken on purpose")


class LyingDecompressor:
    """Returns the right length with the wrong content."""

    def resize(self, chunk_size):
        pass

    def decompress(self, data, expected_size):
        return b"\x00" * expected_size


@pytest.fixture
def text_data():
    return make_text(2000)


@pytest.fixture
def noise_data():
    return make_noise(5000)


@pytest.fixture
def compressor():
    return xpack.ZstdCompressorAdapter(chunk_size=xpack.MIN_CHUNK_SIZE, level=3)


@pytest.fixture
def decompressor():
    return xpack.ZstdDecompressorAdapter(xpack.MIN_CHUNK_SIZE)
