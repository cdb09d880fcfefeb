from __future__ import annotations

"""Tiny Encryption Algorithm (TEA) chunk transform.

See https://en.wikipedia.org/wiki/Tiny_Encryption_Algorithm. A chunk is two
32-bit words (8 bytes); the byte order used to read and write those words is
part of the cipher configuration because the engine stores them little-endian.
Chunks are transformed in place inside a writable buffer at a given offset so
that the buffer driver never has to slice or copy.
"""

import struct
from dataclasses import dataclass
from typing import Tuple

from .constants import TEA_DECRYPT_SUM, TEA_DELTA, TEA_ENDIAN, TEA_KEY, TEA_ROUNDS


_MASK32 = 0xFFFFFFFF
_WORD_STRUCTS = {
    "little": struct.Struct("<II"),
    "big": struct.Struct(">II"),
}


@dataclass(frozen=True)
class TeaCipher:
    key: Tuple[int, int, int, int]
    endian: str = "little"

    chunk_size = 2 * 4

    def __post_init__(self):
        if len(self.key) != 4:
            raise ValueError("TEA key must be four 32-bit words")
        if any(k < 0 or k > _MASK32 for k in self.key):
            raise ValueError("TEA key words must fit in 32 bits")
        if self.endian not in _WORD_STRUCTS:
            raise ValueError(f"unsupported byte order: {self.endian!r}")

    def encrypt_chunk(self, buf, offset: int = 0) -> None:
        words = _WORD_STRUCTS[self.endian]
        v0, v1 = words.unpack_from(buf, offset)
        k0, k1, k2, k3 = self.key
        total = 0
        for _ in range(TEA_ROUNDS):
            total = (total + TEA_DELTA) & _MASK32
            v0 = (v0 + ((((v1 << 4) + k0) ^ (v1 + total) ^ ((v1 >> 5) + k1)))) & _MASK32
            v1 = (v1 + ((((v0 << 4) + k2) ^ (v0 + total) ^ ((v0 >> 5) + k3)))) & _MASK32
        words.pack_into(buf, offset, v0, v1)

    def decrypt_chunk(self, buf, offset: int = 0) -> None:
        words = _WORD_STRUCTS[self.endian]
        v0, v1 = words.unpack_from(buf, offset)
        k0, k1, k2, k3 = self.key
        total = TEA_DECRYPT_SUM
        for _ in range(TEA_ROUNDS):
            v1 = (v1 - ((((v0 << 4) + k2) ^ (v0 + total) ^ ((v0 >> 5) + k3)))) & _MASK32
            v0 = (v0 - ((((v1 << 4) + k0) ^ (v1 + total) ^ ((v1 >> 5) + k1)))) & _MASK32
            total = (total - TEA_DELTA) & _MASK32
        words.pack_into(buf, offset, v0, v1)


# The scheme the engine uses for its shader archives
SHADER_TEA = TeaCipher(key=TEA_KEY, endian=TEA_ENDIAN)


__all__ = [
    "TeaCipher",
    "SHADER_TEA",
]
