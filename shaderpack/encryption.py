from __future__ import annotations

from .tea import SHADER_TEA, TeaCipher


def encrypt_buffer(scheme, buf) -> None:
    """Encrypt ``buf`` in place one ``scheme.chunk_size`` chunk at a time.

    Whole chunks are encrypted first. If the length is not a multiple of the
    chunk size, the last chunk-sized window (which overlaps the already
    encrypted final whole chunk) is encrypted again to cover the tail.
    Buffers shorter than one chunk are left untouched.
    """
    length = len(buf)
    chunk_size = scheme.chunk_size
    if length < chunk_size:
        return  # can't encrypt, do nothing
    tail = length % chunk_size
    for offset in range(0, length - tail, chunk_size):
        scheme.encrypt_chunk(buf, offset)
    if tail:
        scheme.encrypt_chunk(buf, length - chunk_size)


def decrypt_buffer(scheme, buf) -> None:
    """Decrypt ``buf`` in place; exact inverse of :func:`encrypt_buffer`."""
    length = len(buf)
    chunk_size = scheme.chunk_size
    if length < chunk_size:
        return  # can't decrypt, do nothing
    tail = length % chunk_size
    # Undo the tail window first; its leading bytes are re-decrypted below
    if tail:
        scheme.decrypt_chunk(buf, length - chunk_size)
    for offset in range(0, length - tail, chunk_size):
        scheme.decrypt_chunk(buf, offset)


class EncryptionContext:
    def __init__(self, scheme: TeaCipher = SHADER_TEA):
        self.scheme = scheme

    def encrypt(self, buf) -> None:
        encrypt_buffer(self.scheme, buf)

    def decrypt(self, buf) -> None:
        decrypt_buffer(self.scheme, buf)

    @property
    def chunk_size(self) -> int:
        return self.scheme.chunk_size
