from __future__ import annotations

try:  # pragma: no cover - availability depends on environment
    from Cryptodome.Hash import MD5  # type: ignore
    _HAS_CRYPTODOME = True
except ImportError:  # pragma: no cover - reported on first use
    MD5 = None  # type: ignore
    _HAS_CRYPTODOME = False

from .constants import DIGEST_HEX_LEN
from .errors import DigestInputTooLarge


# MD5 appends the message length in bits as a 64-bit counter
MAX_DIGEST_INPUT = ((1 << 64) - 1) // 8


def _ensure_backend() -> None:
    if not _HAS_CRYPTODOME:
        raise RuntimeError("PyCryptodomex is required for archive digests")


def md5_hex(data) -> str:
    """Return the MD5 of ``data`` as 32 lowercase hex characters."""
    _ensure_backend()
    if len(data) > MAX_DIGEST_INPUT:
        raise DigestInputTooLarge(f"cannot digest {len(data)} bytes")
    h = MD5.new()
    h.update(data)
    digest = h.hexdigest().lower()
    if len(digest) != DIGEST_HEX_LEN:
        raise RuntimeError("unexpected MD5 digest length")
    return digest


def digest_trailer(data) -> bytes:
    """NUL-terminated hex digest, exactly as stored at the end of an archive."""
    return md5_hex(data).encode("ascii") + b"\x00"
