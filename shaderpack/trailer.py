from __future__ import annotations

from typing import Tuple

from .constants import TRAILER_SIZE
from .errors import DigestMismatch
from .hashutil import digest_trailer


def split_trailer(buf) -> Tuple[memoryview, memoryview]:
    """Split ``buf`` into (frame region, 33-byte digest trailer) views."""
    view = memoryview(buf)
    if len(view) < TRAILER_SIZE:
        raise ValueError("buffer too short to hold a digest trailer")
    cut = len(view) - TRAILER_SIZE
    return view[:cut], view[cut:]


def verify_trailer(frame_region, trailer) -> None:
    # Compare all 33 bytes so the NUL terminator is checked as well
    expected = digest_trailer(frame_region)
    stored = bytes(trailer)
    if stored != expected:
        raise DigestMismatch(
            "md5 did not match\n"
            f"\tcomputed {expected[:-1].decode('ascii')}\n"
            f"\tneeded {stored[:-1].decode('ascii', errors='replace')}"
        )


def write_trailer(buf) -> None:
    """Fill the last 33 bytes of ``buf`` with the digest of everything before them."""
    frame_region, _ = split_trailer(buf)
    buf[len(frame_region) :] = digest_trailer(frame_region)
