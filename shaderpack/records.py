from __future__ import annotations

from typing import Iterable, Iterator

from .constants import MAX_MEMBER_SIZE, MEMBER_LEN_STRUCT
from .errors import MemberSizeError


# Member frame: <I payload_len, then payload_len bytes. Frames are packed back
# to back with no padding; the region must be consumed exactly.
_LEN = MEMBER_LEN_STRUCT


def framed_size(members: Iterable) -> int:
    return sum(_LEN.size + len(m) for m in members)


def write_member(buf, offset: int, payload) -> int:
    """Write one frame at ``offset``; returns the offset just past it."""
    size = len(payload)
    if size > MAX_MEMBER_SIZE:
        raise MemberSizeError(f"member of {size} bytes does not fit a 32-bit length")
    _LEN.pack_into(buf, offset, size)
    offset += _LEN.size
    buf[offset : offset + size] = payload
    return offset + size


def pack_members(members: Iterable) -> bytearray:
    members = list(members)
    out = bytearray(framed_size(members))
    offset = 0
    for m in members:
        offset = write_member(out, offset, m)
    return out


class MemberEnumerator:
    """Forward-only cursor over a framed member region.

    The enumerator borrows ``region`` and only tracks a position into it; it
    must not be used after the owner of the underlying buffer has been
    flushed or reloaded.

    States: active (a whole frame is available), at end (nothing remains), or
    errored (bytes remain but do not form a whole frame). ``advance`` and
    ``data`` do nothing useful once finished.
    """

    def __init__(self, region=b""):
        self._view = memoryview(region)
        self._pos = 0
        self.index = 0

    def _remaining(self) -> int:
        return len(self._view) - self._pos

    def _declared_len(self) -> int:
        return _LEN.unpack_from(self._view, self._pos)[0]

    def is_at_end(self) -> bool:
        return self._remaining() == 0

    def has_error(self) -> bool:
        if self.is_at_end():
            return False
        remaining = self._remaining()
        if remaining < _LEN.size:
            return True
        return self._declared_len() + _LEN.size > remaining

    def finished(self) -> bool:
        return self.is_at_end() or self.has_error()

    def __bool__(self) -> bool:
        return not self.finished()

    def advance(self) -> "MemberEnumerator":
        if not self.finished():
            self._pos += _LEN.size + self._declared_len()
            self.index += 1
        return self

    def data(self) -> memoryview:
        if self.finished():
            return self._view[0:0]
        start = self._pos + _LEN.size
        return self._view[start : start + self._declared_len()]

    def remaining(self) -> memoryview:
        return self._view[self._pos :]


def iter_members(region) -> Iterator[memoryview]:
    e = MemberEnumerator(region)
    while e:
        yield e.data()
        e.advance()
