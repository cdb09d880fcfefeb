from __future__ import annotations

import enum
import sys
from typing import Callable, Iterable, List, Optional, TypeVar

from .constants import MEMBER_LEN_STRUCT, MIN_ARCHIVE_SIZE, TRAILER_SIZE
from .encryption import EncryptionContext
from .errors import ArchiveCorruptError, ArchiveTooShort, MemberFrameError
from .fileio import read_file
from .records import MemberEnumerator, framed_size, write_member
from .trailer import split_trailer, verify_trailer, write_trailer


T = TypeVar("T")


class ReadError(enum.Enum):
    SUCCESS = 0
    COULD_NOT_OPEN_FILE = 1
    ARCHIVE_DATA_IS_CORRUPT = 2


class WriteError(enum.Enum):
    SUCCESS = 0
    NO_DATA_TO_WRITE = 1
    COULD_NOT_OPEN_FILE = 2


def decode_archive(raw, encryption: Optional[EncryptionContext] = None) -> bytearray:
    """Decrypt and validate raw archive bytes.

    Returns the decrypted buffer (frames followed by the digest trailer).
    Raises a subclass of ArchiveCorruptError naming the specific cause:
    ArchiveTooShort, DigestMismatch, or MemberFrameError (with the index of
    the member at which the frame chain broke).
    """
    if len(raw) < MIN_ARCHIVE_SIZE:
        raise ArchiveTooShort(f"archive is {len(raw)} bytes; at least {MIN_ARCHIVE_SIZE} required")
    buf = bytearray(raw)
    (encryption or EncryptionContext()).decrypt(buf)

    frame_region, trailer = split_trailer(buf)
    verify_trailer(frame_region, trailer)

    e = MemberEnumerator(frame_region)
    while e:
        e.advance()
    if e.has_error():
        raise MemberFrameError(e.index)
    return buf


class Archive:
    """In-memory shader archive.

    After a successful load the archive holds the decrypted bytes; after
    assembling from members it holds the plaintext that the next flush will
    encrypt. Flushing always empties the archive.
    """

    def __init__(self, encryption: Optional[EncryptionContext] = None):
        self.encryption = encryption or EncryptionContext()
        # None means no data; distinct from an empty buffer
        self._buf: Optional[bytearray] = None
        self._data_len = 0

    def _adopt(self, buf: Optional[bytearray]) -> None:
        self._buf = buf
        self._data_len = len(buf) - TRAILER_SIZE if buf is not None else 0

    def is_loaded(self) -> bool:
        return self._buf is not None

    def size(self) -> int:
        """Total size in bytes, trailer included."""
        return len(self._buf) if self._buf is not None else 0

    def data(self) -> memoryview:
        """The framed member region (trailer excluded)."""
        if self._buf is None:
            return memoryview(b"")
        return memoryview(self._buf)[: self._data_len]

    def read_from_bytes(self, raw) -> ReadError:
        try:
            buf = decode_archive(raw, self.encryption)
        except ArchiveCorruptError as exc:
            print(f"Warning: archive is corrupt: {exc}", file=sys.stderr)
            return ReadError.ARCHIVE_DATA_IS_CORRUPT
        # everything checks out, take ownership
        self._adopt(buf)
        return ReadError.SUCCESS

    def read_from_file(self, path: str) -> ReadError:
        """Load the archive at ``path``.

        If the result is not ReadError.SUCCESS the archive is left unchanged.
        """
        raw = read_file(path)
        if raw is None:
            return ReadError.COULD_NOT_OPEN_FILE
        return self.read_from_bytes(raw)

    def load_members_from(self, members: Iterable) -> None:
        """Build an archive from member payloads, in order.

        The result is left unencrypted; encryption happens on flush.
        """
        members = list(members)
        buf = bytearray(framed_size(members) + TRAILER_SIZE)
        offset = 0
        for m in members:
            offset = write_member(buf, offset, m)
        write_trailer(buf)
        self._adopt(buf)

    def _has_data_to_write(self) -> bool:
        return self._buf is not None and self._data_len >= MEMBER_LEN_STRUCT.size

    def flush_to_bytes(self) -> Optional[bytes]:
        """Encrypt and return the archive bytes, then empty the archive.

        Returns None when there is nothing to write.
        """
        if not self._has_data_to_write():
            return None
        buf = self._buf
        self.encryption.encrypt(buf)
        self._adopt(None)
        return bytes(buf)

    def flush_to_file(self, path: str) -> WriteError:
        """Encrypt and write the archive to ``path``.

        On WriteError.SUCCESS the archive is emptied. On any failure the
        in-memory plaintext is kept so the caller may retry.
        """
        if not self._has_data_to_write():
            return WriteError.NO_DATA_TO_WRITE
        # open first to see if we can even write
        try:
            fh = open(path, "wb")
        except OSError as exc:
            print(f"Warning: failed to open {path} for writing: {exc}", file=sys.stderr)
            return WriteError.COULD_NOT_OPEN_FILE
        buf = self._buf
        self.encryption.encrypt(buf)
        try:
            with fh:
                fh.write(buf)
        except OSError as exc:
            self.encryption.decrypt(buf)
            print(f"Warning: failed to write {path}: {exc}", file=sys.stderr)
            return WriteError.COULD_NOT_OPEN_FILE
        # "flush" archive by emptying it
        self._adopt(None)
        return WriteError.SUCCESS

    def enumerate(self) -> MemberEnumerator:
        return MemberEnumerator(self.data())

    def for_each(self, f: Callable[[memoryview], object]) -> None:
        """Invoke ``f`` on each member payload, in order."""
        e = self.enumerate()
        while e:
            f(e.data())
            e.advance()

    def for_each_until(self, f: Callable[[memoryview], Optional[T]]) -> Optional[T]:
        """Invoke ``f`` on each member payload until it returns a truthy value.

        Returns that value, or None if every invocation returned a falsy one.
        """
        e = self.enumerate()
        while e:
            result = f(e.data())
            if result:
                return result
            e.advance()
        return None

    def members(self) -> List[bytes]:
        out: List[bytes] = []
        self.for_each(lambda payload: out.append(bytes(payload)))
        return out

    def __len__(self) -> int:
        e = self.enumerate()
        while e:
            e.advance()
        return e.index
