from __future__ import annotations

import contextlib
import hashlib
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from shaderpack.archive import Archive, ReadError, WriteError, decode_archive
from shaderpack.encryption import decrypt_buffer, encrypt_buffer
from shaderpack.errors import ArchiveTooShort, DigestInputTooLarge, DigestMismatch, MemberFrameError
from shaderpack.hashutil import MAX_DIGEST_INPUT, digest_trailer, md5_hex
from shaderpack.records import pack_members
from shaderpack.tea import SHADER_TEA


AA_BBB_REGION = bytes.fromhex("02000000414103000000424242")


def _seal(plain: bytes) -> bytes:
    buf = bytearray(plain)
    encrypt_buffer(SHADER_TEA, buf)
    return bytes(buf)


def _plain_archive(members) -> bytes:
    region = bytes(pack_members(members))
    return region + hashlib.md5(region).hexdigest().encode("ascii") + b"\x00"


def _quiet():
    return contextlib.redirect_stderr(io.StringIO())


class _FailingFile:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def write(self, data):
        raise OSError(28, "No space left on device")


class DigestTests(unittest.TestCase):
    def test_md5_hex_matches_reference(self):
        for data in (b"", b"abc", AA_BBB_REGION, os.urandom(1000)):
            self.assertEqual(md5_hex(data), hashlib.md5(data).hexdigest())

    def test_trailer_shape(self):
        t = digest_trailer(AA_BBB_REGION)
        self.assertEqual(len(t), 33)
        self.assertEqual(t[-1:], b"\x00")
        self.assertEqual(t[:-1], t[:-1].lower())

    def test_accepts_memoryview(self):
        data = bytearray(b"0123456789")
        self.assertEqual(md5_hex(memoryview(data)[2:5]), hashlib.md5(b"234").hexdigest())

    def test_oversized_input_rejected(self):
        class Huge:
            def __len__(self):
                return MAX_DIGEST_INPUT + 1

        with self.assertRaises(DigestInputTooLarge):
            md5_hex(Huge())
        with self.assertRaises(DigestInputTooLarge):
            digest_trailer(Huge())


class AssembleTests(unittest.TestCase):
    def test_aa_bbb_layout(self):
        archive = Archive()
        archive.load_members_from([b"AA", b"BBB"])
        self.assertEqual(bytes(archive.data()), AA_BBB_REGION)
        self.assertEqual(archive.size(), 13 + 33)
        self.assertEqual(archive.members(), [b"AA", b"BBB"])
        self.assertEqual(len(archive), 2)

    def test_assembled_buffer_is_plaintext_with_trailer(self):
        archive = Archive()
        archive.load_members_from([b"AA", b"BBB"])
        out = archive.flush_to_bytes()
        self.assertIsNotNone(out)
        buf = bytearray(out)
        decrypt_buffer(SHADER_TEA, buf)
        self.assertEqual(bytes(buf), _plain_archive([b"AA", b"BBB"]))

    def test_zero_members(self):
        archive = Archive()
        archive.load_members_from([])
        self.assertTrue(archive.is_loaded())
        self.assertEqual(archive.size(), 33)
        self.assertEqual(archive.members(), [])
        self.assertTrue(archive.enumerate().is_at_end())
        # nothing but a trailer; not writable
        self.assertIsNone(archive.flush_to_bytes())

    def test_many_members_roundtrip(self):
        members = [os.urandom(n) for n in (0, 1, 7, 8, 9, 100, 513)]
        archive = Archive()
        archive.load_members_from(members)
        raw = archive.flush_to_bytes()
        self.assertFalse(archive.is_loaded())
        loaded = Archive()
        self.assertIs(loaded.read_from_bytes(raw), ReadError.SUCCESS)
        self.assertEqual(loaded.members(), members)


class LoadTests(unittest.TestCase):
    def test_load_aa_bbb(self):
        raw = _seal(_plain_archive([b"AA", b"BBB"]))
        archive = Archive()
        self.assertIs(archive.read_from_bytes(raw), ReadError.SUCCESS)
        self.assertEqual(archive.members(), [b"AA", b"BBB"])
        self.assertEqual(bytes(archive.data()), AA_BBB_REGION)

    def test_too_short(self):
        plain = b"\x00" * 33
        with self.assertRaises(ArchiveTooShort):
            decode_archive(_seal(plain))
        archive = Archive()
        with _quiet():
            self.assertIs(archive.read_from_bytes(b"x" * 33), ReadError.ARCHIVE_DATA_IS_CORRUPT)
        self.assertFalse(archive.is_loaded())

    def test_every_bit_flip_in_frames_rejected(self):
        plain = _plain_archive([b"AA", b"BBB"])
        for byte_index in range(len(AA_BBB_REGION)):
            for bit in range(8):
                damaged = bytearray(plain)
                damaged[byte_index] ^= 1 << bit
                with self.assertRaises(DigestMismatch):
                    decode_archive(_seal(bytes(damaged)))

    def test_trailer_without_terminator_rejected(self):
        plain = bytearray(_plain_archive([b"AA", b"BBB"]))
        plain[-1] = ord("0")
        with self.assertRaises(DigestMismatch):
            decode_archive(_seal(bytes(plain)))

    def test_uppercase_digest_rejected(self):
        region = AA_BBB_REGION
        hexdigest = hashlib.md5(region).hexdigest()
        self.assertNotEqual(hexdigest, hexdigest.upper())
        plain = region + hexdigest.upper().encode("ascii") + b"\x00"
        with self.assertRaises(DigestMismatch):
            decode_archive(_seal(plain))

    def test_short_digest_rejected(self):
        region = AA_BBB_REGION
        # 31 hex chars plus two NULs keeps the trailer 33 bytes long
        plain = region + hashlib.md5(region).hexdigest()[:31].encode("ascii") + b"\x00\x00"
        with self.assertRaises(DigestMismatch):
            decode_archive(_seal(plain))

    def test_frame_error_reports_member_index(self):
        region = b"\x02\x00\x00\x00AA" + b"\x05\x00\x00\x00BB"
        plain = region + hashlib.md5(region).hexdigest().encode("ascii") + b"\x00"
        with self.assertRaises(MemberFrameError) as cm:
            decode_archive(_seal(plain))
        self.assertEqual(cm.exception.member_index, 1)

    def test_failed_load_keeps_previous_state(self):
        archive = Archive()
        self.assertIs(archive.read_from_bytes(_seal(_plain_archive([b"keep"]))), ReadError.SUCCESS)
        damaged = bytearray(_plain_archive([b"other"]))
        damaged[5] ^= 0x10
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            self.assertIs(archive.read_from_bytes(_seal(bytes(damaged))), ReadError.ARCHIVE_DATA_IS_CORRUPT)
        self.assertIn("md5 did not match", stderr.getvalue())
        self.assertEqual(archive.members(), [b"keep"])

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            archive = Archive()
            with _quiet():
                result = archive.read_from_file(os.path.join(tmp, "absent.bin"))
            self.assertIs(result, ReadError.COULD_NOT_OPEN_FILE)
            self.assertFalse(archive.is_loaded())


class FlushTests(unittest.TestCase):
    def run_with_tmpdir(self, func):
        with tempfile.TemporaryDirectory() as tmp:
            func(Path(tmp))

    def test_file_roundtrip_and_flush_empties(self):
        def scenario(tmp_path: Path):
            out = tmp_path / "shaders.enc"
            archive = Archive()
            archive.load_members_from([b"AA", b"BBB"])
            self.assertIs(archive.flush_to_file(str(out)), WriteError.SUCCESS)
            self.assertFalse(archive.is_loaded())
            self.assertEqual(archive.members(), [])
            self.assertIs(archive.flush_to_file(str(out)), WriteError.NO_DATA_TO_WRITE)

            raw = out.read_bytes()
            self.assertEqual(raw, _seal(_plain_archive([b"AA", b"BBB"])))
            loaded = Archive()
            self.assertIs(loaded.read_from_file(str(out)), ReadError.SUCCESS)
            self.assertEqual(loaded.members(), [b"AA", b"BBB"])

        self.run_with_tmpdir(scenario)

    def test_never_loaded_has_no_data(self):
        def scenario(tmp_path: Path):
            out = tmp_path / "never.enc"
            self.assertIs(Archive().flush_to_file(str(out)), WriteError.NO_DATA_TO_WRITE)
            self.assertFalse(out.exists())

        self.run_with_tmpdir(scenario)

    def test_unopenable_destination_keeps_state(self):
        def scenario(tmp_path: Path):
            archive = Archive()
            archive.load_members_from([b"AA", b"BBB"])
            before = bytes(archive.data())
            with _quiet():
                result = archive.flush_to_file(str(tmp_path))  # a directory
            self.assertIs(result, WriteError.COULD_NOT_OPEN_FILE)
            self.assertEqual(bytes(archive.data()), before)
            self.assertIs(archive.flush_to_file(str(tmp_path / "ok.enc")), WriteError.SUCCESS)

        self.run_with_tmpdir(scenario)

    def test_failed_write_restores_plaintext(self):
        archive = Archive()
        archive.load_members_from([b"AA", b"BBB"])
        with mock.patch("shaderpack.archive.open", create=True, return_value=_FailingFile()):
            with _quiet():
                result = archive.flush_to_file("ignored.enc")
        self.assertIs(result, WriteError.COULD_NOT_OPEN_FILE)
        self.assertTrue(archive.is_loaded())
        self.assertEqual(archive.members(), [b"AA", b"BBB"])


class TraversalTests(unittest.TestCase):
    def _archive(self):
        archive = Archive()
        archive.load_members_from([b"one", b"two", b"three"])
        return archive

    def test_for_each_visits_in_order(self):
        seen = []
        self._archive().for_each(lambda p: seen.append(bytes(p)))
        self.assertEqual(seen, [b"one", b"two", b"three"])

    def test_for_each_until_stops_at_first_result(self):
        visited = []

        def visitor(payload):
            index = len(visited)
            visited.append(bytes(payload))
            if index == 1:
                return ("failed", index)
            return None

        result = self._archive().for_each_until(visitor)
        self.assertEqual(result, ("failed", 1))
        self.assertEqual(visited, [b"one", b"two"])

    def test_for_each_until_without_result(self):
        count = []
        result = self._archive().for_each_until(lambda p: count.append(1))
        self.assertIsNone(result)
        self.assertEqual(len(count), 3)

    def test_traversal_on_empty_archive(self):
        calls = []
        archive = Archive()
        archive.for_each(calls.append)
        self.assertIsNone(archive.for_each_until(calls.append))
        self.assertEqual(calls, [])
        self.assertEqual(len(archive), 0)


if __name__ == "__main__":
    unittest.main()
