from __future__ import annotations

import argparse
import enum
import sys
from typing import List, Optional

from shaderpack.archive import Archive, ReadError, WriteError, decode_archive
from shaderpack.errors import ArchiveCorruptError, ShaderPackError
from shaderpack.fileio import read_file, write_file
from shaderpack.names import (
    CLIENT_CE,
    CLIENT_PC,
    KIND_FX,
    KIND_VSH,
    ArchiveVariant,
    load_names,
    member_path,
    resolve_names,
)


class _UnpackStop(enum.Enum):
    TOO_MANY_MEMBERS = 1
    WRITE_ERROR = 2


_READ_ERROR_REASONS = {
    ReadError.COULD_NOT_OPEN_FILE: "could not open file",
    ReadError.ARCHIVE_DATA_IS_CORRUPT: "archive is corrupt",
}

_WRITE_ERROR_REASONS = {
    WriteError.NO_DATA_TO_WRITE: "no data to write",
    WriteError.COULD_NOT_OPEN_FILE: "could not open output file for writing",
}


def _load_archive(path: str) -> Optional[Archive]:
    archive = Archive()
    result = archive.read_from_file(path)
    if result is not ReadError.SUCCESS:
        print(f"Error: {path}: {_READ_ERROR_REASONS[result]}", file=sys.stderr)
        return None
    return archive


def cmd_unpack(
    archive_path: str,
    variant: ArchiveVariant,
    *,
    prefix: Optional[str] = None,
    names_file: Optional[str] = None,
    quiet: bool = False,
) -> bool:
    """Write each member of ``archive_path`` to ``prefix + name + ext``.

    Members beyond the end of the name table are not an error; the engine
    ignores them too. An archive with fewer members than names unpacks what
    it has and warns.
    """
    archive = _load_archive(archive_path)
    if archive is None:
        return False
    if prefix is None:
        prefix = variant.default_prefix
    names = resolve_names(variant, names_file)

    written = 0

    def _write_member(payload) -> Optional[_UnpackStop]:
        nonlocal written
        if written >= len(names):
            return _UnpackStop.TOO_MANY_MEMBERS
        dst = member_path(prefix, names[written], variant)
        if not write_file(dst, payload, make_dirs=True):
            return _UnpackStop.WRITE_ERROR
        if not quiet:
            print(f" unpacking: {written:>4}/{len(names):<4} {dst}")
        written += 1
        return None

    stop = archive.for_each_until(_write_member)
    if stop is _UnpackStop.WRITE_ERROR:
        print(f"Error: failed to write member {names[written]}", file=sys.stderr)
        return False
    if stop is _UnpackStop.TOO_MANY_MEMBERS:
        print(f"Note: ignored {len(archive) - written} member(s) beyond the name table")
    elif written < len(names):
        print(f"Warning: archive has {written} member(s); expected {len(names)}", file=sys.stderr)

    print(f"unpacked {written} archive members prefixed with {prefix}")
    return True


def cmd_pack(
    output: str,
    variant: ArchiveVariant,
    *,
    prefix: Optional[str] = None,
    names_file: Optional[str] = None,
    quiet: bool = False,
) -> bool:
    """Pack ``prefix + name + ext`` for every name, in order, into ``output``."""
    if prefix is None:
        prefix = variant.default_prefix
    names = resolve_names(variant, names_file)

    payloads: List[bytes] = []
    for name in names:
        path = member_path(prefix, name, variant)
        data = read_file(path)
        if data is None:
            print(f"Error: failed to read member file {path}", file=sys.stderr)
            return False
        if not quiet:
            print(f"   packing: {len(payloads):>4}/{len(names):<4} {path}")
        payloads.append(data)

    archive = Archive()
    archive.load_members_from(payloads)
    result = archive.flush_to_file(output)
    if result is not WriteError.SUCCESS:
        print(f"Error: {output}: {_WRITE_ERROR_REASONS[result]}", file=sys.stderr)
        return False
    print(f"packed {len(payloads)} archive members into {output}")
    return True


def cmd_verify(archive_path: str) -> bool:
    raw = read_file(archive_path)
    if raw is None:
        print(f"Error: {archive_path}: could not open file", file=sys.stderr)
        return False
    try:
        decode_archive(raw)
    except ArchiveCorruptError as exc:
        print(f"FAIL: {exc}")
        return False
    print("OK")
    return True


def cmd_list(archive_path: str, *, names_file: Optional[str] = None) -> bool:
    archive = _load_archive(archive_path)
    if archive is None:
        return False
    names = load_names(names_file) if names_file else []
    e = archive.enumerate()
    while e:
        size = len(e.data())
        if e.index < len(names):
            print(f"{e.index}\t{size}\t{names[e.index]}")
        else:
            print(f"{e.index}\t{size}")
        e.advance()
    print(f"{e.index} member(s), {archive.size()} bytes")
    return True


def _add_variant_args(p: argparse.ArgumentParser) -> None:
    client = p.add_mutually_exclusive_group(required=True)
    client.add_argument("--pc", dest="client", action="store_const", const=CLIENT_PC, help="Archive is for the retail client")
    client.add_argument("--ce", dest="client", action="store_const", const=CLIENT_CE, help="Archive is for the Custom Edition client")
    kind = p.add_mutually_exclusive_group(required=True)
    kind.add_argument("--fx", dest="kind", action="store_const", const=KIND_FX, help="Effects archive (PREFIX defaults to 'fx/')")
    kind.add_argument("--vsh", dest="kind", action="store_const", const=KIND_VSH, help="Vertex shaders archive (PREFIX defaults to 'vsh/')")
    p.add_argument("--names", dest="names_file", help="Name table file (one member name per line, in archive order)")
    p.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="shaderpack",
        description="Shader archive packer/unpacker",
        epilog="Archives are TEA-encrypted and carry a trailing MD5 digest that is verified on load.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_unpack = sub.add_parser("unpack", help="Unpack archive members to files")
    ap_unpack.add_argument("archive", help="Input archive path")
    ap_unpack.add_argument("prefix", nargs="?", help="Prefix for member files")
    _add_variant_args(ap_unpack)

    ap_pack = sub.add_parser("pack", help="Create an archive from member files")
    ap_pack.add_argument("output", help="Output archive path")
    ap_pack.add_argument("prefix", nargs="?", help="Prefix for member files")
    _add_variant_args(ap_pack)

    ap_verify = sub.add_parser("verify", help="Verify archive digest and member framing")
    ap_verify.add_argument("archive", help="Archive path")

    ap_list = sub.add_parser("list", help="List archive members")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--names", dest="names_file", help="Name table file to label members")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "unpack":
            ok = cmd_unpack(
                args.archive,
                ArchiveVariant(args.client, args.kind),
                prefix=args.prefix,
                names_file=args.names_file,
                quiet=args.quiet,
            )
        elif args.cmd == "pack":
            ok = cmd_pack(
                args.output,
                ArchiveVariant(args.client, args.kind),
                prefix=args.prefix,
                names_file=args.names_file,
                quiet=args.quiet,
            )
        elif args.cmd == "verify":
            ok = cmd_verify(args.archive)
        elif args.cmd == "list":
            ok = cmd_list(args.archive, names_file=args.names_file)
        else:
            raise RuntimeError("Unknown command")
    except (ShaderPackError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
