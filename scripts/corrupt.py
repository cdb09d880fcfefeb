from __future__ import annotations

import argparse
import os
import random
import sys
from typing import Optional

from shaderpack.archive import decode_archive
from shaderpack.constants import TRAILER_SIZE
from shaderpack.encryption import EncryptionContext
from shaderpack.errors import ShaderPackError
from shaderpack.records import MemberEnumerator
from shaderpack.trailer import split_trailer


def _region_of(offset: int, size: int) -> str:
    # Encrypted bytes map to plaintext only chunkwise, so this names the
    # region the flipped ciphertext byte sits in, not every byte it will garble
    return "trailer" if offset >= size - TRAILER_SIZE else "frames"


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> int:
    """XOR one byte of the archive file in place; returns the file size."""
    size = os.path.getsize(path)
    if offset < 0 or offset >= size:
        raise ValueError(f"Offset must be within the archive (0..{size - 1})")
    if xor_val & 0xFF == 0:
        raise ValueError("XOR mask must change the byte")
    with open(path, "r+b") as f:
        f.seek(offset)
        old = f.read(1)[0]
        f.seek(offset)
        f.write(bytes([old ^ (xor_val & 0xFF)]))
    return size


def cmd_by_offset(args: argparse.Namespace) -> None:
    size = _flip_byte(args.archive, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset} ({_region_of(args.offset, size)})")


def cmd_member(args: argparse.Namespace) -> None:
    """Flip a plaintext byte inside a member, then re-encrypt without fixing the digest."""
    with open(args.archive, "rb") as f:
        raw = f.read()
    buf = decode_archive(raw)
    frame_region, _ = split_trailer(buf)
    e = MemberEnumerator(frame_region)
    while e and e.index < args.index:
        e.advance()
    if not e:
        raise ValueError(f"Member index out of range (archive has {e.index} member(s))")
    payload = e.data()
    if args.within < 0 or args.within >= len(payload):
        raise ValueError(f"--within must be within member length (0..{len(payload) - 1})")
    payload[args.within] ^= args.xor & 0xFF
    EncryptionContext().encrypt(buf)
    with open(args.archive, "wb") as f:
        f.write(buf)
    print(f"Flipped 1 byte in member {args.index} at member offset {args.within}")


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    size = os.path.getsize(args.archive)
    limit = size - TRAILER_SIZE if args.frames_only else size
    if limit <= 0:
        raise ValueError("Archive has no bytes to flip")
    hits = {"frames": 0, "trailer": 0}
    for _ in range(args.count):
        pos = rng.randrange(0, limit)
        _flip_byte(args.archive, pos, xor_val=args.xor)
        hits[_region_of(pos, size)] += 1
    print(f"Flipped {args.count} byte(s) at random offsets (frames={hits['frames']} trailer={hits['trailer']})")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="shaderpack.corrupt", description="Corrupt shader archives for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_off = sub.add_parser("by-offset", help="Flip one byte at an absolute (encrypted) archive offset")
    p_off.add_argument("archive", help="Path to shader archive")
    p_off.add_argument("--offset", type=int, required=True, help="Absolute byte offset in archive")
    p_off.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_off.set_defaults(func=cmd_by_offset)

    p_mem = sub.add_parser("member", help="Flip a decrypted byte within a specific member")
    p_mem.add_argument("archive", help="Path to shader archive")
    p_mem.add_argument("--index", type=int, default=0, help="Member index (0-based, default 0)")
    p_mem.add_argument("--within", type=int, default=0, help="Byte offset within member payload (default 0)")
    p_mem.add_argument("--xor", type=lambda x: int(x, 0), default=0x01, help="XOR mask to apply (default 0x01)")
    p_mem.set_defaults(func=cmd_member)

    p_rand = sub.add_parser("random", help="Flip N random bytes anywhere in the archive")
    p_rand.add_argument("archive", help="Path to shader archive")
    p_rand.add_argument("--count", type=int, default=1, help="Number of random byte flips (default 1)")
    p_rand.add_argument("--seed", type=int, default=None, help="PRNG seed for reproducibility")
    p_rand.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_rand.add_argument("--frames-only", action="store_true", help="Keep flips out of the 33-byte digest trailer")
    p_rand.set_defaults(func=cmd_random)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (ShaderPackError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
