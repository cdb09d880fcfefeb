from __future__ import annotations

import os
import sys
from typing import Optional


def read_file(path: str) -> Optional[bytes]:
    """Read the whole file at ``path``; ``None`` if it cannot be read."""
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        print(f"Warning: failed to open {path} for reading: {exc}", file=sys.stderr)
        return None


def write_file(path: str, data, *, make_dirs: bool = False) -> bool:
    """Write ``data`` to ``path``, truncating it. Returns False on failure."""
    try:
        if make_dirs:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        print(f"Warning: failed to write {path}: {exc}", file=sys.stderr)
        return False
    return True
