"""
shaderpack — codec and tooling for game-engine shader archives.

Features:

- TEA (Tiny Encryption Algorithm) whole-file encryption with the fixed key the
  engine expects, including its overlapping tail-chunk rule.
- Length-prefixed member framing with a bounds-checked forward enumerator.
- MD5 integrity trailer (lowercase hex, NUL-terminated) verified on load.
- Unpack/pack/verify/list via the ``shaderpack`` CLI.

On disk an archive is ``encrypt([u32 len][payload] * N ++ md5hex ++ b"\\0")``.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "tea",
    "encryption",
    "hashutil",
    "records",
    "trailer",
    "archive",
    "names",
]

# Importable programmatic API is available via shaderpack.archive.Archive and
# the CLI functions in shaderpack.cli (cmd_unpack/cmd_pack) which take normal parameters.
