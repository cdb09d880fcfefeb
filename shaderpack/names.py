from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


CLIENT_PC = "pc"  # retail
CLIENT_CE = "ce"  # Custom Edition

KIND_FX = "fx"    # effects
KIND_VSH = "vsh"  # vertex shaders

# Number of members (and names) per archive variant
_MEMBER_COUNTS = {
    (CLIENT_PC, KIND_FX): 122,
    (CLIENT_CE, KIND_FX): 120,
    (CLIENT_PC, KIND_VSH): 64,
    (CLIENT_CE, KIND_VSH): 64,
}


@dataclass(frozen=True)
class ArchiveVariant:
    client: str
    kind: str

    def __post_init__(self):
        if (self.client, self.kind) not in _MEMBER_COUNTS:
            raise ValueError(f"unknown archive variant: {self.client}/{self.kind}")

    @property
    def extension(self) -> str:
        return self.kind

    @property
    def default_prefix(self) -> str:
        return self.kind + "/"

    @property
    def member_count(self) -> int:
        return _MEMBER_COUNTS[(self.client, self.kind)]


def default_names(variant: ArchiveVariant) -> List[str]:
    return [f"{variant.kind}_{i:03d}" for i in range(variant.member_count)]


def load_names(path: str) -> List[str]:
    """Read a name table: one member name per line, in archive order.

    Blank lines and lines starting with '#' are ignored.
    """
    names: List[str] = []
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            name = line.strip()
            if not name or name.startswith("#"):
                continue
            names.append(name)
    return names


def resolve_names(variant: ArchiveVariant, names_file: Optional[str] = None) -> List[str]:
    if names_file:
        return load_names(names_file)
    return default_names(variant)


def member_path(prefix: str, name: str, variant: ArchiveVariant) -> str:
    # Prefix is concatenated as-is, so "fx/" names a directory and "fx_" a filename prefix
    return f"{prefix}{name}.{variant.extension}"
