"""Extension-based binary file classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable

DEFAULT_BINARY_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".ico",
        ".pdf",
        ".zip",
        ".tar.gz",
        ".gz",
        ".exe",
        ".bin",
        ".so",
        ".dylib",
        ".dll",
        ".woff",
        ".woff2",
        ".ttf",
        ".eot",
        ".mp3",
        ".mp4",
        ".avi",
        ".mov",
        ".webm",
        ".ogg",
    }
)


def _normalize(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"


@dataclass(frozen=True)
class BinaryClassifier:
    """Decide from the file name alone whether a file is copied verbatim.

    File contents are never inspected.
    """

    extensions: FrozenSet[str] = field(default=DEFAULT_BINARY_EXTENSIONS)

    def is_binary(self, ext: str) -> bool:
        return _normalize(ext) in self.extensions

    def is_binary_path(self, path: Path) -> bool:
        suffixes = [s.lower() for s in Path(path).suffixes]
        if not suffixes:
            return False
        if len(suffixes) >= 2 and self.is_binary("".join(suffixes[-2:])):
            return True
        return self.is_binary(suffixes[-1])

    def with_extensions(self, extra: Iterable[str]) -> "BinaryClassifier":
        return BinaryClassifier(self.extensions | {_normalize(e) for e in extra})

    def without_extensions(self, removed: Iterable[str]) -> "BinaryClassifier":
        return BinaryClassifier(self.extensions - {_normalize(e) for e in removed})
