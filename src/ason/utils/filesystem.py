"""File system utilities shared by the generator and the registry."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import AbstractSet, Iterator, Tuple

logger = logging.getLogger(__name__)

# Dotfiles that are template content rather than tooling noise.
ALLOWED_DOTFILES = frozenset({".gitignore", ".env.example"})

DEFAULT_DIR_MODE = 0o755


def is_skipped_name(name: str) -> bool:
    """Return True for hidden entries that are not on the dotfile allow-list."""
    return name.startswith(".") and name not in ALLOWED_DOTFILES


def iter_template_tree(
    root: Path, prune: AbstractSet[str] = frozenset()
) -> Iterator[Tuple[Path, bool]]:
    """Yield ``(path, is_dir)`` for every visible entry under ``root``.

    The walk is depth-first in lexical order: a directory is yielded right
    before its own contents. The root itself is not yielded, and hidden
    directories are pruned without being descended into.
    Entries whose real path is in ``prune`` are skipped as well.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if is_skipped_name(entry.name):
            logger.debug(f"Skipping hidden entry {entry.path}")
            continue
        if prune and os.path.realpath(entry.path) in prune:
            logger.debug(f"Skipping {entry.path}")
            continue
        path = Path(entry.path)
        if entry.is_symlink() and entry.is_dir():
            logger.warning(f"Skipping symlinked directory {path}")
            continue
        if entry.is_dir(follow_symlinks=False):
            yield path, True
            yield from iter_template_tree(path, prune)
        else:
            yield path, False


def dir_mode(path: Path) -> int:
    """Permission bits of an existing directory."""
    return stat.S_IMODE(path.stat().st_mode)


def copy_visible_tree(src: Path, dst: Path) -> None:
    """Copy ``src`` into ``dst`` skipping hidden entries, preserving modes."""
    dst.mkdir(parents=True, exist_ok=True)
    modes = [(dst, dir_mode(src))]
    for path, is_dir in iter_template_tree(src):
        target = dst / path.relative_to(src)
        if is_dir:
            target.mkdir(parents=True, exist_ok=True)
            modes.append((target, dir_mode(path)))
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
    # Deepest first, once nothing more needs to be written into them.
    for target, mode in reversed(modes):
        os.chmod(target, mode)


def tree_stats(root: Path) -> Tuple[int, int]:
    """Return ``(total_bytes, file_count)`` over every file under ``root``."""
    total_size = 0
    file_count = 0
    for dirpath, _dirnames, filenames in os.walk(root):
        for fname in filenames:
            total_size += (Path(dirpath) / fname).stat().st_size
            file_count += 1
    return total_size, file_count
