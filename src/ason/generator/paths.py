"""Destination path containment."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath, PureWindowsPath

from ..errors import PathEscapeError


def contained_destination(output_root: Path, rendered: str) -> Path:
    """Join ``rendered`` onto ``output_root``, rejecting any escape.

    A rendered path is rejected when it is absolute, carries a drive, or
    normalises to a location outside ``output_root`` (for example through
    ``..`` segments injected by a variable value). Nothing is clamped.
    """
    if (
        not rendered
        or PurePosixPath(rendered).is_absolute()
        or PureWindowsPath(rendered).anchor
    ):
        raise PathEscapeError(rendered, output_root)

    root = Path(os.path.abspath(output_root))
    destination = Path(os.path.normpath(root / rendered))
    if destination == root or root not in destination.parents:
        raise PathEscapeError(rendered, output_root)
    return destination
