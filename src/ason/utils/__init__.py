"""Utility modules for ason."""

from .console import console, err_console
from .filesystem import (
    ALLOWED_DOTFILES,
    copy_visible_tree,
    is_skipped_name,
    iter_template_tree,
    tree_stats,
)
from .formatting import format_size, format_time
from .logging import configure_logging

__all__ = [
    "ALLOWED_DOTFILES",
    "configure_logging",
    "console",
    "copy_visible_tree",
    "err_console",
    "format_size",
    "format_time",
    "is_skipped_name",
    "iter_template_tree",
    "tree_stats",
]
