"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from .console import err_console


def configure_logging(verbose: bool = False) -> None:
    """Route the ``ason`` logger hierarchy through rich on stderr.

    Library code only ever calls ``logging.getLogger(__name__)``; handlers are
    installed here, once, by the CLI.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger("ason")
    root.setLevel(level)
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    handler.setLevel(level)
    root.addHandler(handler)
    root.propagate = False
