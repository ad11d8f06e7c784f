"""Variable resolution: files, command-line overrides and template defaults."""

from .varfile import (
    SUPPORTED_EXTENSIONS,
    config_defaults,
    load,
    merge,
    missing_required,
    parse_cli_vars,
    resolve_context,
    stringify,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "config_defaults",
    "load",
    "merge",
    "missing_required",
    "parse_cli_vars",
    "resolve_context",
    "stringify",
]
