"""Template render engine for ason."""

from .render import (
    RenderContext,
    RenderEngine,
    check_syntax,
    render_file,
    render_string,
)

__all__ = [
    "RenderContext",
    "RenderEngine",
    "check_syntax",
    "render_file",
    "render_string",
]
