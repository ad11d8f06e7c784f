"""Jinja rendering for template text and template paths."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import jinja2

from ..errors import NotFoundError, RenderError, TemplateSyntaxError

RenderContext = Mapping[str, Any]


def _new_environment() -> jinja2.Environment:
    # Undefined names (and attribute chains on them) render as "" instead of
    # raising; templates are routinely instantiated with partial contexts.
    return jinja2.Environment(
        loader=jinja2.BaseLoader(),
        undefined=jinja2.ChainableUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def check_syntax(text: str) -> None:
    """Parse ``text`` without rendering it; raise on malformed syntax."""
    try:
        _new_environment().parse(text)
    except jinja2.TemplateSyntaxError as e:
        raise TemplateSyntaxError(e.message or str(e), lineno=e.lineno) from e


def render_string(text: str, context: RenderContext) -> str:
    """Parse and render ``text`` with ``context``.

    Every call parses from scratch; nothing is cached between calls. Values
    are substituted once, so a value that itself looks like a template is
    emitted literally.
    """
    env = _new_environment()
    try:
        template = env.from_string(text)
    except jinja2.TemplateSyntaxError as e:
        raise TemplateSyntaxError(e.message or str(e), lineno=e.lineno) from e
    try:
        return template.render(dict(context))
    except (jinja2.TemplateError, TypeError, ValueError) as e:
        raise RenderError(f"failed to render template: {e}") from e


def render_file(path: Path, context: RenderContext) -> str:
    """Read ``path`` as UTF-8 and render it."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFoundError(f"template file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise NotFoundError(f"failed to read template file {path}: {e}") from e
    return render_string(text, context)


class RenderEngine:
    """Stateless renderer used by the generator."""

    def render(self, text: str, context: RenderContext) -> str:
        return render_string(text, context)

    def render_file(self, path: Path, context: RenderContext) -> str:
        return render_file(path, context)
