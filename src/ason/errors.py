"""Exceptions raised by the ason core."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class AsonError(Exception):
    """Base class for every error the core surfaces to its callers"""


class NotFoundError(AsonError):
    """Raise when a file, directory or registry entry does not exist"""


class TemplateNotFoundError(NotFoundError):
    """Raise when a template name is not present in the registry"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"template '{name}' not found")


class TemplateExistsError(AsonError):
    """Raise when registering a name that is already taken"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"template '{name}' already exists. Remove it first or use --force to overwrite"
        )


class InvalidTemplateNameError(AsonError):
    """Raise when a template name cannot be used as a registry directory name"""


class InvalidSourceError(AsonError):
    """Raise when a template source path exists but is not a directory"""


class RegistryError(AsonError):
    """Raise when the registry metadata cannot be read or written"""


class TemplateSyntaxError(AsonError):
    """Raise when template text is not valid Jinja syntax"""

    def __init__(self, message: str, lineno: Optional[int] = None) -> None:
        self.lineno = lineno
        location = f" (line {lineno})" if lineno else ""
        super().__init__(f"template syntax error{location}: {message}")


class RenderError(AsonError):
    """Raise when well-formed template text fails while rendering"""


class UnsupportedFormatError(AsonError):
    """Raise when a variable file has an extension we cannot parse"""


class VariableFileError(AsonError):
    """Raise when a variable file exists but its content cannot be used"""


class InvalidVariableError(AsonError):
    """Raise when a command-line variable is not of the form key=value"""


class ConfigError(AsonError):
    """Raise when a template's ason.toml cannot be parsed"""


class GenerationError(AsonError):
    """Raise when materialising a template tree fails"""


class PathEscapeError(GenerationError):
    """Raise when a rendered destination path would leave the output directory"""

    def __init__(self, rendered: str, output_root: Path) -> None:
        self.rendered = rendered
        self.output_root = output_root
        super().__init__(
            f"rendered path '{rendered}' escapes the output directory {output_root}"
        )


class TemplateValidationError(AsonError):
    """Raise when a template fails structural validation before registration"""


class EmptyPathSegmentError(GenerationError):
    """Raise when a templated path segment renders to an empty name"""

    def __init__(self, rel_path: str, segment: str) -> None:
        self.rel_path = rel_path
        self.segment = segment
        super().__init__(
            f"path '{rel_path}': segment '{segment}' rendered empty (undefined variable?)"
        )
