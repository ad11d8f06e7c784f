"""Template configuration (``ason.toml``) models and loading."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigError, NotFoundError
from .settings import TEMPLATE_CONFIG_FILENAME


class VariableSpec(BaseModel):
    """A variable a template expects in its render context."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(description="Variable name as referenced in the template")
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "prompt"),
        description="Human readable explanation or prompt text",
    )
    required: bool = Field(default=False)
    default: Optional[Any] = Field(default=None)
    type: str = Field(default="string")
    options: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("options", "choices"),
        description="Allowed values, when the variable is an enumeration",
    )
    example: str = Field(default="")


class TemplateConfig(BaseModel):
    """Optional descriptor shipped inside a template directory."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="")
    description: str = Field(default="")
    version: str = Field(default="")
    author: str = Field(default="")
    type: str = Field(default="")
    engine: str = Field(default="")
    variables: List[VariableSpec] = Field(default_factory=list)
    ignore: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @property
    def variable_names(self) -> List[str]:
        return [v.name for v in self.variables]


def config_path(template_dir: Path) -> Path:
    return Path(template_dir) / TEMPLATE_CONFIG_FILENAME


def parse_template_config(text: str) -> TemplateConfig:
    """Parse config text, trying TOML first and JSON second."""
    errors: List[str] = []
    data: Optional[dict] = None
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        errors.append(f"TOML: {e}")
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as je:
            errors.append(f"JSON: {je}")
        else:
            if isinstance(loaded, dict):
                data = loaded
            else:
                errors.append("JSON: document is not an object")
    if data is None:
        raise ConfigError("failed to parse template config: " + "; ".join(errors))
    try:
        return TemplateConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid template config: {e}") from e


def load_template_config(path: Path) -> TemplateConfig:
    """Load a config file; ``path`` may be the file or its template directory."""
    path = Path(path)
    if path.is_dir():
        path = config_path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFoundError(f"no {TEMPLATE_CONFIG_FILENAME} found at {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"failed to read {path}: {e}") from e
    return parse_template_config(text)


def find_template_config(template_dir: Path) -> Optional[TemplateConfig]:
    """Return the template's config, or None when it ships without one."""
    candidate = config_path(template_dir)
    if not candidate.is_file():
        return None
    return load_template_config(candidate)
