"""Variable files and command-line overrides.

Variable files may be TOML, YAML or JSON. Each may either be a flat mapping of
name to value, or wrap that mapping in a top-level ``variables`` table. A value
that is itself a mapping with a ``default`` key contributes that default.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from ..config.template_config import TemplateConfig
from ..errors import (
    InvalidVariableError,
    NotFoundError,
    UnsupportedFormatError,
    VariableFileError,
)

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".toml", ".yaml", ".yml", ".json")

# Top-level TOML tables that describe a template rather than hold values.
_RESERVED_TOML_KEYS = {"template", "variables"}


def stringify(value: Any) -> str:
    """Render a parsed scalar or container as a variable string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def load(path: Path) -> Dict[str, str]:
    """Load a variable file, dispatching on its extension."""
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"variable file not found: {path}")

    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"unsupported file format: {ext or '(none)'} "
            f"(supported: {', '.join(SUPPORTED_EXTENSIONS)})"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise VariableFileError(f"failed to read variable file {path}: {e}") from e

    try:
        if ext == ".toml":
            variables = _load_toml(content)
        elif ext == ".json":
            variables = _load_mapping_document(_parse_json(content))
        else:
            variables = _load_mapping_document(_parse_yaml(content))
    except VariableFileError as e:
        raise VariableFileError(f"failed to parse {ext} file {path}: {e}") from e

    logger.debug(f"Loaded {len(variables)} variable(s) from {path}")
    return variables


def _parse_json(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise VariableFileError(str(e)) from e


def _parse_yaml(content: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise VariableFileError(str(e)) from e


def _load_toml(content: str) -> Dict[str, str]:
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise VariableFileError(str(e)) from e

    # Template style: [variables] whose entries are strings or tables with a
    # default. Other value types are ignored here.
    section = data.get("variables")
    if isinstance(section, dict) and section:
        variables: Dict[str, str] = {}
        for key, value in section.items():
            if isinstance(value, str):
                variables[key] = value
            elif isinstance(value, dict) and "default" in value:
                variables[key] = stringify(value["default"])
        if variables:
            return variables

    return {
        key: stringify(value)
        for key, value in data.items()
        if key not in _RESERVED_TOML_KEYS
    }


def _load_mapping_document(data: Any) -> Dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise VariableFileError("document must be a mapping of variable names to values")

    section = data.get("variables")
    source = section if isinstance(section, dict) else data

    variables: Dict[str, str] = {}
    for key, value in source.items():
        if isinstance(value, dict) and "default" in value:
            variables[str(key)] = stringify(value["default"])
        else:
            variables[str(key)] = stringify(value)
    return variables


def merge(
    file_vars: Optional[Mapping[str, str]], cli_vars: Optional[Mapping[str, str]]
) -> Dict[str, str]:
    """Union of both maps; command-line values win. Inputs are not modified."""
    result: Dict[str, str] = dict(file_vars or {})
    result.update(cli_vars or {})
    return result


def parse_cli_vars(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse repeated ``key=value`` arguments; later keys win."""
    variables: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidVariableError(f"invalid variable '{pair}', expected key=value")
        variables[key] = value
    return variables


def config_defaults(config: Optional[TemplateConfig]) -> Dict[str, str]:
    """Defaults declared by a template config, as a variable map."""
    if config is None:
        return {}
    return {
        spec.name: stringify(spec.default)
        for spec in config.variables
        if spec.default is not None
    }


def missing_required(
    config: Optional[TemplateConfig], context: Mapping[str, str]
) -> List[str]:
    """Names of required variables that have no value in ``context``."""
    if config is None:
        return []
    return [
        spec.name
        for spec in config.variables
        if spec.required and not context.get(spec.name)
    ]


def resolve_context(
    config: Optional[TemplateConfig],
    file_vars: Optional[Mapping[str, str]],
    cli_vars: Optional[Mapping[str, str]],
) -> Dict[str, str]:
    """Layer template defaults, then file variables, then CLI overrides."""
    return merge(merge(config_defaults(config), file_vars), cli_vars)
