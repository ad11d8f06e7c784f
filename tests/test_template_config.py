from __future__ import annotations

from pathlib import Path

import pytest

from ason.config import (
    find_template_config,
    load_template_config,
    parse_template_config,
)
from ason.errors import ConfigError, NotFoundError


def test_parse_toml_config() -> None:
    config = parse_template_config(
        """
name = "svc"
description = "A service"
version = "1.2.0"
author = "someone"
type = "service"
tags = ["web"]
ignore = ["*.log"]

[[variables]]
name = "proj"
description = "Project name"
required = true
example = "demo"

[[variables]]
name = "tier"
options = ["gold", "silver"]
default = "gold"
""".lstrip()
    )
    assert config.name == "svc"
    assert config.tags == ["web"]
    assert config.ignore == ["*.log"]
    assert config.variable_names == ["proj", "tier"]
    assert config.variables[0].required
    assert config.variables[0].type == "string"
    assert config.variables[1].options == ["gold", "silver"]


def test_parse_json_config_with_aliases() -> None:
    config = parse_template_config(
        '{"name": "j", "variables": [{"name": "x", "prompt": "X?", "choices": ["a", "b"]}]}'
    )
    assert config.name == "j"
    assert config.variables[0].description == "X?"
    assert config.variables[0].options == ["a", "b"]


def test_unparseable_config() -> None:
    with pytest.raises(ConfigError):
        parse_template_config("not = [valid")


def test_invalid_shape() -> None:
    with pytest.raises(ConfigError):
        parse_template_config('variables = "nope"')


def test_load_from_directory(tmp_path: Path) -> None:
    (tmp_path / "ason.toml").write_text('name = "dir"\n')
    assert load_template_config(tmp_path).name == "dir"
    assert find_template_config(tmp_path).name == "dir"


def test_missing_config(tmp_path: Path) -> None:
    assert find_template_config(tmp_path) is None
    with pytest.raises(NotFoundError):
        load_template_config(tmp_path / "ason.toml")
