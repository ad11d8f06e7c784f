"""Configuration management for ason."""

from .settings import (
    METADATA_FILENAME,
    TEMPLATE_CONFIG_FILENAME,
    RuntimeSettings,
    data_home,
    get_settings,
    load_settings,
)
from .template_config import (
    TemplateConfig,
    VariableSpec,
    find_template_config,
    load_template_config,
    parse_template_config,
)

__all__ = [
    "METADATA_FILENAME",
    "TEMPLATE_CONFIG_FILENAME",
    "RuntimeSettings",
    "TemplateConfig",
    "VariableSpec",
    "data_home",
    "find_template_config",
    "get_settings",
    "load_settings",
    "load_template_config",
    "parse_template_config",
]
