"""Persistent store of registered templates."""

from .models import RegistryMetadata, TemplateEntry
from .registry import Registry, validate_name
from .storage import MetadataStore

__all__ = [
    "MetadataStore",
    "Registry",
    "RegistryMetadata",
    "TemplateEntry",
    "validate_name",
]
