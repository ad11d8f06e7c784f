"""Registry data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utcnow()


@dataclass
class TemplateEntry:
    """One registered template.

    ``path`` always points at the registry-owned copy under the registry's
    ``templates/`` directory, never at the directory it was registered from.
    """

    name: str
    path: str
    description: str = ""
    source: str = ""
    type: str = ""
    size: int = 0
    files: int = 0
    added: datetime = field(default_factory=utcnow)
    variables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "description": self.description,
            "source": self.source,
            "type": self.type,
            "size": self.size,
            "files": self.files,
            "added": self.added,
        }
        if self.variables:
            data["variables"] = list(self.variables)
        return data

    def to_json_dict(self) -> Dict[str, Any]:
        data = self.to_dict()
        data["added"] = self.added.isoformat()
        data.setdefault("variables", [])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateEntry":
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            description=str(data.get("description", "")),
            source=str(data.get("source", "")),
            type=str(data.get("type", "")),
            size=int(data.get("size", 0)),
            files=int(data.get("files", 0)),
            added=_as_datetime(data.get("added")),
            variables=[str(v) for v in data.get("variables", [])],
        )


@dataclass
class RegistryMetadata:
    """The entire persisted state of a registry."""

    templates: Dict[str, TemplateEntry] = field(default_factory=dict)
    updated: datetime = field(default_factory=utcnow)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryMetadata":
        raw_templates = data.get("templates", {}) or {}
        templates: Dict[str, TemplateEntry] = {}
        for key, value in raw_templates.items():
            value = dict(value)
            value.setdefault("name", key)
            templates[str(key)] = TemplateEntry.from_dict(value)
        return cls(templates=templates, updated=_as_datetime(data.get("updated")))
