"""Local template registry.

The registry owns a directory (see ``ason.config.settings``) containing a
``templates/`` tree of copied template content, a ``backups/`` tree and a
single ``registry.toml`` metadata file describing every entry.

Mutations are transactional with respect to the metadata file:

- ``add`` copies into a hidden staging directory, renames it into place and
  only then persists metadata. Any failure removes what was created.
- ``remove`` moves the owned tree aside, persists metadata and then deletes
  the moved tree. If persisting fails the tree is moved back.

Overwriting an entry (``replace``) is still two separate steps, remove then
add, each of which is transactional on its own.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config.settings import RuntimeSettings, get_settings, load_settings
from ..config.template_config import find_template_config
from ..errors import (
    ConfigError,
    InvalidSourceError,
    InvalidTemplateNameError,
    NotFoundError,
    RegistryError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from ..utils.filesystem import copy_visible_tree, tree_stats
from .models import TemplateEntry, utcnow
from .storage import MetadataStore

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


def validate_name(name: str) -> None:
    """Ensure ``name`` is usable as a single directory name under templates/."""
    if not name or not name.strip():
        raise InvalidTemplateNameError("template name must not be empty")
    if "/" in name or "\\" in name or (os.altsep and os.altsep in name):
        raise InvalidTemplateNameError(
            f"invalid template name '{name}': must not contain path separators"
        )
    if name in (".", ".."):
        raise InvalidTemplateNameError(f"invalid template name '{name}'")
    if name.startswith("."):
        raise InvalidTemplateNameError(
            f"invalid template name '{name}': must not start with '.'"
        )


class Registry:
    def __init__(
        self,
        home_dir: Optional[Path] = None,
        settings: Optional[RuntimeSettings] = None,
    ) -> None:
        if settings is None:
            settings = load_settings(home_dir) if home_dir else get_settings()
        self.settings = settings
        self._store = MetadataStore(settings.metadata_file, settings.lock_file)
        try:
            settings.templates_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RegistryError(
                f"failed to create registry directory {settings.home_dir}: {e}"
            ) from e

    @property
    def root(self) -> Path:
        return self.settings.home_dir

    @property
    def templates_dir(self) -> Path:
        return self.settings.templates_dir

    def list(self) -> List[TemplateEntry]:
        """All registered entries, ordered by name."""
        metadata = self._store.load()
        return [metadata.templates[name] for name in sorted(metadata.templates)]

    def exists(self, name: str) -> bool:
        return name in self._store.load().templates

    def get_entry(self, name: str) -> TemplateEntry:
        entry = self._store.load().templates.get(name)
        if entry is None:
            raise TemplateNotFoundError(name)
        return entry

    def get(self, name: str) -> Path:
        """Path of the registry-owned copy of template ``name``."""
        return Path(self.get_entry(name).path)

    def add(
        self,
        name: str,
        source: Path,
        description: str = "",
        template_type: str = "",
    ) -> TemplateEntry:
        """Copy ``source`` into the registry and record it as ``name``."""
        validate_name(name)
        source = Path(source).expanduser()
        if not source.exists():
            raise NotFoundError(f"source path does not exist: {source}")
        if not source.is_dir():
            raise InvalidSourceError(f"source path must be a directory: {source}")
        source = source.resolve()
        destination = self.templates_dir / name

        with self._store.locked() as metadata:
            if name in metadata.templates:
                raise TemplateExistsError(name)
            if destination.exists():
                logger.warning(f"Removing unregistered leftover directory {destination}")
                self._rmtree(destination)

            staging = Path(
                tempfile.mkdtemp(prefix=f".staging-{name}-", dir=self.templates_dir)
            )
            placed = False
            try:
                copy_visible_tree(source, staging)
                size, files = tree_stats(staging)
                entry = TemplateEntry(
                    name=name,
                    path=str(destination),
                    description=description,
                    source=str(source),
                    type=template_type,
                    size=size,
                    files=files,
                    added=utcnow(),
                )
                self._apply_template_config(entry, staging)

                staging.rename(destination)
                placed = True

                metadata.templates[name] = entry
                metadata.updated = utcnow()
                self._store.save(metadata)
            except OSError as e:
                self._discard(staging, destination if placed else None)
                raise RegistryError(f"failed to register template '{name}': {e}") from e
            except BaseException:
                self._discard(staging, destination if placed else None)
                raise

        logger.info(f"Registered template '{name}' from {source} ({files} files)")
        return entry

    def remove(
        self,
        name: str,
        backup: bool = False,
        backup_dir: Optional[Path] = None,
    ) -> Optional[Path]:
        """Delete template ``name``; returns the backup path when one was made."""
        with self._store.locked() as metadata:
            entry = metadata.templates.get(name)
            if entry is None:
                raise TemplateNotFoundError(name)
            owned = self._owned_path(entry)

            backup_path = None
            if backup:
                backup_path = self._backup(entry, owned, backup_dir)

            trash = None
            if owned.exists():
                trash = owned.with_name(f".trash-{name}-{uuid.uuid4().hex[:8]}")
                try:
                    owned.rename(trash)
                except OSError as e:
                    raise RegistryError(
                        f"failed to remove template directory {owned}: {e}"
                    ) from e
            else:
                logger.warning(f"Template directory {owned} is already missing")

            del metadata.templates[name]
            metadata.updated = utcnow()
            try:
                self._store.save(metadata)
            except BaseException:
                if trash is not None:
                    trash.rename(owned)
                raise

        if trash is not None:
            try:
                shutil.rmtree(trash)
            except OSError as e:
                logger.warning(f"Template '{name}' unregistered but {trash} remains: {e}")
        logger.info(f"Removed template '{name}'")
        return backup_path

    def replace(
        self,
        name: str,
        source: Path,
        description: str = "",
        template_type: str = "",
    ) -> TemplateEntry:
        """Overwrite ``name`` with a fresh copy of ``source``.

        This is remove followed by add; if the add fails the previous entry
        is already gone.
        """
        if self.exists(name):
            self.remove(name)
        return self.add(name, source, description, template_type)

    def _apply_template_config(self, entry: TemplateEntry, template_dir: Path) -> None:
        try:
            config = find_template_config(template_dir)
        except ConfigError as e:
            logger.warning(f"Ignoring unreadable template config for '{entry.name}': {e}")
            return
        if config is None:
            return
        if not entry.description:
            entry.description = config.description
        if not entry.type:
            entry.type = config.type
        entry.variables = config.variable_names

    def _owned_path(self, entry: TemplateEntry) -> Path:
        owned = Path(entry.path)
        templates_dir = self.templates_dir.resolve()
        if owned.resolve().parent != templates_dir:
            raise RegistryError(
                f"registry entry '{entry.name}' points outside {templates_dir}: {owned}"
            )
        return owned

    def _backup(self, entry: TemplateEntry, owned: Path, backup_dir: Optional[Path]) -> Path:
        if not owned.is_dir():
            raise NotFoundError(f"cannot back up missing template directory {owned}")
        root = Path(backup_dir).expanduser() if backup_dir else self.settings.backups_dir
        stamp = datetime.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        target = root / f"{entry.name}-{stamp}"
        counter = 1
        while target.exists():
            target = root / f"{entry.name}-{stamp}-{counter}"
            counter += 1
        try:
            root.mkdir(parents=True, exist_ok=True)
            shutil.copytree(owned, target, symlinks=True)
        except OSError as e:
            raise RegistryError(f"failed to back up template '{entry.name}': {e}") from e
        logger.info(f"Backed up template '{entry.name}' to {target}")
        return target

    def _discard(self, staging: Path, placed: Optional[Path]) -> None:
        for path in (staging, placed):
            if path is not None and path.exists():
                shutil.rmtree(path, ignore_errors=True)

    def _rmtree(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise RegistryError(f"failed to delete {path}: {e}") from e
