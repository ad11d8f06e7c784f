"""Persistence for the registry metadata file.

The whole file is rewritten on every mutation. Writers hold an exclusive
``FileLock`` for the duration of read-modify-write and replace the file
atomically, so a reader never observes a partially written document.
"""

from __future__ import annotations

import logging
import os
import tempfile
import tomllib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import tomlkit
from filelock import FileLock, Timeout

from ..errors import RegistryError
from .models import RegistryMetadata

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 10.0


class MetadataStore:
    def __init__(self, metadata_file: Path, lock_file: Path) -> None:
        self.metadata_file = Path(metadata_file)
        self.lock_file = Path(lock_file)

    def load(self) -> RegistryMetadata:
        """Read the metadata file; a missing file is an empty registry."""
        try:
            with open(self.metadata_file, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            return RegistryMetadata()
        except tomllib.TOMLDecodeError as e:
            raise RegistryError(
                f"failed to parse registry metadata {self.metadata_file}: {e}"
            ) from e
        except OSError as e:
            raise RegistryError(
                f"failed to read registry metadata {self.metadata_file}: {e}"
            ) from e

        try:
            return RegistryMetadata.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RegistryError(
                f"malformed registry metadata {self.metadata_file}: {e}"
            ) from e

    def save(self, metadata: RegistryMetadata) -> None:
        """Serialize ``metadata`` to a temp file and swap it into place."""
        text = dumps(metadata)
        directory = self.metadata_file.parent
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=directory,
                prefix=f".{self.metadata_file.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as f:
                temp_path = Path(f.name)
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.metadata_file)
            temp_path = None
        except OSError as e:
            raise RegistryError(
                f"failed to write registry metadata {self.metadata_file}: {e}"
            ) from e
        finally:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
        logger.debug(
            f"Wrote {len(metadata.templates)} template(s) to {self.metadata_file}"
        )

    @contextmanager
    def locked(self) -> Iterator[RegistryMetadata]:
        """Hold the registry lock and yield freshly loaded metadata.

        Callers persist their changes with ``save`` before leaving the block.
        """
        lock = FileLock(str(self.lock_file), timeout=LOCK_TIMEOUT)
        try:
            lock.acquire()
        except Timeout as e:
            raise RegistryError(
                f"timed out waiting for the registry lock {self.lock_file}"
            ) from e
        try:
            yield self.load()
        finally:
            lock.release()


def dumps(metadata: RegistryMetadata) -> str:
    doc = tomlkit.document()
    doc["updated"] = metadata.updated
    templates = tomlkit.table()
    for name in sorted(metadata.templates):
        table = tomlkit.table()
        for key, value in metadata.templates[name].to_dict().items():
            table[key] = value
        templates[name] = table
    doc["templates"] = templates
    return tomlkit.dumps(doc)
