from __future__ import annotations

import tomllib
from pathlib import Path

import pytest
from filelock import FileLock

from ason.errors import (
    InvalidSourceError,
    InvalidTemplateNameError,
    NotFoundError,
    RegistryError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from ason.registry import Registry, RegistryMetadata, TemplateEntry
import ason.registry.registry as registry_mod
import ason.registry.storage as storage_mod


def tree_bytes(root: Path) -> dict:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def test_new_registry_creates_layout(ason_home: Path) -> None:
    Registry()
    Registry()
    assert (ason_home / "templates").is_dir()


def test_list_empty(registry: Registry) -> None:
    assert registry.list() == []


def test_add_then_get(registry: Registry, template_dir: Path) -> None:
    entry = registry.add("t1", template_dir, description="demo")

    path = registry.get("t1")
    assert path != template_dir
    assert path.parent == registry.templates_dir
    assert path.is_dir()
    assert entry.description == "demo"
    assert entry.source == str(template_dir.resolve())

    entries = registry.list()
    assert [e.name for e in entries] == ["t1"]
    # README.md, .gitignore, logo.png and {{ proj }}/main.py
    assert entries[0].files == 4
    assert entries[0].size == sum(len(b) for b in tree_bytes(path).values())


def test_add_skips_hidden_entries(registry: Registry, template_dir: Path) -> None:
    path = registry.get_entry(registry.add("t1", template_dir).name).path
    copied = set(tree_bytes(Path(path)))
    assert ".gitignore" in copied
    assert ".secret" not in copied
    assert not any(name.startswith(".git/") for name in copied)


def test_metadata_file_round_trips(registry: Registry, template_dir: Path, ason_home: Path) -> None:
    registry.add("t1", template_dir, template_type="python")
    with open(ason_home / "registry.toml", "rb") as f:
        data = tomllib.load(f)

    assert "updated" in data
    table = data["templates"]["t1"]
    assert table["name"] == "t1"
    assert table["type"] == "python"
    assert table["files"] == 4
    metadata = RegistryMetadata.from_dict(data)
    assert metadata.templates["t1"].added.tzinfo is not None


def test_add_uses_template_config(registry: Registry, template_dir: Path) -> None:
    (template_dir / "ason.toml").write_text(
        """
name = "svc"
description = "From config"
type = "service"

[[variables]]
name = "proj"
required = true

[[variables]]
name = "greeting"
default = "hello"
""".lstrip()
    )

    entry = registry.add("svc", template_dir)
    assert entry.description == "From config"
    assert entry.type == "service"
    assert entry.variables == ["proj", "greeting"]

    explicit = registry.add("svc2", template_dir, description="mine", template_type="lib")
    assert explicit.description == "mine"
    assert explicit.type == "lib"


def test_add_ignores_broken_config(registry: Registry, template_dir: Path) -> None:
    (template_dir / "ason.toml").write_text("this is [not valid")
    entry = registry.add("t1", template_dir)
    assert entry.variables == []


def test_add_existing_name_fails_and_keeps_original(
    registry: Registry, template_dir: Path, tmp_path: Path
) -> None:
    other = tmp_path / "other"
    other.mkdir()
    (other / "only.txt").write_text("B")

    registry.add("t1", template_dir)
    with pytest.raises(TemplateExistsError, match="already exists"):
        registry.add("t1", other)

    assert "README.md" in tree_bytes(registry.get("t1"))


def test_replace_points_at_fresh_copy(
    registry: Registry, template_dir: Path, tmp_path: Path
) -> None:
    other = tmp_path / "other"
    other.mkdir()
    (other / "only.txt").write_text("B")

    registry.add("t1", template_dir)
    entry = registry.replace("t1", other)

    assert tree_bytes(registry.get("t1")) == {"only.txt": b"B"}
    assert entry.files == 1
    assert len(registry.list()) == 1


def test_add_missing_or_file_source(registry: Registry, tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        registry.add("t1", tmp_path / "missing")
    a_file = tmp_path / "file.txt"
    a_file.write_text("x")
    with pytest.raises(InvalidSourceError):
        registry.add("t1", a_file)


@pytest.mark.parametrize("name", ["", "a/b", "..", ".", ".hidden", "a\\b"])
def test_invalid_names(registry: Registry, template_dir: Path, name: str) -> None:
    with pytest.raises(InvalidTemplateNameError):
        registry.add(name, template_dir)


def test_failed_add_leaves_nothing_behind(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    def broken_stats(root: Path):
        raise OSError("disk on fire")

    monkeypatch.setattr(registry_mod, "tree_stats", broken_stats)
    with pytest.raises(RegistryError):
        registry.add("t1", template_dir)

    assert list(registry.templates_dir.iterdir()) == []
    assert registry.list() == []


def test_failed_metadata_write_rolls_back_add(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    def broken_save(metadata):
        raise RegistryError("cannot write")

    monkeypatch.setattr(registry._store, "save", broken_save)
    with pytest.raises(RegistryError):
        registry.add("t1", template_dir)

    assert list(registry.templates_dir.iterdir()) == []


def test_remove_deletes_copy(registry: Registry, template_dir: Path) -> None:
    registry.add("t1", template_dir)
    path = registry.get("t1")

    assert registry.remove("t1") is None
    assert not path.exists()
    with pytest.raises(TemplateNotFoundError):
        registry.get("t1")
    assert list(registry.templates_dir.iterdir()) == []


def test_remove_with_backup(registry: Registry, template_dir: Path, tmp_path: Path) -> None:
    registry.add("t1", template_dir)
    original = tree_bytes(registry.get("t1"))
    backups = tmp_path / "backups"

    backup_path = registry.remove("t1", backup=True, backup_dir=backups)

    assert backup_path is not None
    assert backup_path.parent == backups
    assert backup_path.name.startswith("t1-")
    assert tree_bytes(backup_path) == original


def test_backup_defaults_to_registry_dir(registry: Registry, template_dir: Path, ason_home: Path) -> None:
    registry.add("t1", template_dir)
    backup_path = registry.remove("t1", backup=True)
    assert backup_path is not None
    assert backup_path.parent == ason_home.resolve() / "backups"


def test_backup_name_collision(
    registry: Registry, template_dir: Path, tmp_path: Path
) -> None:
    backups = tmp_path / "backups"
    registry.add("t1", template_dir)
    first = registry.remove("t1", backup=True, backup_dir=backups)
    registry.add("t1", template_dir)
    second = registry.remove("t1", backup=True, backup_dir=backups)
    assert first != second
    assert first.exists() and second.exists()


def test_remove_missing(registry: Registry) -> None:
    with pytest.raises(TemplateNotFoundError):
        registry.remove("nope")


def test_failed_metadata_write_restores_tree(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    registry.add("t1", template_dir)
    path = registry.get("t1")

    def broken_save(metadata):
        raise RegistryError("cannot write")

    monkeypatch.setattr(registry._store, "save", broken_save)
    with pytest.raises(RegistryError):
        registry.remove("t1")

    assert path.is_dir()
    assert registry.get("t1") == path


def test_entry_outside_templates_dir_is_refused(
    registry: Registry, template_dir: Path, tmp_path: Path
) -> None:
    registry.add("t1", template_dir)
    victim = tmp_path / "victim"
    victim.mkdir()
    with registry._store.locked() as metadata:
        metadata.templates["t1"].path = str(victim)
        registry._store.save(metadata)

    with pytest.raises(RegistryError):
        registry.remove("t1")
    assert victim.is_dir()


def test_entry_serialisation() -> None:
    entry = TemplateEntry(name="a", path="/x/a", variables=["v"])
    again = TemplateEntry.from_dict(entry.to_dict())
    assert again == entry
    assert entry.to_json_dict()["added"] == entry.added.isoformat()


def test_add_times_out_while_lock_is_held(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    monkeypatch.setattr(storage_mod, "LOCK_TIMEOUT", 0.1)
    with FileLock(str(registry.settings.lock_file)):
        with pytest.raises(RegistryError, match="lock"):
            registry.add("t1", template_dir)

    assert registry.list() == []
    assert list(registry.templates_dir.iterdir()) == []


def test_remove_times_out_while_lock_is_held(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    registry.add("t1", template_dir)
    path = registry.get("t1")
    monkeypatch.setattr(storage_mod, "LOCK_TIMEOUT", 0.1)
    with FileLock(str(registry.settings.lock_file)):
        with pytest.raises(RegistryError, match="lock"):
            registry.remove("t1")

    assert [e.name for e in registry.list()] == ["t1"]
    assert path.is_dir()


def test_failed_save_leaves_no_temp_file(
    monkeypatch, registry: Registry, template_dir: Path
) -> None:
    registry.add("t1", template_dir)
    before = registry.settings.metadata_file.read_bytes()
    metadata = registry._store.load()
    metadata.templates.clear()

    def broken_replace(src, dst):
        raise OSError("read-only file system")

    with monkeypatch.context() as m:
        m.setattr(storage_mod.os, "replace", broken_replace)
        with pytest.raises(RegistryError):
            registry._store.save(metadata)

    assert list(registry.root.glob(".registry.toml.*.tmp")) == []
    assert registry.settings.metadata_file.read_bytes() == before
    assert [e.name for e in registry.list()] == ["t1"]
