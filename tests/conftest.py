from __future__ import annotations

from pathlib import Path

import pytest

from ason.config import get_settings
from ason.registry import Registry


@pytest.fixture
def ason_home(monkeypatch, tmp_path: Path) -> Path:
    """Point the registry at an isolated directory for the test."""
    home = tmp_path / "ason-home"
    monkeypatch.setenv("ASON_HOME", str(home))
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture
def registry(ason_home: Path) -> Registry:
    return Registry()


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A small template tree exercising paths, dotfiles and binaries."""
    root = tmp_path / "tmpl-src"
    (root / "{{ proj }}").mkdir(parents=True)
    (root / "{{ proj }}" / "main.py").write_text('print("{{ greeting }}")\n')
    (root / "README.md").write_text("# {{ name }}\n")
    (root / ".gitignore").write_text("*.pyc\n")
    (root / ".secret").write_text("hidden\n")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (root / "logo.png").write_bytes(b"\x89PNG{{ name }}\x00\xff")
    return root
