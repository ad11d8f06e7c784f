from __future__ import annotations

from pathlib import Path

from ason.checks import validate_template


def test_valid_template(template_dir: Path) -> None:
    report = validate_template(template_dir)
    assert report.ok
    assert report.file_count == 4
    assert report.config is None
    assert report.warnings == []


def test_missing_and_non_directory(tmp_path: Path) -> None:
    assert not validate_template(tmp_path / "missing").ok
    a_file = tmp_path / "f.txt"
    a_file.write_text("x")
    report = validate_template(a_file)
    assert not report.ok
    assert "not a directory" in report.errors[0]


def test_empty_template(tmp_path: Path) -> None:
    (tmp_path / "only-dir").mkdir()
    (tmp_path / ".hidden").write_text("x")
    report = validate_template(tmp_path)
    assert not report.ok
    assert report.errors == ["template contains no files"]


def test_syntax_errors_are_reported(tmp_path: Path) -> None:
    (tmp_path / "bad.txt").write_text("{% if %}")
    (tmp_path / "{{ broken").mkdir()
    (tmp_path / "{{ broken" / "ok.txt").write_text("fine")
    report = validate_template(tmp_path)
    assert not report.ok
    assert any(e.startswith("bad.txt:") for e in report.errors)
    assert any(e.startswith("{{ broken:") for e in report.errors)


def test_binary_files_are_not_parsed(tmp_path: Path) -> None:
    (tmp_path / "image.png").write_bytes(b"{% if %}\xff\xfe")
    assert validate_template(tmp_path).ok


def test_config_errors_and_warnings(tmp_path: Path) -> None:
    (tmp_path / "README.md").write_text("hi")
    (tmp_path / "ason.toml").write_text(
        """
version = "not-a-version"

[[variables]]
name = "tier"
options = ["gold", "silver"]
default = "bronze"

[[variables]]
name = "tier"
""".lstrip()
    )
    report = validate_template(tmp_path)
    assert report.ok
    assert report.config is not None
    assert len(report.warnings) == 3

    (tmp_path / "ason.toml").write_text("broken = [")
    report = validate_template(tmp_path)
    assert not report.ok
