"""Structural checks over a template directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from packaging.version import InvalidVersion, Version

from ..config.template_config import TemplateConfig, config_path, load_template_config
from ..engine import check_syntax
from ..errors import AsonError, TemplateSyntaxError
from ..generator.binary import BinaryClassifier
from ..utils.filesystem import iter_template_tree

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    path: Path
    file_count: int = 0
    config: Optional[TemplateConfig] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_template(
    path: Path, binary: Optional[BinaryClassifier] = None
) -> ValidationReport:
    """Check that ``path`` is a usable template.

    - path exists, is a directory and holds at least one visible file
    - ``ason.toml``, when present, parses
    - every path and text file parses as a template
    - a config version that is not PEP 440 is a warning
    - a default outside a variable's declared options is a warning
    """
    path = Path(path)
    report = ValidationReport(path=path)
    if not path.exists():
        report.errors.append(f"path does not exist: {path}")
        return report
    if not path.is_dir():
        report.errors.append(f"path is not a directory: {path}")
        return report

    classifier = binary or BinaryClassifier()
    for entry, is_dir in iter_template_tree(path):
        rel = entry.relative_to(path).as_posix()
        if "{{" in rel:
            _check(report, rel, rel)
        if is_dir:
            continue
        report.file_count += 1
        if classifier.is_binary_path(entry):
            continue
        try:
            text = entry.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            report.warnings.append(
                f"{rel}: not UTF-8 text and not a known binary extension"
            )
            continue
        except OSError as e:
            report.errors.append(f"{rel}: cannot be read: {e}")
            continue
        _check(report, text, rel)

    if report.file_count == 0:
        report.errors.append("template contains no files")

    if config_path(path).is_file():
        try:
            report.config = load_template_config(path)
        except AsonError as e:
            report.errors.append(str(e))
        else:
            _check_config(report, report.config)

    logger.debug(
        f"Validated {path}: {len(report.errors)} error(s), "
        f"{len(report.warnings)} warning(s)"
    )
    return report


def _check(report: ValidationReport, text: str, label: str) -> None:
    try:
        check_syntax(text)
    except TemplateSyntaxError as e:
        report.errors.append(f"{label}: {e}")


def _check_config(report: ValidationReport, config: TemplateConfig) -> None:
    if config.version:
        try:
            Version(config.version)
        except InvalidVersion:
            report.warnings.append(
                f"config version '{config.version}' is not a valid version number"
            )

    seen = set()
    for spec in config.variables:
        if spec.name in seen:
            report.warnings.append(f"variable '{spec.name}' is declared more than once")
        seen.add(spec.name)
        if spec.options and spec.default is not None and str(spec.default) not in spec.options:
            report.warnings.append(
                f"variable '{spec.name}' default '{spec.default}' is not one of its options"
            )
