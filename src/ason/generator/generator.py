"""Tree-walking project generator.

Walks a template directory, renders every relative path and every text file
through the render engine, and materialises the result under an output
directory. In dry-run mode the same walk only reports what it would do.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Literal, Optional

from ..engine import RenderContext, RenderEngine
from ..errors import AsonError, EmptyPathSegmentError, GenerationError, NotFoundError
from ..utils.filesystem import DEFAULT_DIR_MODE, dir_mode, iter_template_tree
from .binary import BinaryClassifier
from .paths import contained_destination

logger = logging.getLogger(__name__)

TEXT_FILE_MODE = 0o644

Action = Literal["create_dir", "render", "copy"]


@dataclass(frozen=True)
class GenerateOptions:
    """Per-run options, passed explicitly instead of living in module state."""

    dry_run: bool = False
    binary: BinaryClassifier = field(default_factory=BinaryClassifier)


@dataclass(frozen=True)
class PlannedAction:
    source: Path
    destination: Path
    action: Action

    def describe(self) -> str:
        if self.action == "create_dir":
            return f"create directory {self.destination}"
        verb = "copy" if self.action == "copy" else "render"
        return f"{verb} {self.source} -> {self.destination}"


@dataclass
class GenerationReport:
    template_root: Path
    output_root: Path
    dry_run: bool
    actions: List[PlannedAction] = field(default_factory=list)

    @property
    def destinations(self) -> List[Path]:
        return [a.destination for a in self.actions]

    @property
    def file_count(self) -> int:
        return sum(1 for a in self.actions if a.action != "create_dir")


class Generator:
    """Materialise a template tree.

    The generator holds no per-run state, so one instance can be reused for
    any number of generations.
    """

    def __init__(
        self,
        engine: Optional[RenderEngine] = None,
        options: Optional[GenerateOptions] = None,
    ) -> None:
        self.engine = engine or RenderEngine()
        self.options = options or GenerateOptions()

    def generate(
        self,
        template_root: Path,
        output_root: Path,
        context: RenderContext,
        options: Optional[GenerateOptions] = None,
        *,
        dry_run: Optional[bool] = None,
    ) -> GenerationReport:
        """Render ``template_root`` into ``output_root``.

        The first failing entry aborts the whole run; files already written
        are left in place.
        """
        opts = options or self.options
        if dry_run is not None:
            opts = replace(opts, dry_run=dry_run)

        template_root = Path(template_root)
        output_root = Path(output_root)
        if not template_root.is_dir():
            raise NotFoundError(f"template directory not found: {template_root}")

        report = GenerationReport(
            template_root=template_root, output_root=output_root, dry_run=opts.dry_run
        )

        if opts.dry_run:
            logger.info(f"Dry run: would generate project at {output_root}")
        else:
            try:
                output_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise GenerationError(
                    f"failed to create output directory {output_root}: {e}"
                ) from e
            logger.info(f"Generating project at {output_root}")

        prune = frozenset({os.path.realpath(output_root)})
        for src_path, is_dir in iter_template_tree(template_root, prune):
            planned = self._plan(template_root, output_root, src_path, is_dir, context, opts)
            report.actions.append(planned)
            if opts.dry_run:
                logger.info(f"[dry run] would {planned.describe()}")
                continue
            try:
                self._apply(planned, context)
            except AsonError:
                raise
            except (OSError, UnicodeDecodeError) as e:
                raise GenerationError(f"failed to process {src_path}: {e}") from e
            logger.info(planned.describe())

        return report

    def _plan(
        self,
        template_root: Path,
        output_root: Path,
        src_path: Path,
        is_dir: bool,
        context: RenderContext,
        opts: GenerateOptions,
    ) -> PlannedAction:
        rel_path = src_path.relative_to(template_root).as_posix()
        try:
            dest_rel = self._render_path(rel_path, context)
        except EmptyPathSegmentError:
            raise
        except AsonError as e:
            raise GenerationError(f"failed to process path {rel_path}: {e}") from e
        destination = contained_destination(output_root, dest_rel)

        if is_dir:
            action: Action = "create_dir"
        elif opts.binary.is_binary_path(src_path):
            action = "copy"
        else:
            action = "render"
        return PlannedAction(source=src_path, destination=destination, action=action)

    def _render_path(self, rel_path: str, context: RenderContext) -> str:
        if "{{" not in rel_path:
            return rel_path
        parts = []
        for segment in rel_path.split("/"):
            if "{{" in segment:
                rendered = self.engine.render(segment, context)
                if not rendered.strip():
                    raise EmptyPathSegmentError(rel_path, segment)
                segment = rendered
            parts.append(segment)
        return "/".join(parts)

    def _apply(self, planned: PlannedAction, context: RenderContext) -> None:
        if planned.action == "create_dir":
            planned.destination.mkdir(
                mode=dir_mode(planned.source), parents=True, exist_ok=True
            )
            return

        planned.destination.parent.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)
        if planned.action == "copy":
            shutil.copyfile(planned.source, planned.destination)
        else:
            with open(
                planned.source, "r", encoding="utf-8", errors="surrogateescape", newline=""
            ) as f:
                text = f.read()
            try:
                rendered = self.engine.render(text, context)
            except AsonError as e:
                raise GenerationError(f"failed to render {planned.source}: {e}") from e
            with open(
                planned.destination, "w", encoding="utf-8", errors="surrogateescape", newline=""
            ) as f:
                f.write(rendered)
        os.chmod(planned.destination, TEXT_FILE_MODE)
