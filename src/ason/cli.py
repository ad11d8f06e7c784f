"""CLI interface for ason - project scaffolding from templates."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
import yaml
from rich.table import Table

from . import __version__
from . import variables
from .checks import ValidationReport, validate_template
from .config import TemplateConfig, find_template_config
from .errors import (
    AsonError,
    ConfigError,
    TemplateExistsError,
    TemplateNotFoundError,
    TemplateValidationError,
)
from .generator import Generator
from .registry import Registry, TemplateEntry, validate_name
from .utils import configure_logging, console, err_console, format_size, format_time

SORT_KEYS = ("name", "date", "size", "type")


class AsonGroup(click.Group):
    """Click group that reports library errors as one red line and exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except AsonError as e:
            err_console.print(f"Error: {e}", style="red")
            ctx.exit(1)


@click.group(cls=AsonGroup)
@click.version_option(__version__, prog_name="ason")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Scaffold projects from reusable templates."""
    configure_logging(verbose)


def _resolve_template(name: str) -> Path:
    """Registry name first, then an existing directory on disk."""
    try:
        return Registry().get(name)
    except TemplateNotFoundError:
        candidate = Path(name).expanduser()
        if candidate.is_dir():
            return candidate
        raise


def _load_config(template_dir: Path) -> Optional[TemplateConfig]:
    try:
        return find_template_config(template_dir)
    except ConfigError as e:
        console.print(f"Ignoring template config: {e}", style="yellow")
        return None


@cli.command("new")
@click.argument("template")
@click.argument("output", required=False, type=click.Path(path_type=Path))
@click.option(
    "-o",
    "--output",
    "output_opt",
    type=click.Path(path_type=Path),
    default=Path("."),
    show_default=True,
    help="Output directory (the OUTPUT argument takes precedence)",
)
@click.option("--var", "var_pairs", multiple=True, metavar="KEY=VALUE", help="Set a variable")
@click.option(
    "-f",
    "--var-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Load variables from a TOML, YAML or JSON file",
)
@click.option("--dry-run", is_flag=True, help="Show what would be generated")
def new_cmd(
    template: str,
    output: Optional[Path],
    output_opt: Path,
    var_pairs: Tuple[str, ...],
    var_file: Optional[Path],
    dry_run: bool,
) -> None:
    """
    Create a new project from a registered template or a template directory.

    Variables are layered: template defaults, then --var-file, then --var.
    """
    output_dir = output or output_opt
    template_dir = _resolve_template(template)
    config = _load_config(template_dir)

    file_vars = variables.load(var_file) if var_file else {}
    cli_vars = variables.parse_cli_vars(var_pairs)
    context = variables.resolve_context(config, file_vars, cli_vars)

    missing = variables.missing_required(config, context)
    if missing:
        console.print(
            f"Missing required variables: {', '.join(missing)} (rendered as empty)",
            style="yellow",
        )

    report = Generator().generate(template_dir, output_dir, context, dry_run=dry_run)

    if dry_run:
        for action in report.actions:
            console.print(f"[DRY RUN] Would {action.describe()}")
        console.print(
            f"[DRY RUN] {len(report.actions)} action(s), nothing written.",
            style="yellow",
        )
        return
    console.print(
        f"✓ Generated {report.file_count} file(s) in {output_dir}", style="green"
    )


@click.command("register")
@click.argument("name")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--description", default="", help="Template description")
@click.option("--type", "template_type", default="", help="Template type")
@click.option("--force", is_flag=True, help="Overwrite an existing template")
@click.option("--validate", "run_validation", is_flag=True, help="Validate before registering")
@click.option("--dry-run", is_flag=True, help="Show what would be registered")
def register_cmd(
    name: str,
    path: Path,
    description: str,
    template_type: str,
    force: bool,
    run_validation: bool,
    dry_run: bool,
) -> None:
    """
    Register a template directory in the local registry under NAME.

    The directory is copied; later edits to PATH do not affect the registry.
    """
    validate_name(name)
    source = path.expanduser().absolute()
    registry = Registry()

    if run_validation:
        report = validate_template(source)
        _print_report(report)
        if not report.ok:
            raise TemplateValidationError(f"template validation failed for {source}")

    exists = registry.exists(name)
    if dry_run:
        console.print(f"[DRY RUN] Would copy {source}")
        console.print(f"[DRY RUN] Would store at {registry.templates_dir / name}")
        if exists:
            verb = "replace" if force else "refuse to overwrite"
            console.print(f"[DRY RUN] Would {verb} existing template '{name}'")
        console.print(f"[DRY RUN] Would register as '{name}'", style="yellow")
        return

    if exists:
        if not force:
            raise TemplateExistsError(name)
        console.print(f"Removing existing template '{name}' for overwrite...")
        entry = registry.replace(name, source, description, template_type)
    else:
        entry = registry.add(name, source, description, template_type)

    console.print(
        f"✓ Template '{entry.name}' registered ({entry.files} files, "
        f"{format_size(entry.size)})",
        style="green",
    )
    console.print(f"Use it with: ason new {entry.name} my-project")


@click.command("remove")
@click.argument("name")
@click.option("--force", is_flag=True, help="Remove without confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be removed")
@click.option("--backup", is_flag=True, help="Back up the template before removing it")
@click.option(
    "--backup-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for backups (defaults to the registry's backups/)",
)
def remove_cmd(
    name: str,
    force: bool,
    dry_run: bool,
    backup: bool,
    backup_dir: Optional[Path],
) -> None:
    """
    Remove a template from the local registry.
    """
    registry = Registry()
    entry = registry.get_entry(name)

    if dry_run:
        console.print(f"[DRY RUN] Would remove template '{name}'")
        console.print(f"[DRY RUN] Would delete {entry.path}")
        console.print(f"[DRY RUN] Size to be freed: {format_size(entry.size)}")
        return

    if not force:
        _print_entry(entry)
        console.print("This action cannot be undone.", style="yellow")
        if not click.confirm(f"Remove template '{name}' from registry?", default=False):
            console.print("Operation cancelled.")
            return

    backup_path = registry.remove(name, backup=backup, backup_dir=backup_dir)
    if backup_path is not None:
        console.print(f"Backup created in: {backup_path}")
    console.print(f"✓ Template '{name}' removed", style="green")


def _print_entry(entry: TemplateEntry) -> None:
    console.print(f"Template: {entry.name}")
    console.print(f"Description: {entry.description or '-'}")
    console.print(f"Size: {format_size(entry.size)}")
    console.print(f"Files: {entry.files}")
    console.print(f"Added: {format_time(entry.added)}")


def _filter_entries(entries: List[TemplateEntry], needle: str) -> List[TemplateEntry]:
    needle = needle.lower()
    return [
        e
        for e in entries
        if needle in e.name.lower()
        or needle in e.description.lower()
        or needle in e.type.lower()
    ]


def _sort_entries(
    entries: List[TemplateEntry], key: str, reverse: bool
) -> List[TemplateEntry]:
    if key == "date":
        return sorted(entries, key=lambda e: e.added, reverse=reverse)
    if key == "size":
        return sorted(entries, key=lambda e: e.size, reverse=reverse)
    if key == "type":
        return sorted(entries, key=lambda e: (e.type, e.name), reverse=reverse)
    return sorted(entries, key=lambda e: e.name, reverse=reverse)


@cli.command("list")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    show_default=True,
)
@click.option("--filter", "needle", default="", help="Match name, description or type")
@click.option("--sort", "sort_key", type=click.Choice(SORT_KEYS), default="name", show_default=True)
@click.option("--reverse", is_flag=True, help="Reverse sort order")
def list_cmd(fmt: str, needle: str, sort_key: str, reverse: bool) -> None:
    """
    List templates in the local registry.
    """
    entries = Registry().list()
    if needle:
        entries = _filter_entries(entries, needle)
    entries = _sort_entries(entries, sort_key, reverse)

    if fmt in ("json", "yaml"):
        payload = {
            "templates": [e.to_json_dict() for e in entries],
            "total": len(entries),
        }
        if fmt == "json":
            click.echo(json.dumps(payload, indent=2))
        else:
            click.echo(yaml.safe_dump(payload, sort_keys=False), nl=False)
        return

    if not entries:
        console.print("No templates registered.", style="yellow")
        console.print("Register one with: ason register my-template /path/to/template")
        return

    table = Table(show_edge=False)
    for column in ("NAME", "DESCRIPTION", "TYPE", "SIZE", "ADDED"):
        table.add_column(column)
    for e in entries:
        desc = e.description or "-"
        if len(desc) > 40:
            desc = desc[:37] + "..."
        table.add_row(e.name, desc, e.type or "-", format_size(e.size), format_time(e.added))
    console.print(table)


def _print_report(report: ValidationReport) -> None:
    console.print(f"Validating template: {report.path}")
    for error in report.errors:
        console.print(f"  ✗ {error}", style="red")
    for warning in report.warnings:
        console.print(f"  ⚠ {warning}", style="yellow")
    if report.ok:
        details = f"{report.file_count} file(s)"
        if report.config is not None:
            details += f", {len(report.config.variables)} variable(s) declared"
        console.print(f"  ✓ Template structure is valid ({details})", style="green")


@cli.command("validate")
@click.argument("path", required=False, type=click.Path(path_type=Path))
def validate_cmd(path: Optional[Path]) -> None:
    """
    Validate a template directory, or every registered template when PATH is omitted.
    """
    if path is not None:
        report = validate_template(path.expanduser())
        _print_report(report)
        if not report.ok:
            sys.exit(1)
        return

    entries = Registry().list()
    if not entries:
        console.print("No templates in registry to validate.", style="yellow")
        return

    failed: List[str] = []
    for i, entry in enumerate(entries, start=1):
        console.print(f"[{i}/{len(entries)}] {entry.name}", style="bold")
        report = validate_template(Path(entry.path))
        _print_report(report)
        if not report.ok:
            failed.append(entry.name)

    console.print(f"Passed: {len(entries) - len(failed)}/{len(entries)}")
    if failed:
        console.print(f"Failed: {', '.join(failed)}", style="red")
        sys.exit(1)


cli.add_command(register_cmd)
cli.add_command(register_cmd, "add")
cli.add_command(remove_cmd)
cli.add_command(remove_cmd, "rm")
cli.add_command(remove_cmd, "delete")


def main() -> None:
    cli()
