"""CLI entry point for aumos-access-compiler.

Invoked as::

    access-compiler [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_access_compiler.cli.main

Commands
--------
- init      Write a starter permission schema (and optionally a config)
- validate  Load, build and validate a schema without emitting
- compile   Compile a schema to one or more target languages
- show      Print the expanded permission matrix
- check     Look up a single (entity, verb) cell
- targets   List the available emission targets
- version   Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from aumos_access_compiler.errors import (
    AccessCompilerError,
    SchemaSemanticError,
    ValidationFailure,
)
from aumos_access_compiler.schema.model import Schema, split_identifier

console = Console()
err_console = Console(stderr=True)

_DEFAULT_SCHEMA = Path("permissions.yaml")


def _fail(message: str) -> NoReturn:
    err_console.print(message)
    sys.exit(1)


def _report_error(exc: Exception) -> NoReturn:
    """Print a compiler error with its structured detail and exit 1."""
    if isinstance(exc, SchemaSemanticError):
        err_console.print(f"[red]Schema error:[/red] {len(exc.problems)} problem(s)")
        for problem in exc.problems:
            err_console.print(f"  [red]•[/red] {problem}")
    elif isinstance(exc, ValidationFailure):
        err_console.print(f"[red]Validation failed:[/red] {len(exc.report)} violation(s)")
        for violation in exc.report:
            err_console.print(f"  [red]•[/red] {violation}")
    else:
        err_console.print(f"[red]Error:[/red] {exc}")
    sys.exit(1)


def _load_schema(schema_path: str, strict: bool) -> Schema:
    from aumos_access_compiler.schema.loader import SchemaLoader

    try:
        return SchemaLoader(strict=strict).load(Path(schema_path))
    except (AccessCompilerError, FileNotFoundError) as exc:
        _report_error(exc)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-access-compiler")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """Access Compiler CLI: compile permission schemas into lookup tables."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_access_compiler import __version__

    console.print(
        Panel(
            f"[bold]aumos-access-compiler[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Authorization-matrix compiler for multi-language permission tables.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# targets
# ---------------------------------------------------------------------------


@cli.command(name="targets")
def targets_command() -> None:
    """List the available emission targets."""
    from aumos_access_compiler.emitters import default_registry

    table = Table(title="Emission Targets", box=box.SIMPLE)
    table.add_column("Target", style="cyan")
    table.add_column("Extension", style="magenta")
    table.add_column("Lookup table")
    for target in default_registry.list_targets():
        emitter_class = default_registry.get(target)
        table.add_row(target, emitter_class.file_extension, "yes" if emitter_class.emits_table else "no")
    console.print(table)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--template",
    "-t",
    "template_name",
    type=click.Choice(["crud", "prototype", "tenant"]),
    default="prototype",
    show_default=True,
    help="Starter schema template.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=str(_DEFAULT_SCHEMA),
    show_default=True,
    help="Output schema file path.",
)
@click.option(
    "--with-config",
    is_flag=True,
    default=False,
    help="Also write access-compiler.yaml next to the schema.",
)
def init_command(template_name: str, output: str, with_config: bool) -> None:
    """Write a starter permission schema."""
    from aumos_access_compiler.config import DEFAULT_CONFIG_PATH
    from aumos_access_compiler.templates.schema_templates import write_template

    output_path = write_template(template_name, Path(output))
    console.print(f"[green]Initialised[/green] permission schema: [bold]{output_path}[/bold]")
    console.print(f"  Template: [cyan]{template_name}[/cyan]")

    if with_config:
        config_path = output_path.parent / DEFAULT_CONFIG_PATH
        config: dict[str, object] = {
            "schema_path": output_path.name,
            "output_dir": "generated",
            "parallel": False,
            "strict": True,
            "targets": [{"name": "typescript"}, {"name": "python"}, {"name": "go"}],
        }
        with config_path.open("w", encoding="utf-8") as fh:
            yaml.dump(config, fh, default_flow_style=False, sort_keys=False)
        console.print(f"  Config:   [cyan]{config_path}[/cyan]")


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.option(
    "--schema",
    "-s",
    "schema_path",
    default=str(_DEFAULT_SCHEMA),
    show_default=True,
    type=click.Path(),
    help="Path to the permission schema.",
)
@click.option("--strict", is_flag=True, default=False, help="Reject unknown schema keys.")
def validate_command(schema_path: str, strict: bool) -> None:
    """Load, build and validate a schema without emitting anything."""
    from aumos_access_compiler.compiler import AccessCompiler

    schema = _load_schema(schema_path, strict)
    try:
        matrix, report = AccessCompiler().build(schema)
    except AccessCompilerError as exc:
        _report_error(exc)

    if report.is_valid:
        console.print(
            Panel(
                f"[green]VALID[/green]  '{schema.name}'\n"
                f"  Verbs: {len(matrix.verbs)}  "
                f"Resources: {len(matrix.resources())}  "
                f"Entries: {len(matrix)}",
                title="Schema Validation",
                border_style="green",
            )
        )
        return

    console.print(
        Panel(
            f"[red]INVALID[/red]  '{schema.name}': {len(report)} violation(s)",
            title="Schema Validation",
            border_style="red",
        )
    )
    for violation in report:
        console.print(f"  [red]•[/red] {violation}")
    sys.exit(1)


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------


@cli.command(name="compile")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(),
    help="Path to access-compiler.yaml (default: use it if present).",
)
@click.option("--schema", "-s", "schema_path", default=None, type=click.Path(), help="Permission schema (overrides config).")
@click.option(
    "--target",
    "-t",
    "targets",
    multiple=True,
    help="Target to emit; repeatable (overrides config).",
)
@click.option("--output-dir", "-o", default=None, type=click.Path(), help="Output directory (overrides config).")
@click.option("--parallel/--sequential", default=None, help="Render targets on a thread pool.")
@click.option("--verify/--no-verify", default=True, show_default=True, help="Decode outputs and cross-check them.")
@click.option("--stdout", "to_stdout", is_flag=True, default=False, help="Print output instead of writing files.")
def compile_command(
    config_path: str | None,
    schema_path: str | None,
    targets: tuple[str, ...],
    output_dir: str | None,
    parallel: bool | None,
    verify: bool,
    to_stdout: bool,
) -> None:
    """Compile a permission schema to one or more target languages."""
    from aumos_access_compiler.compiler import AccessCompiler
    from aumos_access_compiler.config import DEFAULT_CONFIG_PATH, ConfigLoader
    from aumos_access_compiler.schema.loader import SchemaLoader

    loader = ConfigLoader()
    cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    try:
        if cfg_path.exists():
            config = loader.load(cfg_path)
        elif config_path:
            _fail(f"[red]Config not found:[/red] {cfg_path}")
        else:
            config = loader.defaults()
    except (ValueError, yaml.YAMLError) as exc:
        _fail(f"[red]Invalid config:[/red] {exc}")

    updates: dict[str, object] = {}
    if schema_path:
        updates["schema_path"] = Path(schema_path)
    if output_dir:
        updates["output_dir"] = Path(output_dir)
    if parallel is not None:
        updates["parallel"] = parallel
    config = config.model_copy(update=updates)

    target_names = list(targets) or config.target_names()
    options = config.target_options()

    compiler = AccessCompiler(loader=SchemaLoader(strict=config.strict), parallel=config.parallel)
    try:
        result = compiler.compile_file(config.schema_path, target_names, options)
        if verify:
            compiler.verify(result).raise_if_failed()
    except (AccessCompilerError, FileNotFoundError) as exc:
        _report_error(exc)

    if to_stdout:
        for target, text in result.outputs.items():
            if len(result.outputs) > 1:
                err_console.print(f"[dim]--- {target} ---[/dim]")
            click.echo(text, nl=False)
        return

    try:
        written = result.write(config.output_dir, config.filenames())
    except (OSError, ValueError) as exc:
        _fail(f"[red]Write failed:[/red] {exc}")

    table = Table(title=f"Compiled '{result.schema.name}'", box=box.SIMPLE)
    table.add_column("Target", style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Bytes", justify="right")
    for target, path in zip(result.outputs, written):
        table.add_row(target, str(path), str(len(result.outputs[target].encode("utf-8"))))
    console.print(table)
    console.print(f"  Entries: [cyan]{len(result.matrix)}[/cyan]  Verbs: [cyan]{len(result.matrix.verbs)}[/cyan]")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.option(
    "--schema",
    "-s",
    "schema_path",
    default=str(_DEFAULT_SCHEMA),
    show_default=True,
    type=click.Path(),
    help="Path to the permission schema.",
)
@click.option("--verb", "-v", default=None, help="Only list entities granting this verb.")
def show_command(schema_path: str, verb: str | None) -> None:
    """Print the expanded permission matrix."""
    from aumos_access_compiler.compiler import AccessCompiler

    schema = _load_schema(schema_path, strict=False)
    try:
        matrix, report = AccessCompiler().build(schema)
        report.raise_if_failed()
    except AccessCompilerError as exc:
        _report_error(exc)

    if verb is not None:
        if verb not in matrix.verbs:
            _fail(f"[red]Unknown verb:[/red] {verb}")
        for identifier in matrix.granted(verb):
            console.print(identifier)
        return

    table = Table(title="Permission Matrix", box=box.SIMPLE)
    table.add_column("Entity", style="cyan")
    table.add_column("Domain", style="dim")
    for matrix_verb in matrix.verbs:
        table.add_column(matrix_verb, justify="center")
    for entry in matrix:
        cells = ["[green]✓[/green]" if value else "[red]✗[/red]" for _, value in entry.cells]
        label = f"  {entry.identifier}" if entry.is_field else f"[bold]{entry.identifier}[/bold]"
        table.add_row(label, entry.domain or "", *cells)
    console.print(table)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option(
    "--schema",
    "-s",
    "schema_path",
    default=str(_DEFAULT_SCHEMA),
    show_default=True,
    type=click.Path(),
    help="Path to the permission schema.",
)
@click.option("--entity", "-e", required=True, help="Resource or Resource.field identifier.")
@click.option("--verb", "-v", required=True, help="Permission verb.")
def check_command(schema_path: str, entity: str, verb: str) -> None:
    """Look up whether a verb is required for an entity."""
    from aumos_access_compiler.compiler import AccessCompiler

    schema = _load_schema(schema_path, strict=False)
    try:
        matrix, report = AccessCompiler().build(schema)
        report.raise_if_failed()
    except AccessCompilerError as exc:
        _report_error(exc)

    try:
        resource, field_name = split_identifier(entity)
        required = matrix.requires_permission(entity, verb)
    except ValueError as exc:
        _fail(f"[red]Invalid entity:[/red] {exc}")
    except KeyError:
        _fail(f"[red]No entry for[/red] ({entity}, {verb})")

    status_str = "[green]TRUE[/green]" if required else "[yellow]FALSE[/yellow]"
    console.print(Panel(status_str, title="requiresPermission", border_style="blue"))
    console.print(f"  Resource: [cyan]{resource}[/cyan]")
    if field_name is not None:
        console.print(f"  Field:    [cyan]{field_name}[/cyan]")
    console.print(f"  Verb:     [cyan]{verb}[/cyan]")
    domain = matrix.domain_of(entity)
    if domain:
        console.print(f"  Domain:   [cyan]{domain}[/cyan]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
