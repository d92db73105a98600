"""stylewarden CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from stylewarden import __version__


@click.group()
@click.version_option(version=__version__, prog_name="stylewarden")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """stylewarden - convention rules for syntax trees and compiled metadata."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument(
    "documents",
    nargs=-1,
    type=click.Path(path_type=Path),
)
@click.option(
    "--metadata",
    "metadata_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Metadata graph file; enables the type rules.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Rules file (default: stylewarden.yml in the current directory, if present).",
)
@click.option(
    "--assembly",
    "assemblies",
    multiple=True,
    help="Only check types of this assembly (repeatable).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if violations found.",
)
def lint(
    documents: tuple[Path, ...],
    *,
    metadata_path: Path | None,
    config_path: Path | None,
    assemblies: tuple[str, ...],
    fmt: str | None,
    strict: bool,
) -> None:
    """Check documents and compiled metadata against the configured rules.

    Exit codes: 0 = clean or violations without --strict,
    1 = violations with --strict, 2 = configuration error or missing input.
    """
    from stylewarden.analysis.linter import LintError
    from stylewarden.analysis.linter import format_json as _format_json
    from stylewarden.analysis.linter import format_porcelain as _format_porcelain
    from stylewarden.analysis.linter import format_rich as _format_rich
    from stylewarden.analysis.linter import lint as run_lint

    if config_path is None:
        candidate = Path.cwd() / "stylewarden.yml"
        config_path = candidate if candidate.is_file() else None

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_lint(
            list(documents),
            metadata_path=metadata_path,
            rules_path=config_path,
            assemblies=list(assemblies) or None,
        )
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": _format_rich,
        "json": _format_json,
        "porcelain": _format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if strict and result.violations:
        sys.exit(1)


@main.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Rules file (default: built-in rule set).",
)
def rules(*, config_path: Path | None) -> None:
    """List the configured rules."""
    from rich.console import Console
    from rich.table import Table

    from stylewarden.analysis.rules import (
        LengthRule,
        ReturnTypeShapeRule,
        SetterVisibilityRule,
        default_rules,
        load_rules,
        rule_type,
    )

    if config_path is None:
        configured = default_rules()
    else:
        try:
            configured = load_rules(config_path)
        except FileNotFoundError:
            click.echo(f"Error: rules file not found: {config_path}", err=True)
            sys.exit(2)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(2)

    table = Table(title="stylewarden rules")
    table.add_column("Rule", style="bold", no_wrap=True)
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Parameters")

    for rule in configured:
        if isinstance(rule, LengthRule):
            params = f"{rule.kind.value} > {rule.threshold} lines"
        elif isinstance(rule, (SetterVisibilityRule, ReturnTypeShapeRule)):
            params = f"{rule.base.full_name} ({rule.base.assembly_prefix}*)"
        else:
            params = ""
        severity_style = "red" if rule.severity == "error" else "yellow"
        table.add_row(
            rule.name,
            rule_type(rule),
            f"[{severity_style}]{rule.severity}[/{severity_style}]",
            params,
        )

    Console().print(table)
