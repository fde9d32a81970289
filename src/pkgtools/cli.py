"""pkgtools CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from pkgtools import __version__
from pkgtools.build.text_search import BACKENDS

if TYPE_CHECKING:
    from pkgtools.config import Config
    from pkgtools.docs.models import Doc


@click.group()
@click.version_option(version=__version__, prog_name="pkgtools")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """pkgtools - entry-point build order + API doc categorizer."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.CRITICAL
    else:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_project_config(project: Path | None) -> Config:
    from pkgtools.config import ConfigError, load_config

    try:
        return load_config(project or Path.cwd())
    except ConfigError as exc:
        click.echo(f"Error: invalid config.yml: {exc}", err=True)
        sys.exit(1)


@main.command()
@click.argument("package_root", type=click.Path(file_okay=False, path_type=Path))
@click.option("--name", default=None, help="Package name (default: directory name).")
@click.option(
    "--scope",
    default=None,
    help=(
        "Import scope, e.g. '@angular' when entry-points are imported as "
        "'@angular/<name>/...' (default: from config.yml)."
    ),
)
@click.option("--marker", default=None, help="Build descriptor file marking an entry-point.")
@click.option(
    "--exclude", multiple=True, help="Directory that is never an entry-point (repeatable)."
)
@click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default=None,
    help="Import search backend (default: from config.yml or 'auto').",
)
@click.option("--strict", is_flag=True, help="Fail on circular entry-point dependencies.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding config.yml (default: current directory).",
)
def order(
    package_root: Path,
    *,
    name: str | None,
    scope: str | None,
    marker: str | None,
    exclude: tuple[str, ...],
    backend: str | None,
    strict: bool,
    output_json: bool,
    project: Path | None,
) -> None:
    """Print the secondary entry-points of a package in build order."""
    from pkgtools.build.discovery import BuildPackage, PackageNotFoundError
    from pkgtools.build.graph import CycleDetectedError, compute_build_order, format_cycle
    from pkgtools.build.text_search import TextSearchError, create_search

    config = _load_project_config(project).build_order

    package = BuildPackage(
        name=name or package_root.resolve().name,
        root=package_root,
        scope=scope if scope is not None else config.scope,
    )
    search = create_search(
        backend or config.backend,
        include=config.include,
        timeout=config.timeout,
    )

    try:
        result = compute_build_order(
            package,
            search,
            marker=marker or config.marker,
            exclude=exclude or config.exclude,
            strict=strict,
        )
    except (PackageNotFoundError, TextSearchError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except CycleDetectedError as exc:
        for cycle in exc.cycles:
            click.echo(f"  [ERR] Circular dependency: {format_cycle(cycle)}", err=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    for cycle in result.cycles:
        click.echo(f"  [warn] Circular dependency: {format_cycle(cycle)}", err=True)
    if len(result.order) > 1 and result.import_lines == 0:
        click.echo(
            f"  [warn] No imports of '{package.import_name}/...' found; "
            "the order is alphabetical (set --scope if the package is scoped)",
            err=True,
        )

    if output_json:
        data = {
            "package": result.package,
            "order": result.order,
            "dependencies": result.graph.dependencies(),
            "cycles": result.cycles,
        }
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    for entry_point in result.order:
        click.echo(entry_point)


def _print_summary(docs: list[Doc]) -> None:
    from rich.console import Console
    from rich.table import Table

    from pkgtools.docs.models import ClassDoc

    table = Table(title="Class docs")
    table.add_column("class", style="cyan")
    table.add_column("kind")
    table.add_column("methods", justify="right")
    table.add_column("properties", justify="right")
    table.add_column("selectors")
    table.add_column("deprecated")

    for doc in docs:
        if not isinstance(doc, ClassDoc):
            continue
        if doc.is_directive:
            kind = "directive"
        elif doc.is_service:
            kind = "service"
        elif doc.is_ng_module:
            kind = "ngmodule"
        else:
            kind = "class"
        table.add_row(
            doc.name,
            kind,
            str(len(doc.methods)),
            str(len(doc.properties)),
            ", ".join(doc.directive_selectors or []),
            "yes" if doc.is_deprecated else "",
        )

    Console().print(table)


@main.command()
@click.argument("docs_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write categorized docs here instead of stdout.",
)
@click.option("--summary", is_flag=True, help="Print a table of class kinds.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding config.yml (default: current directory).",
)
def categorize(
    docs_json: Path,
    *,
    output: Path | None,
    summary: bool,
    project: Path | None,
) -> None:
    """Add derived flags to parsed API docs (JSON list of doc objects).

    Keys are snake_case (doc_type, return_type, inherited_doc).  Tags may be
    a list of names, a list of {"tag_name": ...} objects or a dgeni tag
    collection {"tags": [{"tagName": ...}]}.  Every input key is written back.
    """
    from pkgtools.docs.categorizer import categorize as run_categorizer
    from pkgtools.docs.models import load_docs

    config = _load_project_config(project).docs

    try:
        data = json.loads(docs_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        click.echo(f"Error: cannot read {docs_json}: {exc}", err=True)
        sys.exit(1)

    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        click.echo("Error: expected a JSON list of doc objects.", err=True)
        sys.exit(1)

    docs = run_categorizer(
        load_docs(data),
        selector_blacklist=config.selector_blacklist,
        selector_exclude=config.selector_exclude,
    )
    text = json.dumps([d.to_dict() for d in docs], ensure_ascii=False, indent=2)

    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote {len(docs)} doc(s) to {output}")
    elif not summary:
        click.echo(text)

    if summary:
        _print_summary(docs)
