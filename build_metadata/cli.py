"""build-metadata CLI.

Commands:
- detect PATH [--all]                         highest-priority type, or every match
- extract PATH [--format json|summary] [--out FILE]
- rules                                       current detection rule table
- extractors                                  registered extractors
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from build_metadata.core import collect_metadata
from build_metadata.detect.base import detect_all_project_types, detect_project_type, get_detection_rules
from build_metadata.exceptions import BuildMetadataError
from build_metadata.extractors.registry import (
    get_all_extractors,
    normalize_project_type_to_language,
    register_default_extractors,
)
from build_metadata.types import MetadataReport
from build_metadata.validator import report_to_dict

app = typer.Typer(add_completion=False, help="Detect project types and extract build metadata")
console = Console()


@app.callback()
def main() -> None:
    register_default_extractors()


@app.command()
def detect(
    path: str = typer.Argument(".", help="Path to a project directory"),
    all_: bool = typer.Option(False, "--all", help="Report every matching type"),
) -> None:
    try:
        found = detect_all_project_types(path) if all_ else [detect_project_type(path)]
    except BuildMetadataError as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from None
    for project_type in found:
        print(project_type)


def _summary(report: MetadataReport) -> Table:
    table = Table(title=f"Build Metadata ({report.project_type})")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("extractor", report.extractor or "-")
    table.add_row("versioning_type", report.versioning_type)
    if report.metadata is not None:
        meta = report.metadata
        for field in ("name", "version", "version_source", "description", "license", "homepage", "repository"):
            value = getattr(meta, field)
            if value:
                table.add_row(field, escape(value))
        if meta.authors:
            table.add_row("authors", escape(", ".join(meta.authors)))
        language = normalize_project_type_to_language(report.project_type)
        for key, value in meta.language_specific.items():
            text = value if isinstance(value, str) else json.dumps(value)
            table.add_row(f"{language}.{key}", escape(text))
    for warning in report.warnings:
        table.add_row("[yellow]warning[/yellow]", escape(warning))
    return table


@app.command()
def extract(
    path: str = typer.Argument(".", help="Path to a project directory"),
    format_: str = typer.Option("json", "--format", help='"json" | "summary"'),
    out: str | None = typer.Option(None, "--out", help="Write the output to a file instead of stdout"),
) -> None:
    if format_ not in {"json", "summary"}:
        rprint(f"[red]unknown format: {escape(format_)}[/red]")
        raise typer.Exit(code=2)

    report = collect_metadata(Path(path))
    if format_ == "summary":
        if out:
            with Path(out).open("w", encoding="utf-8") as fh:
                Console(file=fh, width=120).print(_summary(report))
        else:
            console.print(_summary(report))
    else:
        payload = json.dumps(report_to_dict(report), indent=2)
        if out:
            Path(out).write_text(payload, encoding="utf-8")
        else:
            print(payload)
    if out:
        rprint(f"[green]Metadata written:[/green] {escape(out)}")
    if report.project_type == "unknown":
        raise typer.Exit(code=1)


@app.command()
def rules() -> None:
    table = Table(title="Detection Rules")
    table.add_column("Priority", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Files")
    for rule in sorted(get_detection_rules(), key=lambda r: r.priority):
        table.add_row(str(rule.priority), rule.name, ", ".join(rule.files))
    console.print(table)


@app.command()
def extractors() -> None:
    table = Table(title="Registered Extractors")
    table.add_column("Name", style="cyan")
    table.add_column("Priority", justify="right")
    table.add_column("Class")
    for ext in sorted(get_all_extractors(), key=lambda e: (e.priority, e.name)):
        table.add_row(ext.name, str(ext.priority), type(ext).__name__)
    console.print(table)


if __name__ == "__main__":
    app()
