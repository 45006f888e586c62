# Rich console output: render an AnalysisResult for the terminal.

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from solsentry.findings.models import AnalysisResult, FileAnalysisResult, Issue, RuleMetadata, Severity
from solsentry.rules.base import Rule

# Severity -> Rich style
SEVERITY_STYLE = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "bold yellow",
    Severity.INFO: "bold blue",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: Severity) -> str:
    return SEVERITY_STYLE.get(severity, DEFAULT_SEVERITY_STYLE)


def _shorten_path(path: str, base: Optional[Path] = None) -> str:
    """Path relative to base when possible, with forward slashes."""
    if base is not None:
        try:
            return Path(path).resolve().relative_to(base.resolve()).as_posix()
        except ValueError:
            pass
    return str(path).replace("\\", "/")


def print_result(
    result: AnalysisResult,
    rules: Mapping[str, RuleMetadata] | None = None,
    verbose: bool = False,
    base_path: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Print issues grouped by file, colored by severity, then a summary.

    With verbose, each rule seen in a file gets its recommendation printed
    (looked up in `rules`, id -> metadata) and clean files are listed too.
    """
    console = console or Console()
    rules = rules or {}

    if not result.files:
        console.print(Panel("[yellow]No Solidity files analyzed.[/yellow]", title="SolSentry", box=box.ROUNDED))
        return

    for file_result in result.files:
        if not file_result.issues and not file_result.parse_errors and not file_result.rule_failures:
            continue
        _print_file(file_result, rules, verbose, base_path, console)

    if verbose:
        _print_file_summary_table(result.files, base_path, console)

    _print_summary(result, console)


def _print_file(
    file_result: FileAnalysisResult,
    rules: Mapping[str, RuleMetadata],
    verbose: bool,
    base_path: Optional[Path],
    console: Console,
) -> None:
    console.print()
    console.print(Panel(
        f"[bold cyan]{escape(_shorten_path(file_result.file_path, base_path))}[/bold cyan]",
        box=box.SIMPLE_HEAD,
        border_style="blue",
        padding=(0, 1),
    ))

    for error in file_result.parse_errors:
        console.print(f"  [bold red]PARSE ERROR[/bold red] {error.line}:{error.column} {escape(error.message)}")
    for failure in file_result.rule_failures:
        tag = "[" + failure.rule_id + "]"
        console.print(f"  [bold magenta]RULE FAILED[/bold magenta] {escape(tag)} {escape(failure.message)}")

    issues = sorted(file_result.issues, key=lambda i: (i.location.start.line, i.location.start.column))
    if not issues:
        return

    table = Table(
        show_header=True,
        header_style="bold magenta",
        box=box.SIMPLE,
        padding=(0, 1),
        expand=False,
    )
    table.add_column("Line", justify="right", style="dim", width=5)
    table.add_column("Col", justify="right", style="dim", width=4)
    table.add_column("Severity", width=8)
    table.add_column("Rule", width=34)
    table.add_column("Message", style="white")

    for issue in issues:
        start = issue.location.start
        table.add_row(
            str(start.line),
            str(start.column),
            Text(issue.severity.value.upper(), style=_severity_style(issue.severity)),
            Text(issue.rule_id, style="dim"),
            _message_text(issue),
        )
    console.print(table)

    if verbose:
        seen_rules: set[str] = set()
        for issue in issues:
            if issue.rule_id in seen_rules:
                continue
            seen_rules.add(issue.rule_id)
            meta = rules.get(issue.rule_id)
            if meta is not None:
                tag = "[" + issue.rule_id + "]"
                console.print(f"  [dim][Fix][/dim] {escape(tag)} {escape(meta.recommendation)}")
        console.print()


def _message_text(issue: Issue) -> str:
    if issue.metadata is not None and issue.metadata.suggestion:
        return f"{escape(issue.message)}\n[dim]{escape(issue.metadata.suggestion)}[/dim]"
    return escape(issue.message)


def _print_file_summary_table(
    files: Sequence[FileAnalysisResult],
    base_path: Optional[Path],
    console: Console,
) -> None:
    """Print a table of clean vs flagged files."""
    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=12)
    table.add_column("Issues", justify="right", width=8)

    for file_result in sorted(files, key=lambda f: (not f.issues and not f.parse_errors, f.file_path)):
        if file_result.parse_errors:
            status = Text("PARSE ERROR", style="bold red")
        elif file_result.issues:
            status = Text("ISSUES", style="bold yellow")
        else:
            status = Text("OK", style="bold green")
        table.add_row(_shorten_path(file_result.file_path, base_path), status, str(len(file_result.issues)))

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(result: AnalysisResult, console: Console) -> None:
    """Print a compact summary of the run."""
    summary = result.summary
    total = result.total_issues
    parts = [f"[bold]{total} issue{'s' if total != 1 else ''}[/bold]"]
    for severity, count in (
        (Severity.ERROR, summary.errors),
        (Severity.WARNING, summary.warnings),
        (Severity.INFO, summary.info),
    ):
        if count:
            parts.append(f"[{_severity_style(severity)}]{count} {severity.value}[/]")

    parse_failures = sum(1 for f in result.files if f.parse_errors)
    if parse_failures:
        parts.append(f"[bold red]{parse_failures} file(s) failed to parse[/]")
    parts.append(f"[dim]{len(result.files)} file(s) in {result.duration:.0f} ms[/dim]")

    clean = total == 0 and not parse_failures
    console.print()
    console.print(
        Panel(
            " | ".join(parts),
            title="Summary",
            border_style="green" if clean else "yellow",
            box=box.ROUNDED,
        )
    )


def print_rules(rules: Sequence[Rule], console: Optional[Console] = None) -> None:
    """Table of rule id, category, default severity and title."""
    console = console or Console()
    table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED, padding=(0, 1))
    table.add_column("Rule")
    table.add_column("Category", width=9)
    table.add_column("Severity", width=8)
    table.add_column("Title", style="white")

    for rule in rules:
        meta = rule.metadata
        table.add_row(
            meta.id,
            meta.category.value,
            Text(meta.severity.value, style=_severity_style(meta.severity)),
            meta.title,
        )
    console.print(table)
    console.print(f"[dim]{len(rules)} rule(s)[/dim]")
