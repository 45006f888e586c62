"""
Typer CLI entry point.

`solsentry analyze TARGET` finds .sol files (one file, or every file under a
directory), loads the AST the external parser wrote next to each one
(Foo.sol -> Foo.sol.ast.json), runs the enabled rules and prints a report.
The exit code is 1 when any error-severity issue or parse error was found.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.logging import RichHandler

from solsentry.config import ResolvedConfig, get_default_rules, get_enabled_rules
from solsentry.engine import AnalysisEngine, sidecar_ast_loader
from solsentry.errors import ConfigError
from solsentry.findings.models import Category
from solsentry.parser import DEFAULT_AST_SUFFIX
from solsentry.reporting.console import print_result, print_rules
from solsentry.traversal import find_sol_files, is_sol_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="SolSentry - static analysis for Solidity smart contracts.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _collect_sol_files(target: Path) -> List[Path]:
    """
    Resolve a target path into a list of .sol files to analyze.

    - If target is a .sol file, return [target]
    - If target is a directory, use traversal.find_sol_files()
    - Otherwise, exit with an error.
    """
    if target.is_file():
        if not is_sol_file(target):
            raise typer.BadParameter(f"Target file must have .sol extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_sol_files(target)
        if not files:
            logger.warning("No .sol files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _parse_rule_overrides(entries: Optional[List[str]]) -> dict[str, str]:
    """`--rule security/reentrancy=off` style overrides -> {rule id: severity}."""
    overrides: dict[str, str] = {}
    for entry in entries or []:
        rule_id, sep, severity = entry.partition("=")
        if not sep or not rule_id.strip() or not severity.strip():
            raise typer.BadParameter(f"Expected RULE_ID=SEVERITY, got: {entry}", param_hint="--rule")
        overrides[rule_id.strip()] = severity.strip()
    return overrides


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Solidity file or directory to analyze.",
    ),
    ast_suffix: str = typer.Option(
        DEFAULT_AST_SUFFIX, "--ast-suffix", help="Suffix of the AST file written next to each .sol file."
    ),
    category: Optional[Category] = typer.Option(
        None, "--category", "-c", case_sensitive=False, help="Only run rules of this category."
    ),
    rule: Optional[List[str]] = typer.Option(
        None, "--rule", "-r", help="Override a rule's severity, e.g. lint/indent=off. Repeatable."
    ),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Files to analyze in parallel."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging, fix hints and a file summary."),
) -> None:
    """Analyze a single .sol file or all .sol files under a directory."""
    _configure_logging(verbose)

    base_path = target if target.is_dir() else target.parent
    try:
        config = ResolvedConfig(base_path=base_path, rules=_parse_rule_overrides(rule))
    except ConfigError as e:
        raise typer.BadParameter(str(e), param_hint="--rule") from e

    rules = get_enabled_rules(get_default_rules(), config, category)
    if not rules:
        typer.echo("No rules are enabled in the current configuration.")
        raise typer.Exit(code=1)

    files = _collect_sol_files(target)
    engine = AnalysisEngine(rules)
    result = engine.analyze(files, config, jobs=jobs, ast_loader=sidecar_ast_loader(ast_suffix))

    print_result(
        result,
        rules={r.id: r.metadata for r in rules},
        verbose=verbose,
        base_path=base_path,
    )

    if result.summary.errors or result.has_parse_errors:
        raise typer.Exit(code=1)


@app.command("list-rules")
def list_rules(
    category: Optional[Category] = typer.Option(
        None, "--category", "-c", case_sensitive=False, help="Only list rules of this category."
    ),
) -> None:
    """List the built-in rules with their default severity."""
    rules = [r for r in get_default_rules() if category is None or r.metadata.category == category]
    print_rules(rules)


def main() -> None:
    """Entry point for `python -m solsentry.main`."""
    app()


if __name__ == "__main__":
    main()
