# Orchestration: run the rule list over each file and fold the per-file results.

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Sequence

from solsentry.config import ResolvedConfig
from solsentry.context import create_context
from solsentry.errors import AstLoadError
from solsentry.findings.models import AnalysisResult, FileAnalysisResult, ParseError, RuleFailure
from solsentry.nodes import ASTNode
from solsentry.parser import DEFAULT_AST_SUFFIX, ast_path_for, load_ast_file, load_source
from solsentry.rules.base import Rule

logger = logging.getLogger(__name__)

AstLoader = Callable[[Path], ASTNode]
ProgressCallback = Callable[[Path, FileAnalysisResult], None]


def sidecar_ast_loader(suffix: str = DEFAULT_AST_SUFFIX) -> AstLoader:
    """Loader reading Foo.sol's tree from the JSON file the parser step wrote beside it."""

    def load(path: Path) -> ASTNode:
        return load_ast_file(ast_path_for(path, suffix))

    return load


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class AnalysisEngine:
    """
    Runs a fixed list of rules over files.

    Failures stay local: a file without an AST yields a parse error and no
    rules run for it; a rule that raises is recorded as a RuleFailure and
    contributes no issues for that file. Any other fault while handling a file
    is recorded as a parse error for that file. None of these stops the run.
    """

    def __init__(self, rules: Sequence[Rule]) -> None:
        self.rules = list(rules)

    def analyze_source(
        self,
        file_path: str,
        source: str,
        ast: Optional[ASTNode],
        config: ResolvedConfig,
    ) -> FileAnalysisResult:
        """Analyze one already-parsed file. A None ast is reported as a parse failure."""
        start = time.perf_counter()
        context = create_context(file_path, source, ast, config)
        if context is None:
            return FileAnalysisResult(
                file_path=file_path,
                parse_errors=(ParseError(message="No AST available for file"),),
                duration=_elapsed_ms(start),
            )

        failures: list[RuleFailure] = []
        for rule in self.rules:
            if not config.is_enabled(rule.id):
                logger.debug("Skipping disabled rule %s", rule.id)
                continue
            reported_before = len(context.get_issues())
            try:
                rule.analyze(context)
            except Exception as exc:
                logger.exception("Rule %s failed on %s", rule.id, file_path)
                discarded = context.truncate_issues(reported_before)
                if discarded:
                    logger.debug("Discarded %d issue(s) from failed rule %s", len(discarded), rule.id)
                failures.append(RuleFailure(rule_id=rule.id, message=f"{type(exc).__name__}: {exc}"))

        issues = context.get_issues()
        logger.info("%s: %d issue(s)", file_path, len(issues))
        return FileAnalysisResult(
            file_path=file_path,
            issues=tuple(issues),
            rule_failures=tuple(failures),
            duration=_elapsed_ms(start),
        )

    def analyze_file(
        self,
        path: Path,
        config: ResolvedConfig,
        ast_loader: Optional[AstLoader] = None,
    ) -> FileAnalysisResult:
        """Read a .sol file and its AST, then analyze it. Load problems become parse errors."""
        start = time.perf_counter()
        loader = ast_loader or sidecar_ast_loader()
        try:
            source = load_source(path)
            ast = loader(path)
        except AstLoadError as e:
            logger.warning("Parse error in %s: %s", path, e)
            return FileAnalysisResult(
                file_path=str(path),
                parse_errors=(ParseError(message=str(e), line=e.line, column=e.column),),
                duration=_elapsed_ms(start),
            )
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return FileAnalysisResult(
                file_path=str(path),
                parse_errors=(ParseError(message=f"Cannot read file: {e}"),),
                duration=_elapsed_ms(start),
            )
        return self.analyze_source(str(path), source, ast, config)

    def analyze(
        self,
        paths: Sequence[Path],
        config: ResolvedConfig,
        jobs: int = 1,
        on_progress: Optional[ProgressCallback] = None,
        ast_loader: Optional[AstLoader] = None,
    ) -> AnalysisResult:
        """
        Analyze every path and aggregate the results.

        With jobs > 1 files are analyzed on a thread pool; the order of
        `files` in the result always matches `paths`.
        """
        start = time.perf_counter()
        logger.info("Analyzing %d file(s) with %d rule(s)", len(paths), len(self.rules))

        def run(path: Path) -> FileAnalysisResult:
            try:
                return self.analyze_file(path, config, ast_loader)
            except Exception as exc:
                logger.exception("Analysis of %s failed", path)
                return FileAnalysisResult(
                    file_path=str(path),
                    parse_errors=(ParseError(message=f"Analysis failed: {type(exc).__name__}: {exc}"),),
                )

        results: list[FileAnalysisResult] = []
        if jobs <= 1:
            outcomes = map(run, paths)
            for path, result in zip(paths, outcomes):
                results.append(result)
                if on_progress is not None:
                    on_progress(path, result)
        else:
            with ThreadPoolExecutor(max_workers=jobs) as executor:
                for path, result in zip(paths, executor.map(run, paths)):
                    results.append(result)
                    if on_progress is not None:
                        on_progress(path, result)

        return AnalysisResult(files=tuple(results), duration=_elapsed_ms(start))
