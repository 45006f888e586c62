# Per-file analysis context: file path, source text, AST, resolved config, and the
# issue sink that rules report into. One context per file per run.

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from solsentry.findings.models import Issue, Severity, SourceRange
from solsentry.nodes import ASTNode
from solsentry.walker import count_nodes, find_nodes

if TYPE_CHECKING:
    from solsentry.config import ResolvedConfig

logger = logging.getLogger(__name__)


def count_tree_stats(root: ASTNode) -> tuple[int, int]:
    """
    Return (total node count, function definition count) for the tree.

    Useful for logging how much was parsed (nodes and functions).
    """
    functions = find_nodes(root, lambda n: n.type == "FunctionDefinition")
    return count_nodes(root), len(functions)


class AnalysisContext:
    """
    Per-file state for static analysis: path, source text, AST, and config.

    Rules read context.ast / context.source_code and call context.report().
    Issues accumulate in insertion order; nothing is deduplicated here, so two
    rules reporting the same spot both keep their issue.
    """

    def __init__(
        self,
        file_path: str,
        source_code: str,
        ast: ASTNode,
        config: "ResolvedConfig",
    ) -> None:
        self.file_path = file_path
        self.source_code = source_code
        self.ast = ast
        self.config = config
        self.lines = source_code.split("\n")
        self._issues: list[Issue] = []

    def report(self, issue: Issue) -> None:
        """Append an issue, stamping this context's file path when it has none."""
        if issue.file_path is None:
            issue = issue.model_copy(update={"file_path": self.file_path})
        self._issues.append(issue)

    def get_issues(self) -> list[Issue]:
        """Issues reported so far, in insertion order."""
        return list(self._issues)

    def get_line_text(self, line: int) -> str:
        """Raw text of 1-based line `line`; empty string when out of range."""
        if line < 1 or line > len(self.lines):
            return ""
        return self.lines[line - 1]

    def get_source_text(self, location: SourceRange) -> str:
        """Return the source slice covered by location (single- or multi-line)."""
        start, end = location.start, location.end
        if start.line == end.line:
            return self.get_line_text(start.line)[start.column : end.column]

        parts: list[str] = []
        for line_no in range(start.line, end.line + 1):
            text = self.get_line_text(line_no)
            if line_no == start.line:
                parts.append(text[start.column :])
            elif line_no == end.line:
                parts.append(text[: end.column])
            else:
                parts.append(text)
        return "\n".join(parts)

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        return self.config.severity_for(rule_id, default)

    def rule_options(self, rule_id: str) -> dict[str, Any]:
        return self.config.rule_options(rule_id)

    def truncate_issues(self, count: int) -> list[Issue]:
        """Drop issues past the first `count` and return the dropped ones."""
        dropped = self._issues[count:]
        del self._issues[count:]
        return dropped


def create_context(
    file_path: str,
    source_code: str,
    ast: Optional[ASTNode],
    config: "ResolvedConfig",
) -> Optional[AnalysisContext]:
    """
    Build an AnalysisContext for one parsed file.

    Returns None when there is no AST (the file failed to parse); no rules run
    for such a file. Logs node and function counts otherwise.
    """
    if ast is None:
        logger.warning("No AST for %s; skipping analysis", file_path)
        return None

    node_count, func_count = count_tree_stats(ast)
    logger.info("Loaded %s: %d nodes, %d function(s)", file_path, node_count, func_count)
    return AnalysisContext(file_path, source_code, ast, config)
