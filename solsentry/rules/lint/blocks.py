# Block-level structure: empty blocks, function length, cyclomatic complexity.

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import contracts, iter_functions
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import LOOP_KINDS, ASTNode
from solsentry.rules.base import Rule, positive_int_option
from solsentry.rules.lint.visibility import is_fallback
from solsentry.walker import iter_nodes


def _is_empty_block(node: Optional[ASTNode]) -> bool:
    return node is not None and node.type == "Block" and not node.get("statements", ())


class NoEmptyBlocksRule(Rule):
    metadata = RuleMetadata(
        id="lint/no-empty-blocks",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="No Empty Blocks",
        description="Empty blocks are usually unfinished code.",
        recommendation="Implement the block or remove it.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            if not contract.get("subNodes", ()) and contract.get("kind", "contract") == "contract":
                self.report(context, contract, f"Empty contract '{contract.name or '<unnamed>'}'.")

        for node in iter_nodes(context.ast):
            if node.type == "FunctionDefinition":
                if not _is_empty_block(node.body) or is_fallback(node) or node.get("isReceiveEther", False):
                    continue
                # An empty constructor that only calls base constructors is fine.
                if node.get("isConstructor", False) and node.get("modifiers", ()):
                    continue
                label = "constructor" if node.get("isConstructor", False) else f"function '{node.name}'"
                self.report(context, node, f"Empty {label} body.")
            elif node.type == "ModifierDefinition" and _is_empty_block(node.body):
                self.report(context, node, f"Empty modifier '{node.name}'.")
            elif node.type == "IfStatement":
                for branch in (node.trueBody, node.falseBody):
                    if _is_empty_block(branch):
                        self.report(context, branch, "Empty if/else block.")
            elif node.type in LOOP_KINDS and _is_empty_block(node.body):
                self.report(context, node.body, "Empty loop body.")


class FunctionMaxLinesRule(Rule):
    metadata = RuleMetadata(
        id="lint/function-max-lines",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Function Max Lines",
        description="Long functions are hard to read, test and audit.",
        recommendation="Split the function into smaller helpers.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        maximum = positive_int_option(self, self.options(context), "max", 50)
        if maximum is None:
            return
        for function in iter_functions(context.ast):
            if function.loc is None or function.body is None:
                continue
            lines = function.loc.end.line - function.loc.start.line + 1
            if lines > maximum:
                self.report(
                    context,
                    function,
                    f"Function '{function.name or '<unnamed>'}' has {lines} lines (max {maximum}).",
                )


def cyclomatic_complexity(function: ASTNode) -> int:
    """1 + branches (if, loops, ternaries) + short-circuit operators."""
    complexity = 1
    for node in iter_nodes(function.body):
        if node.type == "IfStatement" or node.type in LOOP_KINDS or node.type == "Conditional":
            complexity += 1
        elif node.type == "BinaryOperation" and node.operator in ("&&", "||"):
            complexity += 1
    return complexity


class FunctionComplexityRule(Rule):
    metadata = RuleMetadata(
        id="lint/function-complexity",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Function Complexity",
        description="Functions with many branches are hard to reason about and to test.",
        recommendation="Break the function into smaller pieces.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        maximum = positive_int_option(self, self.options(context), "max", 10)
        if maximum is None:
            return
        for function in iter_functions(context.ast):
            if function.body is None:
                continue
            complexity = cyclomatic_complexity(function)
            if complexity > maximum:
                self.report(
                    context,
                    function,
                    f"Function '{function.name or '<unnamed>'}' has cyclomatic complexity "
                    f"{complexity} (max {maximum}).",
                )
