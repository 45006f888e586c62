# General best-practice lint rules.

from __future__ import annotations

import logging
import re
from typing import Optional

from solsentry.analysis.expressions import (
    callee,
    contracts,
    declared_variables,
    is_boolean_literal,
    is_call_to,
    iter_functions,
    parameters,
)
from solsentry.analysis.state import is_constant_declaration
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode, is_contract_like
from solsentry.rules.base import Rule
from solsentry.walker import SKIP, iter_nodes, walk

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_NUMBERS = (0, 1, -1)


def number_value(node: ASTNode) -> Optional[float]:
    """Numeric value of a NumberLiteral, ignoring any sub-denomination."""
    text = str(node.number).replace("_", "").lower()
    try:
        if text.startswith("0x"):
            return float(int(text, 16))
        return float(text)
    except ValueError:
        return None


class MagicNumbersRule(Rule):
    """Number literals outside constant declarations should be named constants."""

    metadata = RuleMetadata(
        id="lint/magic-numbers",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Magic Numbers",
        description="Unexplained numeric literals make code hard to read and to change.",
        recommendation="Move the value into a named constant.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        allowed_option = self.options(context).get("allowedNumbers", DEFAULT_ALLOWED_NUMBERS)
        try:
            allowed = {float(n) for n in allowed_option}
        except (TypeError, ValueError):
            logger.warning("%s: allowedNumbers must be a list of numbers, got %r; rule skipped",
                           self.id, allowed_option)
            return

        found: list[tuple[ASTNode, float]] = []

        def enter(node: ASTNode, parent: Optional[ASTNode]) -> object:
            if node.type == "StateVariableDeclaration" and any(
                is_constant_declaration(v) for v in node.get("variables", ()) if v is not None
            ):
                return SKIP
            if node.type in ("FileLevelConstant", "ArrayTypeName", "PragmaDirective"):
                return SKIP
            if node.type == "NumberLiteral":
                value = number_value(node)
                if value is None:
                    return None
                if parent is not None and parent.type == "UnaryOperation" and parent.operator == "-":
                    value = -value
                found.append((node, value))
            return None

        walk(context.ast, enter=enter)
        for node, value in found:
            if value not in allowed:
                self.report(
                    context,
                    node,
                    f"Magic number {node.number}; use a named constant.",
                    suggestion="Declare it as a constant with a descriptive name.",
                )


class RequireRevertReasonRule(Rule):
    metadata = RuleMetadata(
        id="lint/require-revert-reason",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Require/Revert Reason",
        description="require() and revert() should explain why they fail.",
        recommendation="Add a reason string or use a custom error.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if is_call_to(node, "require") and len(node.get("arguments", ())) < 2:
                self.report(context, node, "require() statement should have an error message.")
            elif is_call_to(node, "revert") and not node.get("arguments", ()):
                self.report(context, node, "revert() statement should have an error message.")


_CONSOLE_IMPORT = re.compile(r"(?:^|/)console2?\.sol$")
_CONSOLE_NAMES = ("console", "console2")


class NoConsoleRule(Rule):
    metadata = RuleMetadata(
        id="lint/no-console",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="No Console",
        description="console.log and its imports are debugging aids that must not ship.",
        recommendation="Remove console imports and calls.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "ImportDirective" and _CONSOLE_IMPORT.search(str(node.path or "")):
                self.report(context, node, f"Console import '{node.path}' should be removed.")
            elif node.type == "FunctionCall":
                expr = callee(node)
                if (
                    expr is not None
                    and expr.type == "MemberAccess"
                    and expr.expression is not None
                    and expr.expression.type == "Identifier"
                    and expr.expression.name in _CONSOLE_NAMES
                ):
                    name = f"{expr.expression.name}.{expr.memberName}"
                    self.report(context, node, f"Console call '{name}' should be removed.")


class BooleanEqualityRule(Rule):
    metadata = RuleMetadata(
        id="lint/boolean-equality",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Boolean Equality",
        description="Comparing against true or false is redundant.",
        recommendation="Use the boolean directly, or negate it with !.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "BinaryOperation" or node.operator not in ("==", "!="):
                continue
            if is_boolean_literal(node.left) or is_boolean_literal(node.right):
                if node.operator == "==":
                    hint = "use the value directly or negate it with !"
                else:
                    hint = "use ! instead of !="
                self.report(context, node, f"Unnecessary comparison with a boolean literal; {hint}.")


class ImportsOnTopRule(Rule):
    metadata = RuleMetadata(
        id="lint/imports-on-top",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Imports On Top",
        description="Imports should come before any contract, interface or library.",
        recommendation="Move the import to the top of the file.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        seen_definition = False
        for child in context.ast.get("children", ()):
            if child is None:
                continue
            if is_contract_like(child):
                seen_definition = True
            elif child.type == "ImportDirective" and seen_definition:
                self.report(
                    context,
                    child,
                    "Import statement should be at the top of the file, before any contract, "
                    "interface or library definition.",
                )


class OneContractPerFileRule(Rule):
    metadata = RuleMetadata(
        id="lint/one-contract-per-file",
        category=Category.LINT,
        severity=Severity.INFO,
        title="One Contract Per File",
        description="Each file should hold a single contract, interface or library.",
        recommendation="Split the definitions into separate files.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        definitions = contracts(context.ast)
        if len(definitions) <= 1:
            return
        names = ", ".join(d.name or "unnamed" for d in definitions)
        self.report(
            context,
            definitions[0],
            f"File contains {len(definitions)} contract/interface/library definitions ({names}).",
            suggestion=f"Split into {len(definitions)} separate files.",
        )


class UnusedVariablesRule(Rule):
    """Parameters and locals that are never read or written. Leading underscore opts out."""

    metadata = RuleMetadata(
        id="lint/unused-variables",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Unused Variables",
        description="Unused parameters and local variables are dead code.",
        recommendation="Remove the variable, or leave the parameter unnamed.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for function in iter_functions(context.ast):
            if function.body is None:
                continue
            used = {
                n.name
                for n in iter_nodes(function.body)
                if n.type == "Identifier" and isinstance(n.name, str)
            }
            # Modifier arguments may read parameters too.
            for modifier in function.get("modifiers", ()):
                used.update(
                    n.name for n in iter_nodes(modifier) if n.type == "Identifier" and isinstance(n.name, str)
                )

            candidates = [("Parameter", p) for p in parameters(function)]
            for node in iter_nodes(function.body):
                if node.type == "VariableDeclarationStatement":
                    candidates.extend(("Local variable", v) for v in declared_variables(node))

            for label, var in candidates:
                name = var.name
                if not isinstance(name, str) or not name or name.startswith("_") or name in used:
                    continue
                self.report(context, var, f"{label} '{name}' is never used.")
