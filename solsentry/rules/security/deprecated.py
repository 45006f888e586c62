# Deprecated constructs and inline assembly.

from __future__ import annotations

from solsentry.analysis.expressions import is_call_to
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes


class AvoidSha3Rule(Rule):
    metadata = RuleMetadata(
        id="security/avoid-sha3",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Deprecated sha3()",
        description="sha3() was removed in Solidity 0.5.0 in favor of keccak256().",
        recommendation="Use keccak256().",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "FunctionCall" and is_call_to(node, "sha3"):
                self.report(context, node, "Deprecated sha3(); use keccak256().", suggestion="keccak256(...)")


class AvoidSuicideRule(Rule):
    metadata = RuleMetadata(
        id="security/avoid-suicide",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Deprecated suicide()",
        description="suicide() was removed in Solidity 0.5.0 in favor of selfdestruct().",
        recommendation="Use selfdestruct(), or better, avoid destroying contracts.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "FunctionCall" and is_call_to(node, "suicide"):
                self.report(context, node, "Deprecated suicide(); use selfdestruct().")


class AvoidThrowRule(Rule):
    metadata = RuleMetadata(
        id="security/avoid-throw",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Deprecated throw",
        description="throw was deprecated in 0.4.13; it consumes all remaining gas.",
        recommendation="Use revert(), require() or custom errors.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "ThrowStatement":
                self.report(context, node, "Deprecated throw statement; use revert() or require().")


class NoInlineAssemblyRule(Rule):
    metadata = RuleMetadata(
        id="security/no-inline-assembly",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Inline Assembly",
        description="Inline assembly bypasses the compiler's type and safety checks.",
        recommendation="Avoid assembly unless necessary, and audit every block that remains.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "InlineAssemblyStatement":
                self.report(context, node, "Inline assembly detected; it bypasses Solidity's safety checks.")
