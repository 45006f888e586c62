# Visibility and fallback declarations.

from __future__ import annotations

from solsentry.analysis.expressions import contracts, functions_of
from solsentry.analysis.state import state_declarations
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule

# The parser emits "default" when no visibility keyword is written.
_IMPLICIT = (None, "", "default")


def is_fallback(function: ASTNode) -> bool:
    """`fallback()` or the pre-0.6 unnamed `function()`."""
    if function.get("isFallback", False):
        return True
    return (
        not function.name
        and not function.get("isConstructor", False)
        and not function.get("isReceiveEther", False)
    )


class ExplicitVisibilityRule(Rule):
    metadata = RuleMetadata(
        id="lint/explicit-visibility",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Explicit Visibility",
        description="Functions and state variables should declare their visibility explicitly.",
        recommendation="Add public, external, internal or private.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            for var in state_declarations(contract):
                if var.visibility in _IMPLICIT:
                    self.report(
                        context,
                        var,
                        f"State variable '{var.name}' has no explicit visibility.",
                        suggestion="Declare it internal, private or public.",
                    )
            for function in functions_of(contract):
                if function.get("isConstructor", False):
                    continue
                if function.visibility in _IMPLICIT:
                    label = function.name or ("fallback" if is_fallback(function) else "receive")
                    self.report(
                        context,
                        function,
                        f"Function '{label}' has no explicit visibility.",
                        suggestion="Declare it external, public, internal or private.",
                    )


class PayableFallbackRule(Rule):
    metadata = RuleMetadata(
        id="lint/payable-fallback",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Payable Fallback",
        description="A fallback that is not payable rejects plain ether transfers.",
        recommendation="Mark the fallback payable, or add a receive() function, if ether should be accepted.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            for function in functions_of(contract):
                if is_fallback(function) and function.stateMutability != "payable":
                    self.report(context, function, "Fallback function is not payable.")
