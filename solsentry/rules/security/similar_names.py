# Similar-name detection within one contract.

from __future__ import annotations

from solsentry.analysis.expressions import contracts, functions_of
from solsentry.analysis.similarity import similar_pairs
from solsentry.analysis.state import state_declarations
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.rules.base import Rule


class SimilarNamesRule(Rule):
    """
    State variable and function names of one contract that are easy to confuse.

    Names are compared as one list: state variables in declaration order, then
    functions. Each similar pair is reported once, at its later member.
    """

    metadata = RuleMetadata(
        id="security/similar-names",
        category=Category.SECURITY,
        severity=Severity.INFO,
        title="Similar Variable Names",
        description=(
            "Detects names that differ only by case or by a single character, which "
            "invites typos that still compile."
        ),
        recommendation="Use clearly distinct names.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            items = [(var.name, var, "state variable") for var in state_declarations(contract)]
            items += [
                (func.name, func, "function")
                for func in functions_of(contract)
                if isinstance(func.name, str) and func.name
            ]
            names = [name for name, _, _ in items]
            for i, j in similar_pairs(names):
                first_name, first, first_kind = items[i]
                second_name, second, second_kind = items[j]
                if first.loc is None:
                    continue
                self.report(
                    context,
                    second,
                    f"{second_kind.capitalize()} '{second_name}' is very similar to "
                    f"{first_kind} '{first_name}'.",
                    suggestion="Consider using more distinct names.",
                )
