# Naming conventions from the Solidity style guide.

from __future__ import annotations

import re

from solsentry.analysis.expressions import contracts, iter_functions
from solsentry.analysis.state import is_constant_declaration
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

_PASCAL_CASE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_MIXED_CASE = re.compile(r"^_?[a-z][A-Za-z0-9]*$")


def is_pascal_case(name: str) -> bool:
    return bool(_PASCAL_CASE.match(name))


def is_mixed_case(name: str) -> bool:
    """mixedCase with at most one leading underscore (private/internal convention)."""
    return bool(_MIXED_CASE.match(name))


class ContractNameCamelCaseRule(Rule):
    metadata = RuleMetadata(
        id="lint/contract-name-camelcase",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Contract Name CamelCase",
        description="Contract, library and interface names should be CapWords (PascalCase).",
        recommendation="Rename, e.g. MyToken instead of my_token.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            name = contract.name
            if isinstance(name, str) and name and not is_pascal_case(name):
                kind = contract.get("kind", "contract")
                self.report(context, contract, f"{kind.capitalize()} name '{name}' should be in CapWords (PascalCase).")


class FunctionNameMixedcaseRule(Rule):
    metadata = RuleMetadata(
        id="lint/function-name-mixedcase",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Function Name mixedCase",
        description="Function names should be mixedCase.",
        recommendation="Rename, e.g. getBalance instead of GetBalance or get_balance.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for function in iter_functions(context.ast):
            name = function.name
            if not isinstance(name, str) or not name or function.get("isConstructor", False):
                continue
            if name in ("fallback", "receive"):
                continue
            if not is_mixed_case(name):
                self.report(context, function, f"Function name '{name}' should be in mixedCase.")


class VarNameMixedcaseRule(Rule):
    """Variables should be mixedCase; constants and immutables are exempt (UPPER_CASE)."""

    metadata = RuleMetadata(
        id="lint/var-name-mixedcase",
        category=Category.LINT,
        severity=Severity.WARNING,
        title="Variable Name mixedCase",
        description="Variable names should start lowercase and use mixedCase; a single leading underscore is allowed.",
        recommendation="Rename, e.g. totalSupply instead of Total_Supply.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "VariableDeclaration":
                continue
            name = node.name
            if not isinstance(name, str) or not name or is_constant_declaration(node):
                continue
            if not is_mixed_case(name):
                self.report(context, node, f"Variable name '{name}' should be in mixedCase.")
