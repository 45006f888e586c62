# Gas-saving suggestions.

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import (
    assignment_targets,
    is_call_to,
    loop_condition,
    member_call,
    parameters,
    type_name_text,
)
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

MAX_INDEXED = 3
INDEXABLE_TYPES = frozenset({"address", "bytes32", "bool"})


def _is_string_argument(node: Optional[ASTNode]) -> bool:
    if node is None:
        return False
    if node.type == "StringLiteral":
        return True
    # string.concat(...) / abi.encodePacked("...", x) style messages
    return node.type == "FunctionCall" and any(
        a is not None and a.type == "StringLiteral" for a in node.get("arguments", ())
    )


class GasCustomErrorsRule(Rule):
    metadata = RuleMetadata(
        id="lint/gas-custom-errors",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Use Custom Errors",
        description="Reason strings cost deployment size and runtime gas; custom errors are cheaper.",
        recommendation="Declare `error Name(...)` and use `revert Name(...)`.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            args = node.get("arguments", ()) if node.type == "FunctionCall" else ()
            if is_call_to(node, "require") and len(args) >= 2 and _is_string_argument(args[1]):
                self.report(context, node, "require() with a reason string; use a custom error to save gas.")
            elif is_call_to(node, "revert") and args and _is_string_argument(args[0]):
                self.report(context, node, "revert() with a reason string; use a custom error to save gas.")


def _should_index(param: ASTNode) -> bool:
    type_name = param.typeName
    if type_name is None:
        return False
    return type_name_text(type_name) in INDEXABLE_TYPES or type_name.type == "UserDefinedTypeName"


class GasIndexedEventsRule(Rule):
    """Suggest `indexed` for address/bytes32/bool/enum event parameters while slots remain."""

    metadata = RuleMetadata(
        id="lint/gas-indexed-events",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Indexed Event Parameters",
        description="Indexed parameters make events cheaper to filter off-chain.",
        recommendation="Mark the parameter indexed (up to three per event).",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for event in iter_nodes(context.ast):
            if event.type != "EventDefinition":
                continue
            params = parameters(event)
            if sum(1 for p in params if p.get("isIndexed", False)) >= MAX_INDEXED:
                continue
            for param in params:
                if param.get("isIndexed", False) or not _should_index(param):
                    continue
                self.report(
                    context,
                    param,
                    f"Parameter '{param.name or 'parameter'}' ({type_name_text(param.typeName)}) "
                    f"of event '{event.name}' could be indexed.",
                )


_MUTATING_MEMBERS = ("push", "pop")


def _array_name(expr: Optional[ASTNode]) -> Optional[str]:
    """`items` for both items and data.items."""
    if expr is None:
        return None
    if expr.type == "Identifier":
        return expr.name
    if expr.type == "MemberAccess":
        return expr.memberName
    return None


def _modified_in(array: str, body: Optional[ASTNode]) -> bool:
    for node in iter_nodes(body):
        access = member_call(node, *_MUTATING_MEMBERS)
        if access is not None and _array_name(access.expression) == array:
            return True
        if any(_array_name(t) == array for t in assignment_targets(node)):
            return True
        if node.type == "UnaryOperation" and node.operator == "delete" and _array_name(node.subExpression) == array:
            return True
    return False


def _length_arrays(condition: Optional[ASTNode]) -> list[ASTNode]:
    return [
        n for n in iter_nodes(condition)
        if n.type == "MemberAccess" and n.memberName == "length" and n.expression is not None
        and n.expression.type in ("Identifier", "MemberAccess")
    ]


class CacheArrayLengthRule(Rule):
    metadata = RuleMetadata(
        id="lint/cache-array-length",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Cache Array Length",
        description="Reading array.length in a loop condition repeats the read on every iteration.",
        recommendation="Read the length into a local before the loop.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for loop in iter_nodes(context.ast):
            if loop.type not in ("ForStatement", "WhileStatement") or loop.body is None:
                continue
            for length in _length_arrays(loop_condition(loop)):
                name = _array_name(length.expression)
                if _modified_in(name, loop.body):
                    continue
                self.report(
                    context,
                    loop,
                    f"Array length '{name}.length' is read on every iteration; cache it before the loop.",
                    suggestion=f"uint256 len = {name}.length; then loop with i < len.",
                )
