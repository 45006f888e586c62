# Bounds-check correlation for state array accesses.

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import contracts, is_call_to, iter_functions, loop_condition
from solsentry.analysis.state import state_arrays
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes


def _access_name(node: Optional[ASTNode]) -> Optional[str]:
    """Identifier name, looking through member accesses (`s.items` -> s)."""
    while node is not None and node.type == "MemberAccess":
        node = node.expression
    if node is not None and node.type == "Identifier":
        return node.name
    return None


def _bounds_pairs(condition: Optional[ASTNode], out: set[tuple[str, str]]) -> None:
    """Collect (array, index) from a top-level `i < arr.length` or `arr.length > i`."""
    if condition is None or condition.type != "BinaryOperation":
        return
    operator = condition.operator
    if operator not in ("<", ">"):
        return
    index_side, length_side = (
        (condition.left, condition.right) if operator == "<" else (condition.right, condition.left)
    )
    if length_side is None or length_side.type != "MemberAccess" or length_side.memberName != "length":
        return
    array = _access_name(length_side.expression)
    index = _access_name(index_side)
    if array and index:
        out.add((array, index))


def checked_pairs(body: Optional[ASTNode]) -> set[tuple[str, str]]:
    """
    Every (array, index) bounds check in the body: require arguments, if
    conditions, and for/while conditions, wherever they appear. A check anywhere in
    the function counts for every access in it.
    """
    pairs: set[tuple[str, str]] = set()
    for node in iter_nodes(body):
        if node.type == "FunctionCall" and is_call_to(node, "require"):
            args = node.get("arguments", ())
            if args:
                _bounds_pairs(args[0], pairs)
        elif node.type == "IfStatement":
            _bounds_pairs(node.condition, pairs)
        elif node.type in ("ForStatement", "WhileStatement"):
            _bounds_pairs(loop_condition(node), pairs)
    return pairs


class ArrayOutOfBoundsRule(Rule):
    metadata = RuleMetadata(
        id="security/array-out-of-bounds",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Array Access Without Bounds Check",
        description=(
            "Detects indexing into state arrays with an index that is never compared "
            "against the array's length in the same function."
        ),
        recommendation="Validate the index first: require(index < array.length).",
    )

    def analyze(self, context: AnalysisContext) -> None:
        arrays: set[str] = set()
        for contract in contracts(context.ast):
            arrays |= state_arrays(contract)
        if not arrays:
            return

        for function in iter_functions(context.ast):
            if function.body is None:
                continue
            checked = checked_pairs(function.body)
            for node in iter_nodes(function.body):
                if node.type != "IndexAccess" or node.index is None:
                    continue
                array = _access_name(node.base)
                if array not in arrays:
                    continue
                index = _access_name(node.index)
                if index is not None and (array, index) in checked:
                    continue
                self.report(
                    context,
                    node,
                    f"Array '{array}' accessed without bounds check.",
                    suggestion=f"Add require(index < {array}.length) before the access.",
                )
