"""
Checked-call tracking for calls whose boolean result must be tested.

Two passes over one function body:

1. Mark. A matching call's (line, column) is marked "checked" when it is the
   first argument of require/assert, the condition of an if or a ternary, the
   expression of a return, or the initial value of a variable declaration (or
   the right side of a plain assignment). Marking recurses through unary and
   binary operand positions, so `require(!ok || a.send(1))` checks the send.
2. Report. Every matching call whose key was not marked is unchecked, once per
   (line, column).

With strict_initializers, storing the result is not enough: the call counts
as checked only when one of the variables it was stored into is later tested
by require/assert/if/ternary.
"""

from __future__ import annotations

from typing import Callable, Optional

from solsentry.analysis.expressions import declared_variables, is_call_to
from solsentry.nodes import ASTNode
from solsentry.walker import iter_nodes

CallPredicate = Callable[[ASTNode], bool]
LocationKey = tuple[int, int]


def location_key(node: ASTNode) -> Optional[LocationKey]:
    if node.loc is None:
        return None
    return node.loc.start.line, node.loc.start.column


def _operands(node: ASTNode) -> list[ASTNode]:
    if node.type == "UnaryOperation":
        return [node.subExpression] if node.subExpression is not None else []
    if node.type == "BinaryOperation":
        return [n for n in (node.left, node.right) if n is not None]
    if node.type == "TupleExpression":
        return [c for c in node.get("components", ()) if c is not None]
    return []


def _tested_names(node: Optional[ASTNode], out: set[str]) -> None:
    if node is None:
        return
    if node.type == "Identifier":
        out.add(node.name)
        return
    for operand in _operands(node):
        _tested_names(operand, out)


def _assigned_names(node: Optional[ASTNode]) -> list[str]:
    if node is None:
        return []
    if node.type == "Identifier":
        return [node.name]
    if node.type == "TupleExpression":
        return [c.name for c in node.get("components", ()) if c is not None and c.type == "Identifier"]
    return []


class CheckedCallTracker:
    """Finds calls matching is_target whose result is never checked in one function body."""

    def __init__(self, is_target: CallPredicate, strict_initializers: bool = False) -> None:
        self.is_target = is_target
        self.strict_initializers = strict_initializers
        self.checked: set[LocationKey] = set()
        self.tested: set[str] = set()
        self._stored: list[tuple[list[str], ASTNode]] = []

    def _mark(self, node: Optional[ASTNode]) -> None:
        if node is None:
            return
        if node.type == "FunctionCall" and self.is_target(node):
            key = location_key(node)
            if key is not None:
                self.checked.add(key)
        for operand in _operands(node):
            self._mark(operand)

    def _test(self, node: Optional[ASTNode]) -> None:
        self._mark(node)
        _tested_names(node, self.tested)

    def _store(self, names: list[str], value: Optional[ASTNode]) -> None:
        if value is None:
            return
        if self.strict_initializers:
            self._stored.append((names, value))
        else:
            self._mark(value)

    def mark_checked(self, body: Optional[ASTNode]) -> None:
        """First pass: collect checked call locations (and tested variable names)."""
        self.checked = set()
        self.tested = set()
        self._stored = []

        for node in iter_nodes(body):
            if node.type == "FunctionCall" and is_call_to(node, "require", "assert"):
                args = node.get("arguments", ())
                if args:
                    self._test(args[0])
            elif node.type in ("IfStatement", "Conditional"):
                self._test(node.condition)
            elif node.type == "ReturnStatement":
                self._mark(node.expression)
            elif node.type == "VariableDeclarationStatement":
                names = [v.name for v in declared_variables(node) if isinstance(v.name, str)]
                self._store(names, node.initialValue)
            elif node.type == "BinaryOperation" and node.operator == "=":
                self._store(_assigned_names(node.left), node.right)

        for names, value in self._stored:
            if any(name in self.tested for name in names):
                self._mark(value)

    def unchecked(self, body: Optional[ASTNode]) -> list[ASTNode]:
        """Both passes; the unchecked calls in source order, one per location."""
        self.mark_checked(body)
        seen: set[LocationKey] = set()
        result: list[ASTNode] = []
        for node in iter_nodes(body):
            if node.type != "FunctionCall" or not self.is_target(node):
                continue
            key = location_key(node)
            if key is None or key in self.checked or key in seen:
                continue
            seen.add(key)
            result.append(node)
        return result
