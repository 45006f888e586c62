# Loop hazards: calls and msg.value inside loops, unbounded iteration.

from __future__ import annotations

from typing import Callable, Optional

from solsentry.analysis.expressions import is_loop, is_member, is_number_literal, loop_condition, member_call
from solsentry.analysis.ordering import classify_call
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import find_node, iter_nodes, walk

_LOOP_WORDS = {"ForStatement": "for", "WhileStatement": "while", "DoWhileStatement": "do-while"}


def nodes_in_loops(root: Optional[ASTNode], predicate: Callable[[ASTNode], bool]) -> list[ASTNode]:
    """Nodes matching predicate that sit anywhere inside a loop statement, in source order."""
    found: list[ASTNode] = []
    depth = 0

    def enter(node: ASTNode, parent: Optional[ASTNode]) -> None:
        nonlocal depth
        if depth > 0 and predicate(node):
            found.append(node)
        if is_loop(node):
            depth += 1

    def exit(node: ASTNode, parent: Optional[ASTNode]) -> None:
        nonlocal depth
        if is_loop(node):
            depth -= 1

    walk(root, enter=enter, exit=exit)
    return found


class DelegatecallInLoopRule(Rule):
    metadata = RuleMetadata(
        id="security/delegatecall-in-loop",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="delegatecall Inside Loop",
        description=(
            "delegatecall preserves msg.value; inside a loop the same payment is "
            "credited once per iteration."
        ),
        recommendation="Move delegatecall out of loops.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        calls = nodes_in_loops(
            context.ast,
            lambda n: n.type == "FunctionCall" and member_call(n, "delegatecall") is not None,
        )
        for call in calls:
            self.report(context, call, "delegatecall inside a loop.")


class CallsInLoopRule(Rule):
    metadata = RuleMetadata(
        id="security/calls-in-loop",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="External Calls Inside Loop",
        description="One failing or gas-hungry callee inside a loop blocks the whole loop (denial of service).",
        recommendation="Prefer pull-over-push; if a loop is needed, bound it and isolate failures.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        calls = nodes_in_loops(
            context.ast,
            lambda n: n.type == "FunctionCall" and classify_call(n) is not None,
        )
        for call in calls:
            self.report(
                context,
                call,
                "External call inside a loop; a single failure can block every iteration.",
                suggestion="Use the pull-over-push pattern or batch processing.",
            )


class MsgValueLoopRule(Rule):
    metadata = RuleMetadata(
        id="security/msg-value-loop",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="msg.value Inside Loop",
        description="msg.value stays the same across iterations; using it per iteration double-counts the payment.",
        recommendation="Read msg.value once before the loop and account per iteration explicitly.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if not is_loop(node) or node.body is None:
                continue
            if find_node(node.body, lambda n: is_member(n, "msg", "value")) is not None:
                self.report(
                    context,
                    node,
                    f"msg.value used in a {_LOOP_WORDS[node.type]} loop; the same value is reused every iteration.",
                )


def _has_dynamic_length(condition: Optional[ASTNode]) -> bool:
    def is_length(n: ASTNode) -> bool:
        return (
            n.type == "MemberAccess"
            and n.memberName == "length"
            and n.expression is not None
            and n.expression.type in ("Identifier", "IndexAccess", "MemberAccess")
        )

    return find_node(condition, is_length) is not None


def _is_bounded(condition: ASTNode) -> bool:
    if condition.type != "BinaryOperation":
        return False
    if condition.operator in ("&&", "||"):
        return True
    return condition.operator in ("<", "<=", ">", ">=") and (
        is_number_literal(condition.left) or is_number_literal(condition.right)
    )


class CostlyLoopRule(Rule):
    metadata = RuleMetadata(
        id="security/costly-loop",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Costly Loop",
        description="A loop bounded only by a growing array's length can exceed the block gas limit.",
        recommendation="Paginate, cap iterations explicitly, or let users process their own entries.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if not is_loop(node):
                continue
            condition = loop_condition(node)
            if condition is None or not _has_dynamic_length(condition) or _is_bounded(condition):
                continue
            self.report(
                context,
                node,
                f"Costly {_LOOP_WORDS[node.type]} loop over a dynamic array length; it can run out of gas.",
                suggestion="Add an explicit iteration limit or paginate.",
            )
