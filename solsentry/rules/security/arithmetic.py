# Arithmetic and comparison pitfalls.

from __future__ import annotations

import re
from typing import Optional

from solsentry.analysis.expressions import (
    contracts,
    is_boolean_literal,
    is_member,
    is_number_literal,
    type_name_text,
)
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

MAX_DIGITS = 15
# 2**256 has 78 digits; larger scientific literals cannot fit any uint.
MAX_EXPONENT = 78

_UINT = re.compile(r"^uint(\d*)$")
_ALWAYS_TRUE_SELF = ("==", ">=", "<=")
_ALWAYS_FALSE_SELF = ("!=", ">", "<")
# Mirror of an operator when its operands are swapped.
_FLIPPED = {"<": ">", ">": "<", "<=": ">=", ">=": "<=", "==": "==", "!=": "!="}


def _same_expression(left: Optional[ASTNode], right: Optional[ASTNode]) -> bool:
    if left is None or right is None or left.type != right.type:
        return False
    if left.type == "Identifier":
        return left.name == right.name
    if left.type == "MemberAccess":
        return left.memberName == right.memberName and _same_expression(left.expression, right.expression)
    return False


def literal_value(node: Optional[ASTNode]) -> Optional[int]:
    """Integer value of a plain number literal (no subdenomination), else None."""
    if not is_number_literal(node) or node.subdenomination:
        return None
    text = str(node.number).replace("_", "")
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        if "e" in text.lower():
            mantissa, exponent = text.lower().split("e", 1)
            power = int(exponent)
            if power < 0 or power > MAX_EXPONENT:
                return None
            return int(mantissa) * 10 ** power
        return int(text)
    except ValueError:
        return None


def _uint_bits(type_text: str) -> Optional[int]:
    match = _UINT.match(type_text)
    if match is None:
        return None
    return int(match.group(1) or 256)


def declared_types(scope: ASTNode) -> dict[str, str]:
    """name -> type text for every VariableDeclaration under scope (last one wins)."""
    types: dict[str, str] = {}
    for node in iter_nodes(scope):
        if node.type == "VariableDeclaration" and isinstance(node.name, str):
            types[node.name] = type_name_text(node.typeName)
    return types


class DivideBeforeMultiplyRule(Rule):
    metadata = RuleMetadata(
        id="security/divide-before-multiply",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Divide Before Multiply",
        description="Integer division truncates; multiplying its result loses precision.",
        recommendation="Multiply first, then divide: a * c / b instead of a / b * c.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "BinaryOperation" or node.operator not in ("*", "*="):
                continue
            left = node.left
            while left is not None and left.type == "TupleExpression" and len(left.get("components", ())) == 1:
                left = left.components[0]
            if left is not None and left.type == "BinaryOperation" and left.operator == "/":
                self.report(
                    context,
                    node,
                    "Division before multiplication loses precision.",
                    suggestion="Reorder to multiply first, e.g. a * c / b.",
                )


class TautologyRule(Rule):
    """
    Comparisons whose outcome is fixed: an expression against itself, an
    unsigned value against zero, or a small uint against a literal at or beyond
    its maximum.
    """

    metadata = RuleMetadata(
        id="security/tautology",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Tautological Comparison",
        description="Detects comparisons that are always true or always false.",
        recommendation="Remove the comparison or fix the logic; unsigned values are never negative.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            types = declared_types(contract)
            for node in iter_nodes(contract):
                if node.type != "BinaryOperation" or node.operator not in _FLIPPED:
                    continue
                verdict = self._verdict(node, types)
                if verdict is not None:
                    self.report(
                        context,
                        node,
                        f"Comparison with '{node.operator}' is always {verdict}.",
                        suggestion="Remove or fix the condition.",
                    )

    def _verdict(self, node: ASTNode, types: dict[str, str]) -> Optional[str]:
        operator, left, right = node.operator, node.left, node.right
        if _same_expression(left, right):
            if operator in _ALWAYS_TRUE_SELF:
                return "true"
            if operator in _ALWAYS_FALSE_SELF:
                return "false"
            return None

        # Normalize to `variable <op> literal`.
        if literal_value(left) is not None and literal_value(right) is None:
            left, right, operator = right, left, _FLIPPED[operator]
        value = literal_value(right)
        if value is None or left is None or left.type != "Identifier":
            return None
        bits = _uint_bits(types.get(left.name, ""))
        if bits is None:
            return None

        if value == 0:
            if operator == ">=":
                return "true"
            if operator == "<":
                return "false"
        if bits < 256:
            maximum = 2 ** bits - 1
            if (operator == "<=" and value >= maximum) or (operator == "<" and value > maximum):
                return "true"
            if (operator == ">" and value >= maximum) or (operator == ">=" and value > maximum):
                return "false"
        return None


def _is_balance(node: Optional[ASTNode]) -> bool:
    if node is None:
        return False
    if node.type == "MemberAccess" and node.memberName == "balance":
        return True
    if node.type == "FunctionCall" and node.expression is not None:
        expr = node.expression
        return expr.type == "MemberAccess" and expr.memberName == "balanceOf"
    return False


def _is_timestamp(node: Optional[ASTNode]) -> bool:
    return is_member(node, "block", "timestamp") or (
        node is not None and node.type == "Identifier" and node.name == "now"
    )


class IncorrectEqualityRule(Rule):
    metadata = RuleMetadata(
        id="security/incorrect-equality",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Dangerous Strict Equality",
        description=(
            "Balances can be changed by forced sends and timestamps by block producers; "
            "strict equality on them is fragile."
        ),
        recommendation="Use >=, <=, > or < instead.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "BinaryOperation" or node.operator not in ("==", "!="):
                continue
            if _is_balance(node.left) or _is_balance(node.right):
                what = "balance"
            elif _is_timestamp(node.left) or _is_timestamp(node.right):
                what = "timestamp"
            else:
                continue
            self.report(
                context,
                node,
                f"Strict equality ({node.operator}) on a {what}.",
                suggestion="Use a range comparison instead.",
            )


def _group_digits(digits: str) -> str:
    parts = []
    for end in range(len(digits), 0, -3):
        parts.insert(0, digits[max(0, end - 3):end])
    return "_".join(parts)


class TooManyDigitsRule(Rule):
    metadata = RuleMetadata(
        id="security/too-many-digits",
        category=Category.SECURITY,
        severity=Severity.INFO,
        title="Too Many Digits",
        description="Long literals without separators are hard to read and easy to get wrong.",
        recommendation="Use underscores (1_000_000), scientific notation (1e18) or ether units.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if not is_number_literal(node) or node.subdenomination:
                continue
            text = str(node.number or "")
            lowered = text.lower()
            if "_" in text or lowered.startswith("0x") or "e" in lowered:
                continue
            digits = text.replace(".", "")
            if len(digits) > MAX_DIGITS:
                self.report(
                    context,
                    node,
                    f"Number literal has {len(digits)} digits.",
                    suggestion=f"Write it as {_group_digits(digits)}.",
                )


class BooleanConstantRule(Rule):
    metadata = RuleMetadata(
        id="security/boolean-constant",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Boolean Constant Misuse",
        description="Comparing with true/false, or branching on a literal, hides logic errors.",
        recommendation='Use the boolean directly: "x" instead of "x == true", "!x" instead of "x == false".',
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "BinaryOperation" and node.operator in ("==", "!="):
                literal = node.left if is_boolean_literal(node.left) else node.right
                if not is_boolean_literal(literal):
                    continue
                positive = (node.operator == "==") == bool(literal.value)
                replacement = "expression" if positive else "!expression"
                self.report(
                    context,
                    node,
                    f"Redundant comparison with boolean constant {str(bool(literal.value)).lower()}.",
                    suggestion=f"Replace with {replacement}.",
                )
            elif node.type in ("IfStatement", "WhileStatement") and is_boolean_literal(node.condition):
                self.report(
                    context,
                    node.condition,
                    f"Condition is the constant {str(bool(node.condition.value)).lower()}.",
                )
