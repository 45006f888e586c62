# Rules about the execution environment: tx.origin, block values, pragma versions.

from __future__ import annotations

import re
from typing import Optional

from solsentry.analysis.expressions import is_call_to, is_member
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

BLOCK_PROPERTIES = frozenset({"timestamp", "number", "difficulty", "prevrandao", "coinbase", "gaslimit", "basefee"})
HASH_FUNCTIONS = ("keccak256", "sha256", "sha3")

_VERSION = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")
_FLOATING_OPERATORS = ("^", ">", "<")


def _operands(node: ASTNode) -> list[ASTNode]:
    kids: list[Optional[ASTNode]]
    if node.type == "BinaryOperation":
        kids = [node.left, node.right]
    elif node.type == "UnaryOperation":
        kids = [node.subExpression]
    elif node.type == "TupleExpression":
        kids = list(node.get("components", ()))
    elif node.type == "FunctionCall":
        kids = list(node.get("arguments", ()))
    else:
        kids = []
    return [k for k in kids if k is not None]


def is_timestamp(node: Optional[ASTNode]) -> bool:
    """block.timestamp or now, possibly inside arithmetic/parentheses."""
    if node is None:
        return False
    if node.type == "Identifier" and node.name == "now":
        return True
    if is_member(node, "block", "timestamp"):
        return True
    if node.type in ("BinaryOperation", "TupleExpression"):
        return any(is_timestamp(op) for op in _operands(node))
    return False


def contains_block_value(node: Optional[ASTNode]) -> bool:
    """True when node mentions a block property, blockhash(), or now anywhere inside."""
    for inner in iter_nodes(node):
        if inner.type == "Identifier" and inner.name == "now":
            return True
        if inner.type == "MemberAccess" and inner.memberName in BLOCK_PROPERTIES and is_member(
            inner, "block", inner.memberName
        ):
            return True
        if inner.type == "FunctionCall" and is_call_to(inner, "blockhash"):
            return True
    return False


def pragma_versions(value: str) -> list[tuple[int, int, int]]:
    return [(int(a), int(b), int(c or 0)) for a, b, c in _VERSION.findall(value)]


class TxOriginRule(Rule):
    metadata = RuleMetadata(
        id="security/tx-origin",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Use of tx.origin",
        description=(
            "tx.origin is the externally owned account that started the transaction; "
            "using it for authorization lets any contract the owner calls act as them."
        ),
        recommendation="Use msg.sender for authorization.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if is_member(node, "tx", "origin"):
                self.report(
                    context,
                    node,
                    "Avoid tx.origin: it enables phishing through intermediate contracts.",
                    suggestion="Replace tx.origin with msg.sender.",
                )


class TimestampDependenceRule(Rule):
    metadata = RuleMetadata(
        id="security/timestamp-dependence",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Timestamp Dependence",
        description=(
            "Block timestamps can be shifted by block producers; they must not decide "
            "exact equality or feed modulo-based randomness."
        ),
        recommendation="Use range comparisons for time and a proper randomness source.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "Identifier" and node.name == "now":
                self.report(context, node, 'Use of deprecated "now"; use block.timestamp.')
            elif node.type == "BinaryOperation" and node.operator in ("%", "==", "!="):
                if not (is_timestamp(node.left) or is_timestamp(node.right)):
                    continue
                if node.operator == "%":
                    message = "block.timestamp used with modulo; block producers can bias the result."
                else:
                    message = (
                        f"Strict comparison ({node.operator}) with a timestamp; exact block times "
                        "are unreliable."
                    )
                self.report(context, node, message, suggestion="Use >= or <= for time conditions.")


class WeakPrngRule(Rule):
    metadata = RuleMetadata(
        id="security/weak-prng",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Weak Pseudo-Random Number Generation",
        description=(
            "Block properties are public and producer-influenced; using them as a source "
            "of randomness is predictable."
        ),
        recommendation="Use a verifiable randomness oracle or a commit-reveal scheme.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type == "BinaryOperation" and node.operator == "%":
                if contains_block_value(node.left):
                    self.report(context, node, "Weak randomness: block values used in a modulo operation.")
            elif node.type == "FunctionCall" and is_call_to(node, *HASH_FUNCTIONS):
                if any(contains_block_value(arg) for arg in node.get("arguments", ())):
                    self.report(context, node, "Weak randomness: block values hashed as a random seed.")


class FloatingPragmaRule(Rule):
    metadata = RuleMetadata(
        id="security/floating-pragma",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Floating Pragma",
        description="Contracts should be deployed with the compiler version they were tested with.",
        recommendation='Lock the pragma to a fixed version, e.g. "pragma solidity 0.8.19;".',
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "PragmaDirective" or node.name != "solidity":
                continue
            value = str(node.value or "")
            if any(op in value for op in _FLOATING_OPERATORS):
                self.report(context, node, f'Floating pragma "pragma solidity {value}".')


class OutdatedCompilerRule(Rule):
    metadata = RuleMetadata(
        id="security/outdated-compiler",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Outdated Compiler Version",
        description="Old compiler versions carry known bugs fixed in later releases.",
        recommendation="Use Solidity 0.8.18 or later.",
    )

    MIN_VERSION = (0, 8, 18)

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "PragmaDirective" or node.name != "solidity":
                continue
            value = str(node.value or "")
            for version in pragma_versions(value):
                if version < self.MIN_VERSION:
                    self.report(
                        context,
                        node,
                        f'Outdated compiler "pragma solidity {value}": '
                        f"{'.'.join(map(str, version))} is below "
                        f"{'.'.join(map(str, self.MIN_VERSION))}.",
                    )
                    break
