# Ether handling: contract destruction, locked ether, unvalidated recipient addresses.

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import (
    contracts,
    functions_of,
    is_call_to,
    is_view_or_pure,
    is_zero_address,
    member_call,
    modifier_names,
    parameters,
)
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode, contract_kind
from solsentry.rules.base import Rule
from solsentry.walker import find_node, iter_nodes

_ACCESS_MODIFIER_WORDS = ("owner", "admin", "authorized", "auth", "role")


def _dotted(node: Optional[ASTNode]) -> str:
    if node is None:
        return ""
    if node.type == "Identifier":
        return str(node.name)
    if node.type == "MemberAccess":
        return f"{_dotted(node.expression)}.{node.memberName}"
    if node.type == "FunctionCall":
        return _dotted(node.expression) + "()"
    return ""


def _is_owner_comparison(node: Optional[ASTNode]) -> bool:
    """`msg.sender == owner` (either side), also inside && chains."""
    if node is None or node.type != "BinaryOperation":
        return False
    if node.operator == "&&":
        return _is_owner_comparison(node.left) or _is_owner_comparison(node.right)
    if node.operator != "==":
        return False
    left, right = _dotted(node.left).lower(), _dotted(node.right).lower()
    return ("sender" in left and "owner" in right) or ("sender" in right and "owner" in left)


def has_access_control(function: ASTNode) -> bool:
    """Owner-ish modifier, or a require/if comparing msg.sender with an owner."""
    for name in modifier_names(function):
        lowered = name.lower()
        if any(word in lowered for word in _ACCESS_MODIFIER_WORDS):
            return True
    for node in iter_nodes(function.body):
        if node.type == "FunctionCall" and is_call_to(node, "require", "assert"):
            args = node.get("arguments", ())
            if args and _is_owner_comparison(args[0]):
                return True
        elif node.type == "IfStatement" and _is_owner_comparison(node.condition):
            return True
    return False


def _is_destruct(node: ASTNode) -> bool:
    return node.type == "FunctionCall" and is_call_to(node, "selfdestruct", "suicide")


class SelfdestructRule(Rule):
    metadata = RuleMetadata(
        id="security/selfdestruct",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Use of selfdestruct",
        description="selfdestruct permanently removes code and forwards the balance, enabling rug pulls and griefing.",
        recommendation="Remove selfdestruct from production code.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if not _is_destruct(node):
                continue
            name = node.expression.name
            message = "Use of selfdestruct detected; it permanently destroys the contract."
            if name == "suicide":
                message = "Use of deprecated 'suicide' detected; it permanently destroys the contract."
            self.report(context, node, message)


class UnprotectedSelfdestructRule(Rule):
    metadata = RuleMetadata(
        id="security/unprotected-selfdestruct",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Unprotected selfdestruct",
        description="A function that can destroy the contract is callable without access control.",
        recommendation="Restrict the function with onlyOwner or require(msg.sender == owner).",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "FunctionDefinition" or node.body is None:
                continue
            if find_node(node.body, _is_destruct) is None or has_access_control(node):
                continue
            self.report(
                context,
                node,
                f"Function '{node.name or '<unnamed>'}' can selfdestruct the contract without access control.",
                suggestion="Add onlyOwner or require(msg.sender == owner).",
            )


def _accepts_ether(contract: ASTNode) -> bool:
    """receive(), a payable fallback, or any payable function."""
    for function in functions_of(contract):
        if function.get("isReceiveEther", False) or function.stateMutability == "payable":
            return True
    return False


def _sends_ether(node: ASTNode) -> bool:
    if node.type != "FunctionCall":
        return False
    return member_call(node, "transfer", "send", "call") is not None or _is_destruct(node)


class LockedEtherRule(Rule):
    metadata = RuleMetadata(
        id="security/locked-ether",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Locked Ether",
        description="The contract accepts ether but contains no way to send it out.",
        recommendation="Add a withdrawal function with proper access control, or stop accepting ether.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            if contract_kind(contract) in ("interface", "library"):
                continue
            if not _accepts_ether(contract):
                continue
            if find_node(contract, _sends_ether) is not None:
                continue
            self.report(
                context,
                contract,
                f"Contract '{contract.name or '<anonymous>'}' can receive ether but has no way to withdraw it.",
            )


class MissingZeroCheckRule(Rule):
    """address parameters of public/external state-changing functions never compared with address(0)."""

    metadata = RuleMetadata(
        id="security/missing-zero-check",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Missing Zero Address Check",
        description="Address parameters stored or used without validation can be set to address(0) by mistake.",
        recommendation='Validate: require(addr != address(0), "zero address").',
    )

    def analyze(self, context: AnalysisContext) -> None:
        for function in (f for c in contracts(context.ast) for f in functions_of(c)):
            if function.body is None or is_view_or_pure(function):
                continue
            if function.visibility in ("internal", "private"):
                continue
            address_params = [
                p for p in parameters(function)
                if isinstance(p.name, str) and p.name
                and p.typeName is not None
                and p.typeName.type == "ElementaryTypeName"
                and str(p.typeName.name).startswith("address")
            ]
            if not address_params:
                continue
            validated = self._validated_names(function.body)
            for param in address_params:
                if param.name in validated:
                    continue
                self.report(
                    context,
                    param,
                    f"Missing zero-address check for parameter '{param.name}' in function "
                    f"'{function.name or 'constructor'}'.",
                    suggestion=f'require({param.name} != address(0), "zero address");',
                )

    @staticmethod
    def _validated_names(body: ASTNode) -> set[str]:
        names: set[str] = set()

        def collect(condition: Optional[ASTNode]) -> None:
            if condition is None or condition.type != "BinaryOperation":
                return
            if condition.operator in ("&&", "||"):
                collect(condition.left)
                collect(condition.right)
            elif condition.operator in ("==", "!="):
                left, right = condition.left, condition.right
                if left is not None and left.type == "Identifier" and is_zero_address(right):
                    names.add(left.name)
                elif right is not None and right.type == "Identifier" and is_zero_address(left):
                    names.add(right.name)

        for node in iter_nodes(body):
            if node.type == "FunctionCall" and is_call_to(node, "require", "assert"):
                args = node.get("arguments", ())
                if args:
                    collect(args[0])
            elif node.type == "IfStatement":
                collect(node.condition)
        return names
