# Unchecked return values: send(), low-level calls, and value-returning calls.

from __future__ import annotations

from solsentry.analysis.checked_calls import CheckedCallTracker
from solsentry.analysis.expressions import (
    BUILTIN_NAMESPACES,
    LOW_LEVEL_CALLS,
    callee,
    iter_functions,
    member_call,
)
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

# ERC20 members whose bool result reports failure, by argument count. Address
# transfer() takes one argument, so it never matches here.
TOKEN_CALLS = {"transfer": 2, "transferFrom": 3, "approve": 2}

# Builtin namespaces whose members are never this file's functions.
_GLOBAL_NAMESPACES = BUILTIN_NAMESPACES - {"this", "super"}


def is_send(node: ASTNode) -> bool:
    return member_call(node, "send") is not None


def is_low_level_call(node: ASTNode) -> bool:
    return member_call(node, *LOW_LEVEL_CALLS) is not None


class UncheckedSendRule(Rule):
    metadata = RuleMetadata(
        id="security/unchecked-send",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Unchecked send() Return Value",
        description=(
            "send() returns false on failure instead of reverting; ignoring the result "
            "lets execution continue after a failed transfer."
        ),
        recommendation='Check the result: require(addr.send(amount), "Send failed"), or use transfer().',
    )

    def analyze(self, context: AnalysisContext) -> None:
        tracker = CheckedCallTracker(is_send)
        for function in iter_functions(context.ast):
            if function.body is None:
                continue
            for call in tracker.unchecked(function.body):
                self.report(
                    context,
                    call,
                    "Unchecked send(): the returned bool is ignored, so a failed transfer goes unnoticed.",
                    suggestion='Wrap it: require(recipient.send(amount), "Send failed").',
                )


class UncheckedLowLevelRule(Rule):
    metadata = RuleMetadata(
        id="security/unchecked-lowlevel",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Unchecked Low-Level Call",
        description=(
            "call, delegatecall and staticcall return a success flag instead of "
            "reverting; the flag must be tested."
        ),
        recommendation='Test the flag: (bool ok, ) = target.call(data); require(ok, "Call failed");',
    )

    def analyze(self, context: AnalysisContext) -> None:
        tracker = CheckedCallTracker(is_low_level_call, strict_initializers=True)
        for function in iter_functions(context.ast):
            if function.body is None:
                continue
            for call in tracker.unchecked(function.body):
                kind = member_call(call, *LOW_LEVEL_CALLS).memberName
                self.report(
                    context,
                    call,
                    f"Unchecked low-level {kind}(): its success flag is never tested.",
                    suggestion="Store the flag and require() it.",
                )


def _returns_value(function: ASTNode) -> bool:
    raw = function.returnParameters
    if isinstance(raw, ASTNode):
        raw = raw.parameters
    return bool(raw)


def value_returning_functions(root: ASTNode) -> set[str]:
    """Names of functions in the file for which every overload returns something."""
    verdicts: dict[str, bool] = {}
    for function in iter_functions(root):
        if not isinstance(function.name, str) or not function.name:
            continue
        verdicts[function.name] = verdicts.get(function.name, True) and _returns_value(function)
    return {name for name, returns in verdicts.items() if returns}


class UnusedReturnRule(Rule):
    """
    A call used as a bare statement whose result matters: a function of this
    file that declares return values, or an ERC20 transfer/transferFrom/approve.
    send() and low-level calls have their own rules and are skipped here.
    """

    metadata = RuleMetadata(
        id="security/unused-return",
        category=Category.SECURITY,
        severity=Severity.INFO,
        title="Unused Return Value",
        description=(
            "Detects calls whose return value is ignored, which can hide failures "
            "reported through a status value (such as ERC20 transfer)."
        ),
        recommendation="Check the value with require(), store it, or use SafeERC20 for token calls.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        returning = value_returning_functions(context.ast)
        for node in iter_nodes(context.ast):
            if node.type != "ExpressionStatement":
                continue
            call = node.expression
            expr = callee(call)
            if expr is None:
                continue
            if expr.type == "Identifier":
                name = expr.name
                ignored = name in returning
            elif expr.type == "MemberAccess":
                name = expr.memberName
                base = expr.expression
                if name in LOW_LEVEL_CALLS or name == "send":
                    continue
                if base is not None and base.type == "Identifier" and base.name in _GLOBAL_NAMESPACES:
                    continue
                arity = TOKEN_CALLS.get(name)
                ignored = name in returning or (arity is not None and len(call.get("arguments", ())) == arity)
            else:
                continue
            if ignored:
                self.report(
                    context,
                    node,
                    f"Return value of '{name}' is ignored.",
                    suggestion=f"Use the result of '{name}', e.g. require() it or assign it.",
                )
