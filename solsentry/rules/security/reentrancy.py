# Reentrancy and Checks-Effects-Interactions detection, built on the line-order
# approximation in analysis/ordering.py.

from __future__ import annotations

import logging
from typing import Optional

from solsentry.analysis.expressions import (
    callee,
    contracts,
    functions_of,
    is_view_or_pure,
    iter_functions,
    modifier_names,
)
from solsentry.analysis.ordering import (
    CallSite,
    WriteSite,
    cei_violations,
    external_call_sites,
    state_write_sites,
)
from solsentry.analysis.state import ContractIndex, constant_state_names
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

logger = logging.getLogger(__name__)

GUARD_MODIFIERS = frozenset({"nonReentrant", "noReentrancy", "reentrancyGuard"})


def _has_reentrancy_guard(function: ASTNode) -> bool:
    return any(name in GUARD_MODIFIERS for name in modifier_names(function))


class ReentrancyRule(Rule):
    """
    External call followed (by line) by a write to a known state variable.

    Internal calls to functions defined in the same file are followed into
    their bodies, once each, so `_send(); balance = 0;` is seen through a
    helper. Reported at the call, once per (call, variable).
    """

    metadata = RuleMetadata(
        id="security/reentrancy",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Reentrancy Vulnerability",
        description=(
            "Detects external calls made before state updates. A called contract can "
            "re-enter this function before the first invocation finishes and observe "
            "or exploit stale state."
        ),
        recommendation=(
            "Apply checks-effects-interactions: update state before external calls, or "
            "protect the function with a reentrancy guard (nonReentrant)."
        ),
    )

    def analyze(self, context: AnalysisContext) -> None:
        index = ContractIndex(context.ast)
        file_functions: dict[str, ASTNode] = {}
        for function in iter_functions(context.ast):
            if isinstance(function.name, str) and function.name:
                file_functions.setdefault(function.name, function)

        for contract in contracts(context.ast):
            name = contract.name if isinstance(contract.name, str) else ""
            state_names = index.all_state_names(name) if name else set()
            if not state_names:
                continue
            constants = constant_state_names(contract)
            known = dict(file_functions)
            known.update({f.name: f for f in functions_of(contract) if isinstance(f.name, str) and f.name})

            for function in functions_of(contract):
                if function.body is None or is_view_or_pure(function) or _has_reentrancy_guard(function):
                    continue
                calls: list[CallSite] = []
                writes: list[WriteSite] = []
                visited = {function.name} if function.name else set()
                self._collect(function.body, known, constants, state_names, visited, calls, writes)
                self._report_pairs(context, calls, writes)

    def _collect(
        self,
        body: Optional[ASTNode],
        known: dict[str, ASTNode],
        constants: set[str],
        state_names: set[str],
        visited: set[str],
        calls: list[CallSite],
        writes: list[WriteSite],
    ) -> None:
        for site in external_call_sites(body, constants):
            target = known.get(callee(site.node).memberName) if site.kind == "external" else None
            if target is not None and is_view_or_pure(target):
                continue
            calls.append(site)
        writes.extend(state_write_sites(body, is_state=state_names.__contains__))

        for node in iter_nodes(body):
            if node.type != "FunctionCall":
                continue
            expr = callee(node)
            if expr is None or expr.type != "Identifier" or expr.name in visited:
                continue
            internal = known.get(expr.name)
            if internal is None or internal.body is None:
                continue
            visited.add(expr.name)
            logger.debug("%s: following internal call to %s", self.id, expr.name)
            self._collect(internal.body, known, constants, state_names, visited, calls, writes)

    def _report_pairs(self, context: AnalysisContext, calls: list[CallSite], writes: list[WriteSite]) -> None:
        reported: set[tuple[int, int, str]] = set()
        for call, write in cei_violations(calls, writes):
            loc = call.node.loc
            if loc is None:
                continue
            key = (loc.start.line, loc.start.column, write.variable)
            if key in reported:
                continue
            reported.add(key)
            self.report(
                context,
                call.node,
                f"Reentrancy: external call before state update of '{write.variable}' "
                f"(line {write.line}). A re-entrant call observes the old value.",
                suggestion=f"Update '{write.variable}' before the external call or add a nonReentrant guard.",
            )


class StateChangeExternalCallRule(Rule):
    """Checks-Effects-Interactions ordering: a state write on a later line than an external call."""

    metadata = RuleMetadata(
        id="security/state-change-external-call",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="State Change After External Call",
        description=(
            "Detects state changes after external calls, violating the "
            "Checks-Effects-Interactions pattern and opening a reentrancy window."
        ),
        recommendation=(
            "Order code as checks, then state updates, then external calls "
            "(transfer, send, call, or calls into other contracts)."
        ),
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            constants = constant_state_names(contract)
            for function in functions_of(contract):
                if function.body is None or is_view_or_pure(function):
                    continue
                calls = external_call_sites(function.body, constants)
                if not calls:
                    continue
                writes = state_write_sites(function.body)
                for call, write in cei_violations(calls, writes):
                    self.report(
                        context,
                        write.node,
                        f"State change to '{write.variable}' occurs after external call "
                        f"(line {call.line}), violating Checks-Effects-Interactions.",
                        suggestion=f"Move the update of '{write.variable}' before the external call.",
                    )
