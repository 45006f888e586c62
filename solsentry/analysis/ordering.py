"""
Line-order "happens-after" approximation for Checks-Effects-Interactions.

This is deliberately not control-flow analysis. An external call and a state
write inside one function body are ordered by their start line only:
a write on a later line than a call is treated as happening after it, even
when the two sit on disjoint branches or a loop brings the write around
before the call. Detectors built on this module share that
false-positive/false-negative profile.

Call sites: a FunctionCall whose callee is
    - a member named call/delegatecall/staticcall/send/transfer, or
    - a member of an identifier that is not a builtin namespace (msg, block,
      abi, ...) and not a constant/immutable state variable.

Write sites: an assignment (=, +=, -=, ...) or ++/-- whose target resolves
through identifier/index/member accesses to a root identifier. By default a
bare identifier starting with "_" is taken to be a local or parameter and is
not a write; indexed and member targets always count (`_balances[a] = 0`).
Callers that know the state variables pass their own filter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Collection, Optional

from solsentry.analysis.expressions import (
    BUILTIN_NAMESPACES,
    LOW_LEVEL_CALLS,
    VALUE_TRANSFERS,
    assignment_targets,
    callee,
    root_name,
)
from solsentry.nodes import ASTNode
from solsentry.walker import iter_nodes

EXTERNAL_MEMBERS = LOW_LEVEL_CALLS | VALUE_TRANSFERS

# Members of arrays and bytes values; calling them never leaves the contract.
_LOCAL_MEMBERS = frozenset({"push", "pop", "concat"})


@dataclass(frozen=True)
class CallSite:
    node: ASTNode
    line: int
    kind: str  # "call", "delegatecall", "staticcall", "send", "transfer" or "external"
    target: Optional[str] = None  # base identifier, when there is one


@dataclass(frozen=True)
class WriteSite:
    node: ASTNode
    line: int
    variable: str


def _default_is_write(target: ASTNode, name: str) -> bool:
    return target.type != "Identifier" or not name.startswith("_")


def classify_call(call: ASTNode, constant_names: Collection[str] = ()) -> Optional[CallSite]:
    """Return a CallSite if call is an external call, else None."""
    expr = callee(call)
    if expr is None or expr.type != "MemberAccess":
        return None
    base = expr.expression
    base_name = base.name if base is not None and base.type == "Identifier" else None
    if expr.memberName in EXTERNAL_MEMBERS:
        return CallSite(call, call.line, expr.memberName, base_name)
    if base_name is None or expr.memberName in _LOCAL_MEMBERS:
        return None
    if base_name in BUILTIN_NAMESPACES or base_name in constant_names:
        return None
    return CallSite(call, call.line, "external", base_name)


def external_call_sites(body: Optional[ASTNode], constant_names: Collection[str] = ()) -> list[CallSite]:
    """External call sites under body, in source order."""
    sites: list[CallSite] = []
    for node in iter_nodes(body):
        if node.type != "FunctionCall":
            continue
        site = classify_call(node, constant_names)
        if site is not None:
            sites.append(site)
    return sites


def state_write_sites(
    body: Optional[ASTNode],
    is_state: Optional[Callable[[str], bool]] = None,
) -> list[WriteSite]:
    """
    Write sites under body, in source order.

    is_state replaces the default filter (bare identifiers not starting with
    "_", and every indexed or member target), e.g. with membership in a
    contract's known state variables.
    """
    sites: list[WriteSite] = []
    for node in iter_nodes(body):
        for target in assignment_targets(node):
            name = root_name(target)
            if not name:
                continue
            if is_state is None:
                if not _default_is_write(target, name):
                    continue
            elif not is_state(name):
                continue
            sites.append(WriteSite(node, node.line, name))
    return sites


def cei_violations(calls: list[CallSite], writes: list[WriteSite]) -> list[tuple[CallSite, WriteSite]]:
    """Every (call, write) pair where the write starts on a later line than the call."""
    return [(call, write) for call in calls for write in writes if write.line > call.line]
