# Storage hazards: uninitialized pointers, layout collisions, unused slots.

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import (
    contracts,
    declared_variables,
    functions_of,
    is_call_to,
    is_member,
    type_name_text,
)
from solsentry.analysis.state import (
    ContractIndex,
    base_contract_names,
    is_constant_declaration,
    state_declarations,
)
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes


class UninitializedStorageRule(Rule):
    """
    A local variable declared `storage` with no initial value points at slot 0,
    so writes through it overwrite the first state variables.
    """

    metadata = RuleMetadata(
        id="security/uninitialized-storage",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Uninitialized Storage Pointer",
        description="Uninitialized local storage pointers alias storage slot 0.",
        recommendation="Initialize the pointer from a state variable, or declare it memory.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for node in iter_nodes(context.ast):
            if node.type != "VariableDeclarationStatement" or node.initialValue is not None:
                continue
            for var in declared_variables(node):
                is_mapping = var.typeName is not None and var.typeName.type == "Mapping"
                if var.storageLocation != "storage" and not is_mapping:
                    continue
                self.report(
                    context,
                    var,
                    f"Uninitialized storage pointer '{var.name or '<unnamed>'}' "
                    f"({type_name_text(var.typeName) or 'unknown type'}) aliases storage slot 0.",
                    suggestion="Assign it from a state variable or use memory.",
                )


# Keywords in a contract name that suggest it is meant to sit behind a proxy.
_UPGRADEABLE_HINTS = ("upgradeable", "base", "storage")

# bytes32(uint256(keccak256("eip1967.proxy.implementation")) - 1) and the admin slot.
EIP1967_SLOTS = frozenset({
    "0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc",
    "0xb53127684a568b3173ae13b9f8a6016e243e63b6e8ee1178d6a717850b5d6103",
})


def storage_slots(contract: ASTNode) -> list[ASTNode]:
    """State variables that occupy storage (constants and immutables do not)."""
    return [var for var in state_declarations(contract) if not is_constant_declaration(var)]


def is_gap(name: str) -> bool:
    return "_gap" in name


def _is_slot_expression(expr: Optional[ASTNode]) -> bool:
    for node in iter_nodes(expr):
        if node.type == "FunctionCall" and is_call_to(node, "keccak256"):
            return True
        if node.type == "StringLiteral" and "eip1967" in str(node.value).lower():
            return True
        if node.type in ("NumberLiteral", "HexNumber") and str(node.number or node.value).lower() in EIP1967_SLOTS:
            return True
    return False


def declares_eip1967_slot(contract: ASTNode) -> bool:
    """True when a constant/immutable state variable holds a hashed or EIP-1967 slot."""
    for var in state_declarations(contract):
        if is_constant_declaration(var) and _is_slot_expression(var.expression):
            return True
    return False


class StorageCollisionRule(Rule):
    """
    Storage layout hazards in upgradeable and proxy code. Four checks per
    contract:

    - a state variable re-declared with the name of one inherited from a base
      in the same file (storage gaps excepted);
    - a contract with bases, storage variables and an upgradeable-sounding
      name ("Upgradeable", "Base", "Storage") but no `__gap` array;
    - `delegatecall` from a contract holding storage variables;
    - a proxy (upgrade/setImplementation function or an `implementation`
      variable) with no EIP-1967 slot constant.

    The last two are silenced when the contract or one of its bases declares a
    constant slot (a keccak256 expression or a known EIP-1967 value).
    """

    metadata = RuleMetadata(
        id="security/storage-collision",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Storage Collision Risk",
        description=(
            "Detects storage layout collisions in inheritance hierarchies, "
            "upgradeable contracts and delegatecall proxies."
        ),
        recommendation=(
            "Reserve slots with uint256[50] private __gap, keep proxy state in "
            "EIP-1967 slots, and never reorder or rename existing state variables."
        ),
    )

    def analyze(self, context: AnalysisContext) -> None:
        index = ContractIndex(context.ast)
        for contract in contracts(context.ast):
            name = contract.name if isinstance(contract.name, str) else ""
            slots = storage_slots(contract)
            self._check_redeclared(context, index, name, slots)
            lineage = [contract] + [index.contracts[b] for b in index.ancestors(name) if b in index.contracts]
            has_slot = any(declares_eip1967_slot(c) for c in lineage)

            if base_contract_names(contract) and slots and any(h in name.lower() for h in _UPGRADEABLE_HINTS):
                if not any(is_gap(var.name) for var in slots):
                    self.report(
                        context,
                        contract,
                        f"Possibly upgradeable contract '{name}' has no storage gap; "
                        "adding state variables in an upgrade will shift the layout of derived contracts.",
                        suggestion="Reserve slots for future variables: uint256[50] private __gap;",
                    )

            if slots and not has_slot:
                for node in iter_nodes(contract):
                    if node.type == "MemberAccess" and node.memberName == "delegatecall":
                        self.report(
                            context,
                            node,
                            f"delegatecall from '{name}', which has state variables; the target "
                            "must use exactly the same storage layout.",
                            suggestion="Use EIP-1967 storage slots or namespaced (diamond) storage.",
                        )

            if self._looks_like_proxy(contract, slots) and not has_slot:
                self.report(
                    context,
                    contract,
                    f"Proxy pattern in '{name}' without EIP-1967 storage slots; the implementation "
                    "address in regular storage can collide with the implementation's own variables.",
                    suggestion='Store it at bytes32(uint256(keccak256("eip1967.proxy.implementation")) - 1).',
                )

    def _check_redeclared(
        self, context: AnalysisContext, index: ContractIndex, name: str, slots: list[ASTNode]
    ) -> None:
        inherited = index.inherited_names(name)
        for var in slots:
            base = inherited.get(var.name)
            if base is None or is_gap(var.name):
                continue
            self.report(
                context,
                var,
                f"Storage collision: '{var.name}' in '{name}' re-declares the state variable "
                f"of base contract '{base}'.",
                suggestion=f"Rename '{var.name}' or use the variable inherited from '{base}'.",
            )

    @staticmethod
    def _looks_like_proxy(contract: ASTNode, slots: list[ASTNode]) -> bool:
        for function in functions_of(contract):
            lowered = (function.name or "").lower()
            if "upgrade" in lowered or "setimplementation" in lowered:
                return True
        return any("implementation" in var.name.lower() for var in slots)


def _referenced_names(root: Optional[ASTNode]) -> set[str]:
    names: set[str] = set()
    for node in iter_nodes(root):
        if node.type == "Identifier":
            names.add(node.name)
        elif node.type == "MemberAccess" and is_member(node, "this", node.memberName):
            names.add(node.memberName)
        elif node.type == "AssemblyCall" and isinstance(node.functionName, str):
            names.add(node.functionName)
    return names


class UnusedStateRule(Rule):
    """
    Storage variables nothing reads or writes. Public variables have a getter
    and are always used; constants, immutables and storage gaps are skipped.
    A private variable must be referenced in its own contract; any other
    variable may also be referenced by a contract inheriting it in this file.
    """

    metadata = RuleMetadata(
        id="security/unused-state",
        category=Category.SECURITY,
        severity=Severity.INFO,
        title="Unused State Variable",
        description="Detects state variables that are declared but never used.",
        recommendation="Remove unused state variables to save storage and gas.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        index = ContractIndex(context.ast)
        for contract in contracts(context.ast):
            candidates = [
                var for var in storage_slots(contract)
                if var.visibility != "public" and not is_gap(var.name)
            ]
            if not candidates:
                continue
            own = _referenced_names(contract)
            derived: set[str] = set()
            if isinstance(contract.name, str):
                for name in index.descendants(contract.name):
                    derived |= _referenced_names(index.contracts[name])
            for var in candidates:
                used = own if var.visibility == "private" else own | derived
                if var.name in used:
                    continue
                self.report(
                    context,
                    var,
                    f"State variable '{var.name}' is declared but never used.",
                    suggestion=f"Remove '{var.name}' to save storage and gas.",
                )
