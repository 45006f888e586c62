"""
State-variable and inheritance index.

A contract's state variables are the VariableDeclarations of its direct
StateVariableDeclaration members (never nested scopes). Several detectors use
this index as the ground truth for "is this name a storage slot".

Inheritance resolution walks `baseContracts` by name within one source unit;
bases declared in other files are unknown and contribute nothing. A visited
set guards against cyclic (invalid) inheritance graphs.
"""

from __future__ import annotations

from typing import Optional

from solsentry.analysis.expressions import contracts
from solsentry.nodes import ASTNode


def state_declarations(contract: ASTNode) -> list[ASTNode]:
    """VariableDeclarations of the contract's own state variables, in order."""
    result: list[ASTNode] = []
    for member in contract.get("subNodes", ()):
        if member is None or member.type != "StateVariableDeclaration":
            continue
        for var in member.get("variables", ()):
            if var is not None and isinstance(var.name, str):
                result.append(var)
    return result


def collect_state_variables(contract: ASTNode) -> dict[str, ASTNode]:
    """name -> VariableDeclaration for the contract's own state variables."""
    return {var.name: var for var in state_declarations(contract)}


def is_constant_declaration(var: ASTNode) -> bool:
    return bool(var.get("isDeclaredConst", False) or var.get("isImmutable", False))


def constant_state_names(contract: ASTNode) -> set[str]:
    return {var.name for var in state_declarations(contract) if is_constant_declaration(var)}


def state_arrays(contract: ASTNode) -> set[str]:
    """Names of state variables declared with an array type."""
    return {
        var.name
        for var in state_declarations(contract)
        if var.typeName is not None and var.typeName.type == "ArrayTypeName"
    }


def base_contract_names(contract: ASTNode) -> list[str]:
    """Direct base names from `contract X is A, B` in declaration order."""
    names: list[str] = []
    for specifier in contract.get("baseContracts", ()):
        base = specifier.baseName if specifier is not None else None
        if base is None:
            continue
        name = base.namePath if base.type == "UserDefinedTypeName" else base.name
        if isinstance(name, str):
            names.append(name)
    return names


class ContractIndex:
    """Contracts of one source unit by name, with their state variable names."""

    def __init__(self, root: Optional[ASTNode]) -> None:
        self.contracts: dict[str, ASTNode] = {}
        self.state_names: dict[str, list[str]] = {}
        for contract in contracts(root):
            name = contract.name
            if not isinstance(name, str) or name in self.contracts:
                continue
            self.contracts[name] = contract
            self.state_names[name] = [var.name for var in state_declarations(contract)]

    def ancestors(self, contract_name: str) -> list[str]:
        """
        Names of every base of contract_name, direct or indirect, depth-first in
        declaration order. Each contract appears once; contract_name never does.
        """
        order: list[str] = []
        visited = {contract_name}

        def visit(name: str) -> None:
            contract = self.contracts.get(name)
            if contract is None:
                return
            for base in base_contract_names(contract):
                if base in visited:
                    continue
                visited.add(base)
                order.append(base)
                visit(base)

        visit(contract_name)
        return order

    def inherited_names(self, contract_name: str) -> dict[str, str]:
        """
        Every state variable name declared by an ancestor of contract_name,
        mapped to the nearest ancestor that declares it.
        """
        result: dict[str, str] = {}
        for base in self.ancestors(contract_name):
            for var_name in self.state_names.get(base, ()):
                result.setdefault(var_name, base)
        return result

    def descendants(self, contract_name: str) -> list[str]:
        """Contracts of this source unit that inherit from contract_name."""
        return [name for name in self.contracts if contract_name in self.ancestors(name)]

    def all_state_names(self, contract_name: str) -> set[str]:
        """Own plus inherited state variable names."""
        own = set(self.state_names.get(contract_name, ()))
        return own | set(self.inherited_names(contract_name))
