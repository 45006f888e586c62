# Shadowing detection: inherited state variables, builtins, and state variables
# hidden by locals/parameters.

from __future__ import annotations

from solsentry.analysis.expressions import contracts, declared_variables, functions_of, parameters
from solsentry.analysis.state import ContractIndex, base_contract_names, state_declarations
from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.nodes import ASTNode
from solsentry.rules.base import Rule
from solsentry.walker import iter_nodes

SOLIDITY_BUILTINS = frozenset({
    "msg", "tx", "block", "now", "abi", "gasleft", "this", "super", "type",
    "require", "assert", "revert", "selfdestruct", "suicide", "addmod", "mulmod",
    "keccak256", "sha256", "sha3", "ripemd160", "ecrecover", "blockhash",
})


def _local_declarations(function: ASTNode) -> list[ASTNode]:
    """VariableDeclarations from every VariableDeclarationStatement in the body."""
    result: list[ASTNode] = []
    for node in iter_nodes(function.body):
        if node.type == "VariableDeclarationStatement":
            result.extend(v for v in declared_variables(node) if isinstance(v.name, str))
    return result


class ShadowingVariablesRule(Rule):
    """
    Inheritance-aware shadowing: a contract's own state variables, function
    parameters, and local variables named like a state variable of any ancestor
    (recursively, cycle-guarded). The message names the declaring ancestor.
    """

    metadata = RuleMetadata(
        id="security/shadowing-variables",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Shadowing Variables",
        description=(
            "Detects variables in a derived contract with the same name as a state "
            "variable of a parent contract, which hides the inherited slot."
        ),
        recommendation="Use unique, descriptive names across the inheritance hierarchy.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        index = ContractIndex(context.ast)
        for contract in contracts(context.ast):
            if not isinstance(contract.name, str):
                continue
            inherited = index.inherited_names(contract.name)
            if not inherited:
                continue

            for var in state_declarations(contract):
                if var.name in inherited:
                    self.report(
                        context,
                        var,
                        f"State variable '{var.name}' shadows the state variable declared in "
                        f"parent contract '{inherited[var.name]}'.",
                        suggestion=f"Rename '{var.name}' or reuse the inherited variable.",
                    )

            for function in functions_of(contract):
                for param in parameters(function):
                    if param.name in inherited:
                        self.report(
                            context,
                            param,
                            f"Parameter '{param.name}' of function '{function.name or '<unnamed>'}' "
                            f"shadows the state variable inherited from '{inherited[param.name]}'.",
                        )
                for var in _local_declarations(function):
                    if var.name in inherited:
                        self.report(
                            context,
                            var,
                            f"Local variable '{var.name}' shadows the state variable inherited "
                            f"from '{inherited[var.name]}'.",
                        )


class StateVariableShadowingRule(Rule):
    """State variable re-declared with the name of a state variable of a direct base."""

    metadata = RuleMetadata(
        id="security/state-variable-shadowing",
        category=Category.SECURITY,
        severity=Severity.INFO,
        title="State variable shadows inherited variable",
        description="Detects state variables that shadow variables from directly inherited contracts.",
        recommendation="Use unique names for state variables across the inheritance hierarchy.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        index = ContractIndex(context.ast)
        for contract in contracts(context.ast):
            base_names: set[str] = set()
            for base in base_contract_names(contract):
                base_names.update(index.state_names.get(base, ()))
            if not base_names:
                continue
            for var in state_declarations(contract):
                if var.name in base_names:
                    self.report(
                        context,
                        var,
                        f"State variable '{var.name}' shadows an inherited variable.",
                    )


class ShadowingBuiltinRule(Rule):
    metadata = RuleMetadata(
        id="security/shadowing-builtin",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Shadowing Built-in Variable/Function",
        description=(
            "Detects declarations named like Solidity globals (msg, tx, block), builtin "
            "functions (require, assert, keccak256) or keywords."
        ),
        recommendation="Rename the declaration; e.g. use messageData instead of msg.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        reported: set[tuple[int, int]] = set()
        for node in iter_nodes(context.ast):
            if node.type in ("VariableDeclaration", "FunctionDefinition", "ModifierDefinition", "EventDefinition"):
                name = node.name
                if not isinstance(name, str) or name not in SOLIDITY_BUILTINS or node.loc is None:
                    continue
                key = (node.loc.start.line, node.loc.start.column)
                if key in reported:
                    continue
                reported.add(key)
                kind = self._kind(node)
                self.report(
                    context,
                    node,
                    f"{kind} '{name}' shadows a Solidity built-in.",
                    suggestion=f"Rename to something descriptive such as '{name}Data'.",
                )

    @staticmethod
    def _kind(node: ASTNode) -> str:
        if node.type == "VariableDeclaration":
            return "State variable" if node.get("isStateVar", False) else "Variable"
        if node.type == "FunctionDefinition":
            return "Function"
        if node.type == "ModifierDefinition":
            return "Modifier"
        return "Event"


class LocalVariableShadowingRule(Rule):
    metadata = RuleMetadata(
        id="security/local-variable-shadowing",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        title="Local variable shadows state variable",
        description="Detects local variables or function parameters that shadow state variables of the same contract.",
        recommendation="Rename the local variable or parameter, e.g. with a leading underscore.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for contract in contracts(context.ast):
            state_names = {var.name for var in state_declarations(contract)}
            if not state_names:
                continue
            for function in functions_of(contract):
                for param in parameters(function):
                    if param.name in state_names:
                        self.report(context, param, f"Parameter '{param.name}' shadows a state variable.")
                for var in _local_declarations(function):
                    if var.name in state_names:
                        self.report(context, var, f"Local variable '{var.name}' shadows a state variable.")
