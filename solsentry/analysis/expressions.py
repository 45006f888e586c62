# Small expression helpers shared by rules: callee names, root identifiers,
# member chains, literals, and function/contract enumeration.

from __future__ import annotations

from typing import Iterator, Optional

from solsentry.nodes import LOOP_KINDS, ASTNode, is_contract_like
from solsentry.walker import SKIP, iter_nodes, walk

# Global namespaces whose members are builtins, never external contracts.
BUILTIN_NAMESPACES = frozenset({"abi", "block", "msg", "tx", "type", "bytes", "string", "super", "this"})

LOW_LEVEL_CALLS = frozenset({"call", "delegatecall", "staticcall"})
VALUE_TRANSFERS = frozenset({"send", "transfer"})

ASSIGNMENT_OPERATORS = frozenset({"=", "+=", "-=", "*=", "/=", "%=", "|=", "&=", "^=", "<<=", ">>="})
INCREMENT_OPERATORS = frozenset({"++", "--"})
COMPARISON_OPERATORS = frozenset({"<", ">", "<=", ">=", "==", "!="})


def callee(call: Optional[ASTNode]) -> Optional[ASTNode]:
    """The called expression of a FunctionCall, with `{value: ...}` options unwrapped."""
    if call is None or call.type != "FunctionCall":
        return None
    expr = call.expression
    while expr is not None and expr.type == "NameValueExpression":
        expr = expr.expression
    return expr


def callee_name(call: Optional[ASTNode]) -> Optional[str]:
    """`foo` for foo(...), `bar` for x.bar(...), else None."""
    expr = callee(call)
    if expr is None:
        return None
    if expr.type == "Identifier":
        return expr.name
    if expr.type == "MemberAccess":
        return expr.memberName
    return None


def is_call_to(node: Optional[ASTNode], *names: str) -> bool:
    """True for a plain call to one of names, e.g. is_call_to(n, "require", "assert")."""
    expr = callee(node)
    return expr is not None and expr.type == "Identifier" and expr.name in names


def member_call(node: Optional[ASTNode], *members: str) -> Optional[ASTNode]:
    """Return the MemberAccess callee when node is `x.<member>(...)` for one of members."""
    expr = callee(node)
    if expr is not None and expr.type == "MemberAccess" and expr.memberName in members:
        return expr
    return None


def is_member(node: Optional[ASTNode], base: str, member: str) -> bool:
    """True for the member access `base.member` (e.g. tx.origin, block.timestamp)."""
    return (
        node is not None
        and node.type == "MemberAccess"
        and node.memberName == member
        and node.expression is not None
        and node.expression.type == "Identifier"
        and node.expression.name == base
    )


def root_identifier(node: Optional[ASTNode]) -> Optional[ASTNode]:
    """
    Follow index, member and parenthesized accesses down to the root Identifier.

    balances[msg.sender].amount -> balances; returns None when the root is not an
    identifier (e.g. a call result).
    """
    while node is not None:
        if node.type == "Identifier":
            return node
        if node.type == "IndexAccess":
            node = node.base
        elif node.type == "MemberAccess":
            node = node.expression
        elif node.type == "TupleExpression" and len(node.get("components", ())) == 1:
            node = node.components[0]
        else:
            return None
    return None


def root_name(node: Optional[ASTNode]) -> Optional[str]:
    root = root_identifier(node)
    return root.name if root is not None else None


def assignment_targets(node: ASTNode) -> list[ASTNode]:
    """Written expressions of an assignment or ++/--; empty for anything else."""
    if node.type == "BinaryOperation" and node.operator in ASSIGNMENT_OPERATORS:
        left = node.left
        if left is not None and left.type == "TupleExpression":
            return [c for c in left.get("components", ()) if c is not None]
        return [left] if left is not None else []
    if node.type == "UnaryOperation" and node.operator in INCREMENT_OPERATORS:
        return [node.subExpression] if node.subExpression is not None else []
    return []


def is_number_literal(node: Optional[ASTNode]) -> bool:
    return node is not None and node.type == "NumberLiteral"


def is_boolean_literal(node: Optional[ASTNode]) -> bool:
    return node is not None and node.type == "BooleanLiteral"


def is_zero_address(node: Optional[ASTNode]) -> bool:
    """address(0) / address(0x0)."""
    if node is None or node.type != "FunctionCall":
        return False
    expr = node.expression
    is_address_cast = (
        expr is not None
        and (
            (expr.type == "ElementaryTypeNameExpression"
             and expr.typeName is not None
             and expr.typeName.name == "address")
            or (expr.type == "Identifier" and expr.name == "address")
        )
    )
    args = node.get("arguments", ())
    if not is_address_cast or len(args) != 1 or not is_number_literal(args[0]):
        return False
    try:
        return int(str(args[0].number), 0) == 0
    except ValueError:
        return False


def contracts(root: Optional[ASTNode]) -> list[ASTNode]:
    """Contract-like definitions in document order."""
    result: list[ASTNode] = []

    def enter(node: ASTNode, parent: Optional[ASTNode]) -> object:
        if is_contract_like(node):
            result.append(node)
            return SKIP
        return None

    walk(root, enter=enter)
    return result


def functions_of(contract: ASTNode) -> list[ASTNode]:
    return [n for n in contract.get("subNodes", ()) if n is not None and n.type == "FunctionDefinition"]


def iter_functions(root: Optional[ASTNode]) -> Iterator[ASTNode]:
    """Every FunctionDefinition in the tree, including free functions."""
    for node in iter_nodes(root):
        if node.type == "FunctionDefinition":
            yield node


def modifier_names(function: ASTNode) -> list[str]:
    return [m.name for m in function.get("modifiers", ()) if m is not None and isinstance(m.name, str)]


def is_view_or_pure(function: ASTNode) -> bool:
    return function.stateMutability in ("view", "pure") or function.get("isDeclaredConst", False)


def is_loop(node: Optional[ASTNode]) -> bool:
    return node is not None and node.type in LOOP_KINDS


def loop_condition(loop: ASTNode) -> Optional[ASTNode]:
    if loop.type == "ForStatement":
        return loop.conditionExpression
    return loop.condition


def declared_variables(statement: ASTNode) -> list[ASTNode]:
    """Non-empty VariableDeclarations of a VariableDeclarationStatement."""
    return [v for v in statement.get("variables", ()) if v is not None and v.type == "VariableDeclaration"]


def parameters(node: Optional[ASTNode]) -> list[ASTNode]:
    """
    Parameters of a function/modifier/event.

    The parser emits either a plain list or a ParameterList node with a
    `parameters` field; both shapes are accepted.
    """
    if node is None:
        return []
    raw = node.parameters
    if isinstance(raw, ASTNode):
        raw = raw.parameters
    return [p for p in (raw or ()) if isinstance(p, ASTNode) and p.type == "VariableDeclaration"]


def type_name_text(type_name: Optional[ASTNode]) -> str:
    """Short textual form of a type node, e.g. "uint256", "address[]", "MyStruct"."""
    if type_name is None:
        return ""
    if type_name.type == "ElementaryTypeName":
        return str(type_name.name or "")
    if type_name.type == "UserDefinedTypeName":
        return str(type_name.namePath or "")
    if type_name.type == "ArrayTypeName":
        return type_name_text(type_name.baseTypeName) + "[]"
    if type_name.type == "Mapping":
        return f"mapping({type_name_text(type_name.keyType)} => {type_name_text(type_name.valueType)})"
    return type_name.type
