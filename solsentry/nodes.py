# Solidity AST model: kind-tagged nodes, source locations, and per-kind child fields.

from __future__ import annotations

from typing import Any, Iterator, NamedTuple, Optional


class Position(NamedTuple):
    """A point in the source: 1-based line, 0-based column."""

    line: int
    column: int


class SourceLocation(NamedTuple):
    """Start/end positions of a node, as emitted by the parser with loc enabled."""

    start: Position
    end: Position

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceLocation":
        start = data.get("start") or {}
        end = data.get("end") or start
        return cls(
            Position(int(start.get("line", 0)), int(start.get("column", 0))),
            Position(int(end.get("line", 0)), int(end.get("column", 0))),
        )


# Contract-like definitions. The parser reports all of them as ContractDefinition
# with a `kind` field; older trees and hand-built ones use the dedicated kinds.
CONTRACT_KINDS = frozenset({"ContractDefinition", "InterfaceDefinition", "LibraryDefinition"})

LOOP_KINDS = frozenset({"ForStatement", "WhileStatement", "DoWhileStatement"})

# Child fields per node kind, in natural left-to-right source order. Walkers rely
# on this order: several detectors compare line numbers of sibling nodes.
CHILD_FIELDS: dict[str, tuple[str, ...]] = {
    "SourceUnit": ("children",),
    "PragmaDirective": (),
    "ImportDirective": (),
    "ContractDefinition": ("baseContracts", "subNodes"),
    "InterfaceDefinition": ("baseContracts", "subNodes"),
    "LibraryDefinition": ("baseContracts", "subNodes"),
    "InheritanceSpecifier": ("baseName", "arguments"),
    "UsingForDeclaration": ("typeName",),
    "StateVariableDeclaration": ("variables", "initialValue"),
    "FileLevelConstant": ("typeName", "initialValue"),
    "VariableDeclaration": ("typeName", "expression"),
    "FunctionDefinition": ("parameters", "modifiers", "returnParameters", "body"),
    "ModifierDefinition": ("parameters", "body"),
    "ModifierInvocation": ("arguments",),
    "EventDefinition": ("parameters",),
    "CustomErrorDefinition": ("parameters",),
    "StructDefinition": ("members",),
    "EnumDefinition": ("members",),
    "EnumValue": (),
    "ElementaryTypeName": (),
    "UserDefinedTypeName": (),
    "ArrayTypeName": ("baseTypeName", "length"),
    "Mapping": ("keyType", "valueType"),
    "FunctionTypeName": ("parameterTypes", "returnTypes"),
    "Block": ("statements",),
    "UncheckedStatement": ("block",),
    "ExpressionStatement": ("expression",),
    "VariableDeclarationStatement": ("variables", "initialValue"),
    "IfStatement": ("condition", "trueBody", "falseBody"),
    "ForStatement": ("initExpression", "conditionExpression", "loopExpression", "body"),
    "WhileStatement": ("condition", "body"),
    "DoWhileStatement": ("body", "condition"),
    "ReturnStatement": ("expression",),
    "EmitStatement": ("eventCall",),
    "RevertStatement": ("revertCall",),
    "TryStatement": ("expression", "returnParameters", "body", "catchClauses"),
    "CatchClause": ("parameters", "body"),
    "ThrowStatement": (),
    "BreakStatement": (),
    "ContinueStatement": (),
    "InlineAssemblyStatement": ("body",),
    "BinaryOperation": ("left", "right"),
    "UnaryOperation": ("subExpression",),
    "FunctionCall": ("expression", "arguments"),
    "NameValueExpression": ("expression", "arguments"),
    "MemberAccess": ("expression",),
    "IndexAccess": ("base", "index"),
    "IndexRangeAccess": ("base", "indexStart", "indexEnd"),
    "Conditional": ("condition", "trueExpression", "falseExpression"),
    "TupleExpression": ("components",),
    "NewExpression": ("typeName",),
    "ElementaryTypeNameExpression": ("typeName",),
    "Identifier": (),
    "NumberLiteral": (),
    "BooleanLiteral": (),
    "StringLiteral": (),
    "HexLiteral": (),
    "HexNumber": (),
}


class ASTNode:
    """
    One node of a parsed Solidity source unit.

    `type` is the node kind (e.g. "FunctionDefinition"); kind-specific fields are
    read as attributes (`node.body`, `node.memberName`). A field the node does
    not carry reads as None, so partial nodes never raise. List-valued fields are
    tuples and the node has no setters: analysis code cannot mutate the tree.
    """

    __slots__ = ("type", "loc", "range", "_fields")

    def __init__(
        self,
        type: str,
        fields: Optional[dict[str, Any]] = None,
        loc: Optional[SourceLocation] = None,
        range: Optional[tuple[int, int]] = None,
    ) -> None:
        object.__setattr__(self, "type", type)
        object.__setattr__(self, "loc", loc)
        object.__setattr__(self, "range", range)
        object.__setattr__(self, "_fields", dict(fields or {}))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return self._fields.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"ASTNode is read-only (tried to set {name!r})")

    def __repr__(self) -> str:
        name = self._fields.get("name")
        where = f" @{self.loc.start.line}:{self.loc.start.column}" if self.loc else ""
        label = f" {name!r}" if isinstance(name, str) else ""
        return f"<ASTNode {self.type}{label}{where}>"

    def get(self, name: str, default: Any = None) -> Any:
        value = self._fields.get(name)
        return default if value is None else value

    def has(self, name: str) -> bool:
        return self._fields.get(name) is not None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self._fields)

    @property
    def line(self) -> int:
        """Start line of the node, 0 when it carries no location."""
        return self.loc.start.line if self.loc else 0

    def child_nodes(self) -> list["ASTNode"]:
        """Direct child nodes in source order (see CHILD_FIELDS)."""
        fields = CHILD_FIELDS.get(self.type)
        if fields is None:
            fields = tuple(self._fields)
        return list(_iter_child_nodes(self._fields, fields))


def _iter_child_nodes(values: dict[str, Any], fields: tuple[str, ...]) -> Iterator[ASTNode]:
    for name in fields:
        value = values.get(name)
        if isinstance(value, ASTNode):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, ASTNode):
                    yield item


def is_contract_like(node: Optional[ASTNode]) -> bool:
    return node is not None and node.type in CONTRACT_KINDS


def contract_kind(node: ASTNode) -> str:
    """Return "contract", "abstract", "interface" or "library" for a contract-like node."""
    if node.type == "InterfaceDefinition":
        return "interface"
    if node.type == "LibraryDefinition":
        return "library"
    return node.get("kind", "contract")


def make_node(type: str, loc: Optional[SourceLocation] = None, **fields: Any) -> ASTNode:
    """Build a node from keyword fields; lists are frozen into tuples."""
    frozen = {k: tuple(v) if isinstance(v, list) else v for k, v in fields.items()}
    return ASTNode(type, frozen, loc=loc)
