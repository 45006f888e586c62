"""
Deterministic depth-first traversal of Solidity ASTs.

`walk` calls `enter(node, parent)` before a node's children and
`exit(node, parent)` after all of them. Children are visited in the order
given by nodes.CHILD_FIELDS, i.e. source order, so line-order based detectors
see sibling nodes in the order they appear in the file.

`enter` may return:
    SKIP -- do not descend into this node; its own `exit` still runs.
    STOP -- abort the traversal; no further `enter`/`exit` calls at all.

The walker never mutates the tree and never suspends.

Typical usage:
    from solsentry.walker import SKIP, find_nodes, walk

    calls = find_nodes(ast, lambda n: n.type == "FunctionCall")

    def enter(node, parent):
        if node.type == "InlineAssemblyStatement":
            return SKIP
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from solsentry.nodes import ASTNode

NodePredicate = Callable[[ASTNode], bool]
EnterFn = Callable[[ASTNode, Optional[ASTNode]], object]
ExitFn = Callable[[ASTNode, Optional[ASTNode]], None]


class _Signal:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


SKIP = _Signal("SKIP")
STOP = _Signal("STOP")


def _walk_node(
    node: ASTNode,
    parent: Optional[ASTNode],
    enter: Optional[EnterFn],
    exit: Optional[ExitFn],
) -> bool:
    """Visit node and its subtree; return True when traversal must stop."""
    if enter is not None:
        signal = enter(node, parent)
        if signal is STOP:
            return True
        if signal is SKIP:
            if exit is not None:
                exit(node, parent)
            return False

    for child in node.child_nodes():
        if _walk_node(child, node, enter, exit):
            return True

    if exit is not None:
        exit(node, parent)
    return False


def walk(
    root: Optional[ASTNode],
    enter: Optional[EnterFn] = None,
    exit: Optional[ExitFn] = None,
) -> None:
    """Walk the tree under root with enter/exit hooks (see module docstring)."""
    if root is None:
        return
    _walk_node(root, None, enter, exit)


def iter_nodes(root: Optional[ASTNode]) -> Iterator[ASTNode]:
    """Yield root and every descendant in pre-order (document order)."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.child_nodes()))


def iter_with_parents(root: Optional[ASTNode]) -> Iterator[tuple[ASTNode, Optional[ASTNode]]]:
    """Yield (node, parent) pairs in pre-order."""
    if root is None:
        return
    stack: list[tuple[ASTNode, Optional[ASTNode]]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        yield node, parent
        stack.extend((child, node) for child in reversed(node.child_nodes()))


def find_nodes(root: Optional[ASTNode], predicate: NodePredicate) -> list[ASTNode]:
    """Return every node matching predicate, in pre-order."""
    return [node for node in iter_nodes(root) if predicate(node)]


def find_node(root: Optional[ASTNode], predicate: NodePredicate) -> Optional[ASTNode]:
    """Return the first pre-order node matching predicate, or None."""
    found: list[ASTNode] = []

    def enter(node: ASTNode, parent: Optional[ASTNode]) -> object:
        if predicate(node):
            found.append(node)
            return STOP
        return None

    walk(root, enter=enter)
    return found[0] if found else None


def get_node_path(root: Optional[ASTNode], target: ASTNode) -> list[ASTNode]:
    """
    Return the ancestors of target from root down to target, inclusive.

    A single-element list when target is root; an empty list when target is not
    in the tree. Nodes are compared by identity.
    """
    path: list[ASTNode] = []
    found = False

    def enter(node: ASTNode, parent: Optional[ASTNode]) -> object:
        nonlocal found
        path.append(node)
        if node is target:
            found = True
            return STOP
        return None

    def exit(node: ASTNode, parent: Optional[ASTNode]) -> None:
        path.pop()

    walk(root, enter=enter, exit=exit)
    return path if found else []


def count_nodes(root: Optional[ASTNode]) -> int:
    """Total number of nodes under root (including root)."""
    return sum(1 for _ in iter_nodes(root))
