"""Tests for solsentry.walker: order, SKIP/STOP, node paths."""

from builders import binop, block, call_named, contract, function, ident, num, source_unit, stmt

from solsentry.walker import (
    SKIP,
    STOP,
    count_nodes,
    find_node,
    find_nodes,
    get_node_path,
    iter_nodes,
    iter_with_parents,
    walk,
)


def _tree():
    a = stmt(binop("+", ident("a", 3), num(1, 3)), line=3)
    b = stmt(call_named("foo", ident("b", 4), line=4), line=4)
    func = function("f", block(a, b, line=2, end_line=5), line=2)
    return source_unit(contract("C", func, line=1))


def test_walk_visits_every_node_once_in_document_order():
    root = _tree()
    entered = []
    walk(root, enter=lambda n, p: entered.append(n))
    assert len(entered) == count_nodes(root)
    assert len({id(n) for n in entered}) == len(entered)
    names = [n.name for n in entered if n.type == "Identifier"]
    assert names == ["a", "foo", "b"]


def test_exit_runs_after_children():
    root = _tree()
    events = []
    walk(
        root,
        enter=lambda n, p: events.append(("enter", n.type)),
        exit=lambda n, p: events.append(("exit", n.type)),
    )
    assert events[0] == ("enter", "SourceUnit")
    assert events[-1] == ("exit", "SourceUnit")
    assert events.count(("enter", "Identifier")) == events.count(("exit", "Identifier"))


def test_parent_is_passed():
    root = _tree()
    pairs = list(iter_with_parents(root))
    assert pairs[0] == (root, None)
    for node, parent in pairs[1:]:
        assert node in parent.child_nodes()


def test_skip_prunes_subtree_but_runs_exit():
    root = _tree()
    entered, exited = [], []

    def enter(node, parent):
        entered.append(node.type)
        if node.type == "FunctionDefinition":
            return SKIP
        return None

    walk(root, enter=enter, exit=lambda n, p: exited.append(n.type))
    assert "Block" not in entered
    assert "FunctionDefinition" in exited


def test_stop_aborts_everything():
    root = _tree()
    entered, exited = [], []

    def enter(node, parent):
        entered.append(node.type)
        if node.type == "Block":
            return STOP
        return None

    walk(root, enter=enter, exit=lambda n, p: exited.append(n.type))
    assert entered[-1] == "Block"
    assert exited == []


def test_find_node_and_find_nodes():
    root = _tree()
    first = find_node(root, lambda n: n.type == "Identifier")
    assert first.name == "a"
    assert [n.name for n in find_nodes(root, lambda n: n.type == "Identifier")] == ["a", "foo", "b"]
    assert find_node(root, lambda n: n.type == "WhileStatement") is None


def test_get_node_path():
    root = _tree()
    target = find_node(root, lambda n: n.type == "NumberLiteral")
    path = get_node_path(root, target)
    assert path[0] is root
    assert path[-1] is target
    assert [n.type for n in path] == [
        "SourceUnit", "ContractDefinition", "FunctionDefinition", "Block",
        "ExpressionStatement", "BinaryOperation", "NumberLiteral",
    ]
    assert get_node_path(root, root) == [root]
    assert get_node_path(root, ident("elsewhere")) == []


def test_none_root_is_empty():
    assert list(iter_nodes(None)) == []
    assert find_node(None, lambda n: True) is None
    walk(None, enter=lambda n, p: None)
