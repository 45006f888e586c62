"""Tests for tx.origin, timestamp, randomness, pragma and deprecated-construct rules."""

import pytest
from builders import (
    assembly,
    binop,
    block,
    call_named,
    contract,
    function,
    ident,
    member,
    num,
    pragma,
    run_rule,
    source_unit,
    stmt,
    throw,
)

from solsentry.rules.security.deprecated import (
    AvoidSha3Rule,
    AvoidSuicideRule,
    AvoidThrowRule,
    NoInlineAssemblyRule,
)
from solsentry.rules.security.environment import (
    FloatingPragmaRule,
    OutdatedCompilerRule,
    TimestampDependenceRule,
    TxOriginRule,
    WeakPrngRule,
    contains_block_value,
    is_timestamp,
    pragma_versions,
)


def _in_function(*statements):
    body = block(*statements, line=2, end_line=6)
    return source_unit(contract("C", function("f", body, line=2)))


def _timestamp(line=3):
    return member(ident("block", line), "timestamp")


def test_tx_origin_reported():
    check = stmt(call_named("require", binop("==", member(ident("tx", 3), "origin"), ident("owner", 3)), line=3))
    issues = run_rule(TxOriginRule(), _in_function(check))
    assert len(issues) == 1
    assert issues[0].location.start.line == 3


def test_msg_sender_is_clean():
    check = stmt(call_named("require", binop("==", member(ident("msg", 3), "sender"), ident("owner", 3)), line=3))
    assert run_rule(TxOriginRule(), _in_function(check)) == []


def test_is_timestamp_sees_through_arithmetic():
    assert is_timestamp(_timestamp())
    assert is_timestamp(ident("now"))
    assert is_timestamp(binop("+", _timestamp(), num(60)))
    assert not is_timestamp(member(ident("block", 1), "number"))


def test_timestamp_strict_equality():
    check = stmt(binop("==", _timestamp(), ident("deadline", 3)))
    issues = run_rule(TimestampDependenceRule(), _in_function(check))
    assert len(issues) == 1
    assert "==" in issues[0].message


def test_timestamp_range_comparison_is_clean():
    check = stmt(binop(">=", _timestamp(), ident("deadline", 3)))
    assert run_rule(TimestampDependenceRule(), _in_function(check)) == []


def test_timestamp_modulo_and_now():
    statements = [stmt(binop("%", _timestamp(3), num(2, 3))), stmt(ident("now", 4))]
    issues = run_rule(TimestampDependenceRule(), _in_function(*statements))
    assert [i.location.start.line for i in issues] == [3, 4]


def test_weak_prng_modulo_of_block_value():
    seed = binop("%", member(ident("block", 3), "number"), num(10, 3))
    assert len(run_rule(WeakPrngRule(), _in_function(stmt(seed)))) == 1


def test_weak_prng_hash_of_block_value():
    hashed = call_named("keccak256", call_named("blockhash", ident("n", 3), line=3), line=3)
    assert len(run_rule(WeakPrngRule(), _in_function(stmt(hashed)))) == 1


def test_contains_block_value_ignores_other_members():
    assert not contains_block_value(member(ident("msg", 1), "value"))
    assert contains_block_value(binop("+", ident("x"), member(ident("block", 1), "prevrandao")))


@pytest.mark.parametrize("value,floating", [("^0.8.0", True), (">=0.7.0 <0.9.0", True), ("0.8.20", False)])
def test_floating_pragma(value, floating):
    issues = run_rule(FloatingPragmaRule(), source_unit(pragma(value)))
    assert bool(issues) is floating


def test_pragma_versions():
    assert pragma_versions(">=0.7.0 <0.9") == [(0, 7, 0), (0, 9, 0)]


@pytest.mark.parametrize("value,outdated", [("0.4.24", True), ("^0.8.17", True), ("0.8.20", False)])
def test_outdated_compiler(value, outdated):
    issues = run_rule(OutdatedCompilerRule(), source_unit(pragma(value)))
    assert len(issues) == (1 if outdated else 0)


def test_outdated_compiler_reports_once_per_pragma():
    issues = run_rule(OutdatedCompilerRule(), source_unit(pragma(">=0.4.0 <0.5.0")))
    assert len(issues) == 1


def test_deprecated_calls():
    tree = _in_function(
        stmt(call_named("sha3", ident("x", 3), line=3)),
        stmt(call_named("suicide", ident("owner", 4), line=4)),
        stmt(call_named("keccak256", ident("x", 5), line=5)),
    )
    assert len(run_rule(AvoidSha3Rule(), tree)) == 1
    assert len(run_rule(AvoidSuicideRule(), tree)) == 1


def test_throw_and_assembly():
    tree = _in_function(throw(line=3), assembly(line=4))
    throws = run_rule(AvoidThrowRule(), tree)
    blocks = run_rule(NoInlineAssemblyRule(), tree)
    assert [i.location.start.line for i in throws] == [3]
    assert [i.location.start.line for i in blocks] == [4]
