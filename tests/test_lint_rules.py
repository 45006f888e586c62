"""Tests for the tree-based lint rules: naming, visibility, blocks, best practices, gas."""

from builders import (
    array_type,
    binop,
    block,
    boolean,
    call,
    call_named,
    contract,
    elementary,
    event,
    for_,
    function,
    ident,
    if_,
    import_,
    local,
    member,
    modifier_call,
    modifier_def,
    num,
    run_rule,
    source_unit,
    state_var,
    stmt,
    string,
    unary,
    user_type,
    var,
    while_,
)

from solsentry.rules.lint.best_practices import (
    BooleanEqualityRule,
    ImportsOnTopRule,
    MagicNumbersRule,
    NoConsoleRule,
    OneContractPerFileRule,
    RequireRevertReasonRule,
    UnusedVariablesRule,
)
from solsentry.rules.lint.blocks import (
    FunctionComplexityRule,
    FunctionMaxLinesRule,
    NoEmptyBlocksRule,
    cyclomatic_complexity,
)
from solsentry.rules.lint.gas import CacheArrayLengthRule, GasCustomErrorsRule, GasIndexedEventsRule
from solsentry.rules.lint.naming import (
    ContractNameCamelCaseRule,
    FunctionNameMixedcaseRule,
    VarNameMixedcaseRule,
    is_mixed_case,
    is_pascal_case,
)
from solsentry.rules.lint.visibility import ExplicitVisibilityRule, PayableFallbackRule, is_fallback


def _in_function(*statements, members=()):
    body = block(*statements, line=3, end_line=12)
    return source_unit(contract("C", *members, function("f", body, line=3)))


def _messages(rule, tree, rules=None):
    return [i.message for i in run_rule(rule, tree, rules=rules)]


# Naming

def test_case_predicates():
    assert is_pascal_case("MyToken")
    assert not is_pascal_case("my_token")
    assert is_mixed_case("totalSupply")
    assert is_mixed_case("_balance")
    assert not is_mixed_case("__balance")
    assert not is_mixed_case("Total")


def test_contract_names():
    tree = source_unit(contract("my_token", line=1, end_line=2), contract("ierc20", kind="interface", line=3))
    assert _messages(ContractNameCamelCaseRule(), tree) == [
        "Contract name 'my_token' should be in CapWords (PascalCase).",
        "Interface name 'ierc20' should be in CapWords (PascalCase).",
    ]


def test_function_names():
    tree = source_unit(
        contract(
            "C",
            function("GetBalance", line=2),
            function("_helper", line=3),
            function("", line=4, constructor=True),
            function("get_value", line=5),
        )
    )
    assert _messages(FunctionNameMixedcaseRule(), tree) == [
        "Function name 'GetBalance' should be in mixedCase.",
        "Function name 'get_value' should be in mixedCase.",
    ]


def test_variable_names_exempt_constants():
    tree = source_unit(
        contract(
            "C",
            state_var("Total_Supply", line=2),
            state_var("MAX_SUPPLY", line=3, constant=True),
            state_var("OWNER", elementary("address"), line=4, immutable=True),
            state_var("balance", line=5),
        )
    )
    assert _messages(VarNameMixedcaseRule(), tree) == ["Variable name 'Total_Supply' should be in mixedCase."]


# Visibility

def test_is_fallback():
    assert is_fallback(function("", fallback=True))
    assert is_fallback(function(""))
    assert not is_fallback(function("", receive=True))
    assert not is_fallback(function("", constructor=True))


def test_explicit_visibility():
    tree = source_unit(
        contract(
            "C",
            state_var("count", line=2, visibility="default"),
            state_var("owner", line=3, visibility="public"),
            function("run", line=4, visibility=None),
            function("", line=5, visibility="default"),
            function("", line=6, constructor=True, visibility=None),
        )
    )
    assert _messages(ExplicitVisibilityRule(), tree) == [
        "State variable 'count' has no explicit visibility.",
        "Function 'run' has no explicit visibility.",
        "Function 'fallback' has no explicit visibility.",
    ]


def test_payable_fallback():
    plain = function("", line=2, visibility="external", fallback=True)
    payable = function("", line=3, visibility="external", fallback=True, mutability="payable")
    receive = function("", line=4, visibility="external", receive=True, mutability="payable")
    issues = run_rule(PayableFallbackRule(), source_unit(contract("C", plain, payable, receive)))
    assert [i.location.start.line for i in issues] == [2]


# Blocks

def test_empty_blocks():
    empty = block(line=3, end_line=3)
    tree = source_unit(
        contract("Empty", line=1, end_line=1),
        contract(
            "C",
            function("f", block(line=3, end_line=3), line=3),
            function("", block(line=4, end_line=4), line=4, receive=True),
            function("", block(line=5, end_line=5), line=5, constructor=True, modifiers=[modifier_call("Base")]),
            modifier_def("guard", block(line=6, end_line=6), line=6),
            function(
                "g",
                block(
                    if_(ident("x", 8), empty),
                    while_(ident("y", 9), block(line=9, end_line=9), line=9),
                    line=7, end_line=10,
                ),
                line=7,
            ),
            line=2, end_line=11,
        ),
        contract("I", kind="interface", line=12, end_line=12),
    )
    assert _messages(NoEmptyBlocksRule(), tree) == [
        "Empty contract 'Empty'.",
        "Empty function 'f' body.",
        "Empty modifier 'guard'.",
        "Empty if/else block.",
        "Empty loop body.",
    ]


def test_empty_constructor_without_base_calls():
    tree = source_unit(contract("C", function("", block(line=2, end_line=2), line=2, constructor=True)))
    assert _messages(NoEmptyBlocksRule(), tree) == ["Empty constructor body."]


def _long_function(length):
    return source_unit(contract("C", function("big", block(line=2, end_line=length + 1), line=2)))


def test_function_max_lines_default():
    assert _messages(FunctionMaxLinesRule(), _long_function(50)) == []
    assert _messages(FunctionMaxLinesRule(), _long_function(51)) == ["Function 'big' has 51 lines (max 50)."]


def test_function_max_lines_option():
    rules = {"lint/function-max-lines": ["warning", {"max": 10}]}
    assert len(run_rule(FunctionMaxLinesRule(), _long_function(11), rules=rules)) == 1


def test_invalid_max_skips_rule():
    rules = {"lint/function-max-lines": ["warning", {"max": "ten"}]}
    assert run_rule(FunctionMaxLinesRule(), _long_function(80), rules=rules) == []


def _branchy(count):
    branches = [if_(binop("&&", ident("a", n), ident("b", n)), block(stmt(ident("x", n)))) for n in range(3, 3 + count)]
    return function("branchy", block(*branches, line=2, end_line=3 + count), line=2)


def test_cyclomatic_complexity_counts_branches_and_operators():
    assert cyclomatic_complexity(_branchy(2)) == 5


def test_function_complexity():
    tree = source_unit(contract("C", _branchy(5)))
    assert _messages(FunctionComplexityRule(), tree) == ["Function 'branchy' has cyclomatic complexity 11 (max 10)."]
    assert run_rule(FunctionComplexityRule(), tree, rules={"lint/function-complexity": ["warning", {"max": 20}]}) == []


# Best practices

def test_magic_numbers():
    tree = _in_function(
        stmt(binop("*", ident("x", 4), num(42, 4))),
        stmt(binop("+", ident("x", 5), num(1, 5))),
        stmt(unary("-", num(1, 6))),
        stmt(num("0x10", 7)),
        members=(
            state_var("LIMIT", line=1, constant=True, init=num(1000, 1)),
            state_var("slots", array_type(elementary("uint256"), length=num(10, 2)), line=2),
        ),
    )
    assert _messages(MagicNumbersRule(), tree) == [
        "Magic number 42; use a named constant.",
        "Magic number 0x10; use a named constant.",
    ]


def test_magic_numbers_allowed_option():
    tree = _in_function(stmt(num(42, 4)))
    rules = {"lint/magic-numbers": ["warning", {"allowedNumbers": [42]}]}
    assert run_rule(MagicNumbersRule(), tree, rules=rules) == []


def test_require_and_revert_reasons():
    tree = _in_function(
        stmt(call_named("require", ident("ok", 4), line=4)),
        stmt(call_named("require", ident("ok", 5), string("fail", 5), line=5)),
        stmt(call_named("revert", line=6)),
        stmt(call_named("revert", string("fail", 7), line=7)),
    )
    issues = run_rule(RequireRevertReasonRule(), tree)
    assert [i.location.start.line for i in issues] == [4, 6]


def test_no_console():
    tree = source_unit(
        import_("hardhat/console.sol", line=1),
        import_("forge-std/console2.sol", line=2),
        import_("./Consoles.sol", line=3),
        contract("C", function("f", block(stmt(call(member(ident("console", 6), "log"), string("hi", 6))),
                                          line=5, end_line=7), line=5), line=4),
    )
    assert _messages(NoConsoleRule(), tree) == [
        "Console import 'hardhat/console.sol' should be removed.",
        "Console import 'forge-std/console2.sol' should be removed.",
        "Console call 'console.log' should be removed.",
    ]


def test_boolean_equality():
    tree = _in_function(
        stmt(binop("==", ident("flag", 4), boolean(True, 4))),
        stmt(binop("!=", boolean(False, 5), ident("flag", 5))),
        stmt(binop("==", ident("a", 6), ident("b", 6))),
    )
    assert _messages(BooleanEqualityRule(), tree) == [
        "Unnecessary comparison with a boolean literal; use the value directly or negate it with !.",
        "Unnecessary comparison with a boolean literal; use ! instead of !=.",
    ]


def test_imports_on_top():
    tree = source_unit(import_("./A.sol", line=1), contract("C", line=2, end_line=3), import_("./B.sol", line=4))
    issues = run_rule(ImportsOnTopRule(), tree)
    assert [i.location.start.line for i in issues] == [4]


def test_one_contract_per_file():
    single = source_unit(contract("A"))
    double = source_unit(contract("A", line=1, end_line=2), contract("B", kind="library", line=3))
    assert run_rule(OneContractPerFileRule(), single) == []
    issues = run_rule(OneContractPerFileRule(), double)
    assert len(issues) == 1
    assert "(A, B)" in issues[0].message
    assert issues[0].location.start.line == 1


def test_unused_variables():
    body = block(
        local("unused", line=4),
        local("total", init=ident("amount", 5), line=5),
        stmt(ident("total", 6)),
        line=3, end_line=7,
    )
    params = [var("amount", line=3), var("extra", line=3), var("_ignored", line=3), var("limit", line=3)]
    checked = function("f", body, params=params, line=3, modifiers=[modifier_call("below", ident("limit", 3))])
    messages = _messages(UnusedVariablesRule(), source_unit(contract("C", checked)))
    assert messages == ["Parameter 'extra' is never used.", "Local variable 'unused' is never used."]


# Gas

def test_gas_custom_errors():
    tree = _in_function(
        stmt(call_named("require", ident("ok", 4), string("fail", 4), line=4)),
        stmt(call_named("revert", string("fail", 5), line=5)),
        stmt(call_named("revert", call_named("Unauthorized", line=6), line=6)),
        stmt(call_named("require", ident("ok", 7), line=7)),
    )
    issues = run_rule(GasCustomErrorsRule(), tree)
    assert [i.location.start.line for i in issues] == [4, 5]


def test_gas_indexed_events():
    transfer = event(
        "Transfer",
        var("from", elementary("address"), indexed=True, line=2),
        var("to", elementary("address"), line=2),
        var("amount", elementary("uint256"), line=2),
        var("kind", user_type("Kind"), line=2),
        line=2,
    )
    assert _messages(GasIndexedEventsRule(), source_unit(contract("C", transfer))) == [
        "Parameter 'to' (address) of event 'Transfer' could be indexed.",
        "Parameter 'kind' (Kind) of event 'Transfer' could be indexed.",
    ]


def test_gas_indexed_events_full():
    full = event(
        "Moved",
        *[var(n, elementary("address"), indexed=True, line=2) for n in ("a", "b", "c")],
        var("d", elementary("address"), line=2),
        line=2,
    )
    assert run_rule(GasIndexedEventsRule(), source_unit(contract("C", full))) == []


def _length_loop(*statements):
    condition = binop("<", ident("i", 4), member(ident("items", 4), "length"))
    return for_(None, condition, unary("++", ident("i", 4), prefix=False), block(*statements, line=4, end_line=6), line=4)


def test_cache_array_length():
    issues = run_rule(CacheArrayLengthRule(), _in_function(_length_loop(stmt(ident("x", 5)))))
    assert len(issues) == 1
    assert "'items.length'" in issues[0].message


def test_array_modified_in_loop_is_not_cached():
    pushes = stmt(call(member(ident("items", 5), "push"), num(1, 5)))
    assert run_rule(CacheArrayLengthRule(), _in_function(_length_loop(pushes))) == []
