"""Tests for the text-level style rules."""

import pytest
from builders import make_context, source_unit

from solsentry.rules.lint.style import (
    BraceStyleRule,
    IndentRule,
    MaxLineLengthRule,
    NoTrailingWhitespaceRule,
    QuotesRule,
    SpaceAfterCommaRule,
    scan_source,
)


def _check(rule, source, rules=None):
    context = make_context(source_unit(), source, rules)
    rule.analyze(context)
    return context.get_issues()


def _starts(issues):
    return [(i.location.start.line, i.location.start.column) for i in issues]


def test_scan_source_skips_comments():
    lines = ['a // "x"', "/* ,", " , */b", "'s',"]
    tokens = list(scan_source(lines))
    assert (1, 0, "code", "a") in tokens
    assert all(text != '"x"' for _, _, _, text in tokens)
    assert (3, 5, "code", "b") in tokens
    assert (4, 0, "string", "'s'") in tokens
    assert (4, 3, "code", ",") in tokens


def test_scan_source_escaped_quote():
    tokens = list(scan_source(["'it\\'s'"]))
    assert tokens == [(1, 0, "string", "'it\\'s'")]


def test_max_line_length():
    source = "x" * 121 + "\n" + "y" * 120 + "\n"
    issues = _check(MaxLineLengthRule(), source)
    assert _starts(issues) == [(1, 120)]
    assert issues[0].message == "Line length 121 exceeds maximum of 120."


def test_max_line_length_options():
    source = "// " + "c" * 30 + "\n" + 'string s = "' + "s" * 20 + '";\n' + "z" * 31 + "\n"
    rules = {"lint/max-line-length": ["info", {"max": 30, "ignoreComments": True, "ignoreStrings": True}]}
    assert _starts(_check(MaxLineLengthRule(), source, rules)) == [(3, 30)]


def test_trailing_whitespace():
    issues = _check(NoTrailingWhitespaceRule(), "uint x; \t\nuint y;\r\n\n")
    assert len(issues) == 1
    start, end = issues[0].location.start, issues[0].location.end
    assert (start.line, start.column, end.column) == (1, 7, 9)


def test_indent_default_four():
    source = "contract C {\n    uint a;\n   uint b;\n\tuint c;\n    /**\n     * doc\n     */\n}\n"
    issues = _check(IndentRule(), source)
    assert _starts(issues) == [(3, 0), (4, 0)]
    assert issues[0].message == "Indentation of 3 spaces is not a multiple of 4."
    assert issues[1].message == "Tab used for indentation; use spaces."


def test_indent_two_spaces_option():
    rules = {"lint/indent": ["info", {"spaces": 2}]}
    assert _check(IndentRule(), "a\n  b\n   c\n", rules)[0].location.start.line == 3


@pytest.mark.parametrize("spaces", [3, "4", True])
def test_indent_invalid_width_skips(spaces):
    assert _check(IndentRule(), "   x\n", {"lint/indent": ["info", {"spaces": spaces}]}) == []


def test_quotes_default_single():
    source = "string a = \"double\";\nstring b = 'single';\nstring c = \"it's\";\nbytes d = hex\"00ff\";\n// \"comment\"\n"
    issues = _check(QuotesRule(), source)
    assert _starts(issues) == [(1, 11)]
    assert issues[0].message == "Use single quotes instead of \"."


def test_quotes_double_without_escape_avoidance():
    source = "string a = 'x';\nstring b = 'say \"hi\"';\n"
    rules = {"lint/quotes": ["info", {"style": "double", "avoidEscape": False}]}
    assert [i.location.start.line for i in _check(QuotesRule(), source, rules)] == [1, 2]


def test_brace_style_1tbs():
    source = "contract C\n{\n    function f() public {\n    }\n}\n"
    issues = _check(BraceStyleRule(), source)
    assert _starts(issues) == [(2, 0)]
    assert issues[0].message == "Opening brace after 'contract' should be on the same line."


def test_brace_style_allman():
    source = "contract C\n{\n    function f() public {\n    }\n    function g() public {}\n}\n"
    issues = _check(BraceStyleRule(), source, {"lint/brace-style": ["info", {"style": "allman"}]})
    assert _starts(issues) == [(3, 24)]


def test_space_after_comma():
    source = "f(a,b);\nf(a, b);\ns = 'x,y';\ng(a,\n  b); // c,d\n"
    issues = _check(SpaceAfterCommaRule(), source)
    assert _starts(issues) == [(1, 3)]
