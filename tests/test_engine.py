"""Tests for solsentry.engine: fault isolation, parse errors, ordering, disabled rules."""

import json
import logging

import pytest
from builders import block, call, contract, function, ident, member, source_unit, stmt

from solsentry.config import ResolvedConfig
from solsentry.engine import AnalysisEngine, sidecar_ast_loader
from solsentry.findings.models import Category, RuleMetadata, Severity
from solsentry.rules.base import Rule
from solsentry.rules.security.environment import TxOriginRule


class AlwaysReportsRule(Rule):
    metadata = RuleMetadata(
        id="lint/always",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Always",
        description="Reports the root of every file.",
        recommendation="None.",
    )

    def analyze(self, context):
        self.report(context, context.ast, "always")


class ExplodingRule(Rule):
    metadata = RuleMetadata(
        id="security/exploding",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Exploding",
        description="Reports once, then raises.",
        recommendation="None.",
    )

    def analyze(self, context):
        self.report(context, context.ast, "partial")
        raise RuntimeError("boom")


SOURCE = "contract C {\n  function f() public {\n    require(tx.origin == owner);\n  }\n}\n"


def _tree():
    check = stmt(call(ident("require", 3), member(ident("tx", 3), "origin")))
    return source_unit(contract("C", function("f", block(check, line=2, end_line=4), line=2), line=1, end_line=5))


def test_rule_failure_is_isolated(caplog):
    engine = AnalysisEngine([ExplodingRule(), AlwaysReportsRule()])
    with caplog.at_level(logging.ERROR):
        result = engine.analyze_source("C.sol", SOURCE, _tree(), ResolvedConfig())
    assert [i.message for i in result.issues] == ["always"]
    assert len(result.rule_failures) == 1
    failure = result.rule_failures[0]
    assert failure.rule_id == "security/exploding"
    assert failure.message == "RuntimeError: boom"
    assert "security/exploding" in caplog.text


def test_missing_ast_is_parse_error():
    result = AnalysisEngine([AlwaysReportsRule()]).analyze_source("C.sol", SOURCE, None, ResolvedConfig())
    assert result.issues == ()
    assert result.parse_errors[0].message == "No AST available for file"


def test_disabled_rule_does_not_run():
    engine = AnalysisEngine([AlwaysReportsRule(), TxOriginRule()])
    config = ResolvedConfig(rules={"lint/always": "off"})
    result = engine.analyze_source("C.sol", SOURCE, _tree(), config)
    assert [i.rule_id for i in result.issues] == ["security/tx-origin"]


def test_severity_override_applies():
    config = ResolvedConfig(rules={"security/tx-origin": "info"})
    result = AnalysisEngine([TxOriginRule()]).analyze_source("C.sol", SOURCE, _tree(), config)
    assert result.issues[0].severity is Severity.INFO


def _write_project(tmp_path, names):
    ast = json.dumps({"type": "SourceUnit", "children": [], "loc": {
        "start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 1}}})
    paths = []
    for name in names:
        path = tmp_path / name
        path.write_text("// empty\n")
        (tmp_path / f"{name}.ast.json").write_text(ast)
        paths.append(path)
    return paths


def test_analyze_file_without_sidecar(tmp_path):
    path = tmp_path / "Lonely.sol"
    path.write_text("contract Lonely {}\n")
    result = AnalysisEngine([AlwaysReportsRule()]).analyze_file(path, ResolvedConfig())
    assert result.issues == ()
    assert len(result.parse_errors) == 1
    assert "Cannot read AST file" in result.parse_errors[0].message


def test_analyze_file_malformed_ast(tmp_path):
    path = tmp_path / "Bad.sol"
    path.write_text("contract Bad {}\n")
    (tmp_path / "Bad.sol.ast.json").write_text("{not json")
    result = AnalysisEngine([AlwaysReportsRule()]).analyze_file(path, ResolvedConfig())
    error = result.parse_errors[0]
    assert error.message.startswith("Malformed AST JSON")
    assert error.line == 1


def test_custom_loader(tmp_path):
    path = tmp_path / "C.sol"
    path.write_text(SOURCE)
    result = AnalysisEngine([TxOriginRule()]).analyze_file(path, ResolvedConfig(), ast_loader=lambda p: _tree())
    assert len(result.issues) == 1
    assert result.file_path == str(path)


@pytest.mark.parametrize("jobs", [1, 4])
def test_analyze_keeps_input_order(tmp_path, jobs):
    names = [f"F{i}.sol" for i in range(8)]
    paths = _write_project(tmp_path, names)
    seen = []
    result = AnalysisEngine([AlwaysReportsRule()]).analyze(
        paths, ResolvedConfig(), jobs=jobs, on_progress=lambda path, _: seen.append(path.name),
    )
    assert [f.file_path for f in result.files] == [str(p) for p in paths]
    assert seen == names
    assert result.total_issues == 8
    assert not result.has_parse_errors


def test_one_bad_file_does_not_stop_the_run(tmp_path):
    paths = _write_project(tmp_path, ["A.sol", "B.sol"])
    (tmp_path / "A.sol.ast.json").unlink()
    result = AnalysisEngine([AlwaysReportsRule()]).analyze(paths, ResolvedConfig(), ast_loader=sidecar_ast_loader())
    assert result.has_parse_errors
    assert result.files[0].parse_errors
    assert len(result.files[1].issues) == 1


def test_unloadable_ast_does_not_stop_the_run(tmp_path):
    paths = _write_project(tmp_path, ["Deep.sol", "Located.sol", "Good.sol"])
    (tmp_path / "Deep.sol.ast.json").write_text(
        '{"type": "SourceUnit", "children": [' + '{"type": "Block", "statements": [' * 5000
        + "]}" * 5000 + "]}"
    )
    (tmp_path / "Located.sol.ast.json").write_text(
        json.dumps({"type": "SourceUnit", "children": [], "loc": {"start": {"line": "?"}}})
    )
    result = AnalysisEngine([AlwaysReportsRule()]).analyze(paths, ResolvedConfig())
    assert [bool(f.parse_errors) for f in result.files] == [True, True, False]
    assert len(result.files[2].issues) == 1


def test_unexpected_loader_fault_is_recorded_per_file(tmp_path, caplog):
    paths = _write_project(tmp_path, ["A.sol", "B.sol"])
    fallback = sidecar_ast_loader()

    def loader(path):
        if path.name == "A.sol":
            raise KeyError("children")
        return fallback(path)

    with caplog.at_level(logging.ERROR):
        result = AnalysisEngine([AlwaysReportsRule()]).analyze(paths, ResolvedConfig(), ast_loader=loader)
    assert result.files[0].parse_errors[0].message.startswith("Analysis failed: KeyError")
    assert len(result.files[1].issues) == 1
    assert "A.sol" in caplog.text
