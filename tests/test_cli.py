"""Tests for the typer CLI and the rich report it prints."""

import json
from io import StringIO

from rich.console import Console
from typer.testing import CliRunner

from solsentry.config import get_default_rules
from solsentry.findings.models import (
    AnalysisResult,
    Category,
    FileAnalysisResult,
    Issue,
    IssueMetadata,
    ParseError,
    RuleFailure,
    Severity,
    SourceRange,
)
from solsentry.main import _parse_rule_overrides, app
from solsentry.reporting.console import print_result

runner = CliRunner()


def _loc(line, end_line=None):
    return {"start": {"line": line, "column": 0}, "end": {"line": end_line or line, "column": 20}}


def _wallet_ast():
    origin = {
        "type": "MemberAccess",
        "expression": {"type": "Identifier", "name": "tx", "loc": _loc(3)},
        "memberName": "origin",
        "loc": _loc(3),
    }
    function = {
        "type": "FunctionDefinition",
        "name": "owner",
        "parameters": [],
        "modifiers": [],
        "visibility": "public",
        "stateMutability": "view",
        "body": {
            "type": "Block",
            "statements": [{"type": "ReturnStatement", "expression": origin, "loc": _loc(3)}],
            "loc": _loc(2, 4),
        },
        "loc": _loc(2, 4),
    }
    contract = {
        "type": "ContractDefinition",
        "name": "Wallet",
        "kind": "contract",
        "baseContracts": [],
        "subNodes": [function],
        "loc": _loc(1, 5),
    }
    return {"type": "SourceUnit", "children": [contract], "loc": _loc(1, 5)}


WALLET_SOURCE = (
    "contract Wallet {\n"
    "    function owner() public view returns (address) {\n"
    "        return tx.origin;\n"
    "    }\n"
    "}\n"
)


def _project(tmp_path):
    (tmp_path / "Wallet.sol").write_text(WALLET_SOURCE)
    (tmp_path / "Wallet.sol.ast.json").write_text(json.dumps(_wallet_ast()))
    return tmp_path


def test_parse_rule_overrides():
    assert _parse_rule_overrides(["lint/indent=off", " security/tx-origin = info "]) == {
        "lint/indent": "off",
        "security/tx-origin": "info",
    }
    assert _parse_rule_overrides(None) == {}


def test_analyze_exits_nonzero_on_errors(tmp_path):
    result = runner.invoke(app, ["analyze", str(_project(tmp_path))])
    assert result.exit_code == 1
    assert "tx.origin" in result.output


def test_analyze_passes_when_error_rule_downgraded(tmp_path):
    result = runner.invoke(app, ["analyze", str(_project(tmp_path)), "-r", "security/tx-origin=info"])
    assert result.exit_code == 0


def test_analyze_rejects_bad_override(tmp_path):
    result = runner.invoke(app, ["analyze", str(_project(tmp_path)), "--rule", "security/tx-origin"])
    assert result.exit_code != 0


def test_analyze_rejects_unknown_severity(tmp_path):
    result = runner.invoke(app, ["analyze", str(_project(tmp_path)), "--rule", "lint/indent=loud"])
    assert result.exit_code != 0


def test_missing_ast_fails_run(tmp_path):
    (tmp_path / "Orphan.sol").write_text("contract Orphan {}\n")
    result = runner.invoke(app, ["analyze", str(tmp_path), "--category", "lint"])
    assert result.exit_code == 1


def test_list_rules_counts_every_rule():
    result = runner.invoke(app, ["list-rules"])
    assert result.exit_code == 0
    assert f"{len(get_default_rules())} rule(s)" in result.output


def _render(result, verbose=False):
    buffer = StringIO()
    print_result(result, verbose=verbose, console=Console(file=buffer, width=200, color_system=None))
    return buffer.getvalue()


def test_report_lists_issue_failure_and_parse_error():
    issue = Issue(
        rule_id="security/tx-origin",
        severity=Severity.ERROR,
        category=Category.SECURITY,
        message="Avoid tx.origin",
        location=SourceRange.from_points(3, 15, 3, 24),
        file_path="Wallet.sol",
        metadata=IssueMetadata(suggestion="Use msg.sender"),
    )
    result = AnalysisResult(
        files=(
            FileAnalysisResult(
                file_path="Wallet.sol",
                issues=(issue,),
                rule_failures=(RuleFailure(rule_id="lint/quotes", message="ValueError: bad"),),
            ),
            FileAnalysisResult(file_path="Broken.sol", parse_errors=(ParseError(message="Unexpected token"),)),
        )
    )
    output = _render(result)
    assert "Avoid tx.origin" in output
    assert "Use msg.sender" in output
    assert "lint/quotes" in output
    assert "Unexpected token" in output


def test_report_with_no_files():
    assert "No Solidity files analyzed" in _render(AnalysisResult())
