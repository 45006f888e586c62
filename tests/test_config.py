"""Tests for solsentry.config: severity overrides, options, default rule list."""

import pytest

from solsentry.config import (
    ResolvedConfig,
    get_default_config,
    get_default_rules,
    get_enabled_rules,
    parse_severity,
)
from solsentry.errors import ConfigError
from solsentry.findings.models import Category, Severity


def test_parse_severity_aliases():
    assert parse_severity("r", "off") is None
    assert parse_severity("r", 0) is None
    assert parse_severity("r", "WARN") is Severity.WARNING
    assert parse_severity("r", 1) is Severity.WARNING
    assert parse_severity("r", 2) is Severity.ERROR
    assert parse_severity("r", "info") is Severity.INFO


@pytest.mark.parametrize("value", ["loud", 3, True])
def test_parse_severity_rejects_unknown(value):
    with pytest.raises(ConfigError):
        parse_severity("r", value)


def test_invalid_entry_fails_at_construction():
    with pytest.raises(ConfigError):
        ResolvedConfig(rules={"lint/indent": "sometimes"})
    with pytest.raises(ConfigError):
        ResolvedConfig(rules={"lint/indent": []})
    with pytest.raises(ConfigError):
        ResolvedConfig(rules={"lint/indent": ["warning", "not a mapping"]})


def test_severity_override_and_options():
    config = ResolvedConfig(rules={"lint/indent": ["error", {"spaces": 2}], "lint/quotes": "off"})
    assert config.severity_for("lint/indent", Severity.INFO) is Severity.ERROR
    assert config.rule_options("lint/indent") == {"spaces": 2}
    assert config.severity_for("lint/other", Severity.INFO) is Severity.INFO
    assert config.rule_options("lint/other") == {}
    assert not config.is_enabled("lint/quotes")
    assert config.is_enabled("lint/indent")
    assert config.is_enabled("lint/unconfigured")


def test_default_rules_are_unique_and_fresh():
    rules = get_default_rules()
    ids = [r.id for r in rules]
    assert len(ids) == len(set(ids))
    assert "security/reentrancy" in ids
    assert "lint/indent" in ids
    assert all(i.startswith(("lint/", "security/")) for i in ids)
    assert get_default_rules()[0] is not rules[0]


def test_rule_category_matches_id_prefix():
    for rule in get_default_rules():
        assert rule.id.split("/")[0] == rule.metadata.category.value


def test_get_enabled_rules_filters():
    rules = get_default_rules()
    config = ResolvedConfig(rules={"security/reentrancy": "off"})
    enabled = get_enabled_rules(rules, config)
    assert "security/reentrancy" not in [r.id for r in enabled]
    lint_only = get_enabled_rules(rules, get_default_config(), Category.LINT)
    assert lint_only
    assert all(r.metadata.category is Category.LINT for r in lint_only)
