"""
Resolved analysis configuration and the built-in rule list.

Config-file loading and preset merging happen before analysis; this module
holds the already-resolved result: a base path plus a per-rule mapping where
each entry is either a severity ("off", "info", "warning", "error", 0, 1, 2)
or a [severity, options] pair. Options are the only per-rule knob.

Rules are not registered globally. get_default_rules() builds a fresh list
and the caller hands it to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from solsentry.errors import ConfigError
from solsentry.findings.models import Category, Severity
from solsentry.rules.base import Rule

SeveritySetting = Union[str, int]
RuleSetting = Union[SeveritySetting, Sequence[Any]]

_SEVERITY_ALIASES: dict[SeveritySetting, Optional[Severity]] = {
    "off": None,
    0: None,
    "info": Severity.INFO,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    1: Severity.WARNING,
    "error": Severity.ERROR,
    2: Severity.ERROR,
}


def parse_severity(rule_id: str, value: SeveritySetting) -> Optional[Severity]:
    """Map a configured severity to a Severity, or None for "off"."""
    key = value.lower() if isinstance(value, str) else value
    if isinstance(key, bool) or key not in _SEVERITY_ALIASES:
        raise ConfigError(
            f"Invalid severity for {rule_id}: {value!r} "
            "(expected one of off, info, warning, error, 0, 1, 2)"
        )
    return _SEVERITY_ALIASES[key]


@dataclass
class ResolvedConfig:
    """
    Configuration for one analysis run.

    Every rule in the engine's rule list runs unless its entry here is "off".
    """

    base_path: Path = field(default_factory=Path.cwd)
    rules: Mapping[str, RuleSetting] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for rule_id in self.rules:
            self._split(rule_id)

    def _split(self, rule_id: str) -> tuple[Optional[SeveritySetting], dict[str, Any]]:
        entry = self.rules.get(rule_id)
        if entry is None:
            return None, {}
        if isinstance(entry, (list, tuple)):
            if not entry:
                raise ConfigError(f"Empty configuration for {rule_id}")
            severity = entry[0]
            options = entry[1] if len(entry) > 1 else {}
            if not isinstance(options, Mapping):
                raise ConfigError(f"Options for {rule_id} must be a mapping")
            parse_severity(rule_id, severity)
            return severity, dict(options)
        parse_severity(rule_id, entry)
        return entry, {}

    def is_enabled(self, rule_id: str) -> bool:
        severity, _ = self._split(rule_id)
        return severity is None or parse_severity(rule_id, severity) is not None

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        """The configured severity override for rule_id, else default."""
        severity, _ = self._split(rule_id)
        if severity is None:
            return default
        return parse_severity(rule_id, severity) or default

    def rule_options(self, rule_id: str) -> dict[str, Any]:
        _, options = self._split(rule_id)
        return options


def get_default_rules() -> list[Rule]:
    """
    Return a fresh instance of every built-in rule, security rules first.

    Order only affects the order of issues in the output, never their content.
    """
    # Rule modules load on first use.
    from solsentry.rules.lint import best_practices, blocks, gas, naming, style, visibility
    from solsentry.rules.security import (
        arithmetic,
        bounds,
        deprecated,
        environment,
        ether,
        loops,
        reentrancy,
        shadowing,
        similar_names,
        source_text,
        storage,
        unchecked,
    )

    rules: list[Rule] = [
        reentrancy.ReentrancyRule(),
        reentrancy.StateChangeExternalCallRule(),
        shadowing.ShadowingVariablesRule(),
        shadowing.StateVariableShadowingRule(),
        shadowing.ShadowingBuiltinRule(),
        shadowing.LocalVariableShadowingRule(),
        bounds.ArrayOutOfBoundsRule(),
        similar_names.SimilarNamesRule(),
        unchecked.UncheckedSendRule(),
        unchecked.UncheckedLowLevelRule(),
        unchecked.UnusedReturnRule(),
        environment.TxOriginRule(),
        environment.TimestampDependenceRule(),
        environment.WeakPrngRule(),
        environment.FloatingPragmaRule(),
        environment.OutdatedCompilerRule(),
        deprecated.AvoidSha3Rule(),
        deprecated.AvoidSuicideRule(),
        deprecated.AvoidThrowRule(),
        deprecated.NoInlineAssemblyRule(),
        ether.SelfdestructRule(),
        ether.UnprotectedSelfdestructRule(),
        ether.LockedEtherRule(),
        ether.MissingZeroCheckRule(),
        loops.DelegatecallInLoopRule(),
        loops.CallsInLoopRule(),
        loops.MsgValueLoopRule(),
        loops.CostlyLoopRule(),
        arithmetic.DivideBeforeMultiplyRule(),
        arithmetic.TautologyRule(),
        arithmetic.IncorrectEqualityRule(),
        arithmetic.TooManyDigitsRule(),
        arithmetic.BooleanConstantRule(),
        storage.UninitializedStorageRule(),
        storage.StorageCollisionRule(),
        storage.UnusedStateRule(),
        source_text.RtloCharacterRule(),
        naming.ContractNameCamelCaseRule(),
        naming.FunctionNameMixedcaseRule(),
        naming.VarNameMixedcaseRule(),
        visibility.ExplicitVisibilityRule(),
        visibility.PayableFallbackRule(),
        blocks.NoEmptyBlocksRule(),
        blocks.FunctionMaxLinesRule(),
        blocks.FunctionComplexityRule(),
        style.MaxLineLengthRule(),
        style.NoTrailingWhitespaceRule(),
        style.IndentRule(),
        style.QuotesRule(),
        style.BraceStyleRule(),
        style.SpaceAfterCommaRule(),
        best_practices.MagicNumbersRule(),
        best_practices.RequireRevertReasonRule(),
        best_practices.NoConsoleRule(),
        best_practices.BooleanEqualityRule(),
        best_practices.ImportsOnTopRule(),
        best_practices.OneContractPerFileRule(),
        best_practices.UnusedVariablesRule(),
        gas.GasCustomErrorsRule(),
        gas.GasIndexedEventsRule(),
        gas.CacheArrayLengthRule(),
    ]
    return rules


def get_default_config(base_path: Optional[Path] = None) -> ResolvedConfig:
    """Configuration with no overrides: every rule at its default severity."""
    return ResolvedConfig(base_path=base_path or Path.cwd())


def get_enabled_rules(
    rules: Sequence[Rule],
    config: ResolvedConfig,
    category: Optional[Category] = None,
) -> list[Rule]:
    """Filter rules by the config's "off" entries and, optionally, by category."""
    return [
        rule
        for rule in rules
        if config.is_enabled(rule.id)
        and (category is None or rule.metadata.category == category)
    ]
