# Rule interface (abstract base class): defines the contract all rules must implement.
# Concrete rules (reentrancy, shadowing, naming, ...) subclass Rule and implement analyze().

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

from solsentry.findings.models import Issue, IssueMetadata, RuleMetadata, SourceRange
from solsentry.nodes import ASTNode

if TYPE_CHECKING:
    from solsentry.context import AnalysisContext

logger = logging.getLogger(__name__)


class Rule(ABC):
    """
    Abstract base class for all analysis rules.

    Subclasses must define:
    - metadata: RuleMetadata -- id ("security/reentrancy"), category, default
      severity, title, description, recommendation
    - analyze(context) -- inspect one file and report issues via self.report()

    The engine calls analyze() once per file per rule. Rules keep no state
    between files; any scratch attributes are reset at the top of analyze().
    """

    metadata: ClassVar[RuleMetadata]

    @property
    def id(self) -> str:
        return self.metadata.id

    @abstractmethod
    def analyze(self, context: "AnalysisContext") -> None:
        """
        Analyze one file and report any issues into the context.

        Args:
            context: Per-file state. Use context.ast to walk the tree,
                     context.get_line_text() for raw text, and self.report()
                     to record an issue.
        """
        ...

    def options(self, context: "AnalysisContext") -> dict[str, Any]:
        """This rule's configured options (empty when none are set)."""
        return context.rule_options(self.id)

    def report(
        self,
        context: "AnalysisContext",
        target: Union[ASTNode, SourceRange, None],
        message: str,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Record an issue at a node or explicit range.

        Nodes without a location are skipped: there is nothing to point at.
        The severity is the configured override for this rule, else its default.
        """
        if isinstance(target, ASTNode):
            if target.loc is None or target.loc.start.line < 1:
                logger.debug("%s: node %s has no location, not reported", self.id, target.type)
                return
            location = SourceRange.from_loc(target.loc)
        elif isinstance(target, SourceRange):
            location = target
        else:
            return

        context.report(
            Issue(
                rule_id=self.id,
                severity=context.severity_for(self.id, self.metadata.severity),
                category=self.metadata.category,
                message=message,
                location=location,
                metadata=IssueMetadata(suggestion=suggestion) if suggestion else None,
            )
        )


def positive_int_option(rule: Rule, options: dict[str, Any], key: str, default: int) -> Optional[int]:
    """
    Read a positive integer option. An invalid value is logged and yields None,
    in which case the rule reports nothing for the file.
    """
    value = options.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning("%s: invalid option %s=%r; rule skipped", rule.id, key, value)
        return None
    return value
