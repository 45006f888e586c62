# Pydantic data models for analysis output: Issue, SourceRange, RuleMetadata, results.
#
# Field names serialize with camelCase aliases (ruleId, filePath, totalIssues, ...)
# so downstream formatters keep working on model_dump(by_alias=True).

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Category(str, Enum):
    LINT = "lint"
    SECURITY = "security"


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Position(_Model):
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=0, description="0-based column number")


class SourceRange(_Model):
    """Start/end of a finding, matching the source text slice exactly."""

    start: Position
    end: Position

    @classmethod
    def from_points(cls, line: int, column: int, end_line: int, end_column: int) -> "SourceRange":
        return cls(
            start=Position(line=line, column=column),
            end=Position(line=end_line, column=end_column),
        )

    @classmethod
    def from_loc(cls, loc) -> "SourceRange":
        """Build from a nodes.SourceLocation."""
        return cls.from_points(loc.start.line, loc.start.column, loc.end.line, loc.end.column)


class IssueMetadata(_Model):
    suggestion: Optional[str] = None
    snippet: Optional[str] = None


class Issue(_Model):
    """A single finding reported by a rule (immutable once created)."""

    rule_id: str
    severity: Severity
    category: Category
    message: str
    location: SourceRange
    file_path: Optional[str] = None
    metadata: Optional[IssueMetadata] = None


class RuleMetadata(_Model):
    """Fixed identity of a rule."""

    id: str
    category: Category
    severity: Severity
    title: str
    description: str
    recommendation: str


class ParseError(_Model):
    message: str
    line: int = 0
    column: int = 0


class RuleFailure(_Model):
    """A rule that raised while analyzing a file; it contributed no issues."""

    rule_id: str
    message: str


class Summary(_Model):
    errors: int = 0
    warnings: int = 0
    info: int = 0

    @classmethod
    def of(cls, issues) -> "Summary":
        counts = {Severity.ERROR: 0, Severity.WARNING: 0, Severity.INFO: 0}
        for issue in issues:
            counts[issue.severity] += 1
        return cls(
            errors=counts[Severity.ERROR],
            warnings=counts[Severity.WARNING],
            info=counts[Severity.INFO],
        )


class FileAnalysisResult(_Model):
    file_path: str
    issues: tuple[Issue, ...] = ()
    parse_errors: tuple[ParseError, ...] = ()
    rule_failures: tuple[RuleFailure, ...] = ()
    duration: float = Field(0.0, ge=0, description="Milliseconds spent on this file")


class AnalysisResult(_Model):
    """Project-level aggregate. Totals and summary are always derived from `files`."""

    files: tuple[FileAnalysisResult, ...] = ()
    duration: float = Field(0.0, ge=0, description="Milliseconds for the whole run")

    @computed_field(alias="totalIssues")
    @property
    def total_issues(self) -> int:
        return sum(len(f.issues) for f in self.files)

    @computed_field
    @property
    def summary(self) -> Summary:
        return Summary.of(issue for f in self.files for issue in f.issues)

    @computed_field(alias="hasParseErrors")
    @property
    def has_parse_errors(self) -> bool:
        return any(f.parse_errors for f in self.files)

    def all_issues(self) -> list[Issue]:
        return [issue for f in self.files for issue in f.issues]
