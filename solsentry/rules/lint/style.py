# Text-level style rules. These read context.lines rather than the tree.

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence

from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity, SourceRange
from solsentry.rules.base import Rule, positive_int_option

logger = logging.getLogger(__name__)

_STRING_LITERAL = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")
_PREFIXED_STRING = re.compile(r"\b(?:hex|unicode)$")


def _string_end(text: str, start: int) -> int:
    """Index one past the closing quote of the literal opening at start (or len(text))."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == quote:
            return i + 1
        i += 1
    return len(text)


def scan_source(lines: Sequence[str]) -> Iterator[tuple[int, int, str, str]]:
    """
    Yield (line, column, kind, text) for everything outside comments.

    kind is "code" for a single character or "string" for a whole literal,
    quotes included. Block comments carry over line breaks; strings do not.
    """
    in_comment = False
    for line_no, text in enumerate(lines, start=1):
        i = 0
        while i < len(text):
            if in_comment:
                end = text.find("*/", i)
                if end < 0:
                    break
                in_comment = False
                i = end + 2
                continue
            if text.startswith("//", i):
                break
            if text.startswith("/*", i):
                in_comment = True
                i += 2
                continue
            char = text[i]
            if char in ("'", '"'):
                end = _string_end(text, i)
                yield line_no, i, "string", text[i:end]
                i = end
                continue
            yield line_no, i, "code", char
            i += 1


def _line_range(line: int, start: int, end: int) -> SourceRange:
    return SourceRange.from_points(line, start, line, max(end, start + 1))


class MaxLineLengthRule(Rule):
    metadata = RuleMetadata(
        id="lint/max-line-length",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Max Line Length",
        description="Long lines are hard to read and review.",
        recommendation="Wrap the line.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        options = self.options(context)
        maximum = positive_int_option(self, options, "max", 120)
        if maximum is None:
            return
        ignore_comments = bool(options.get("ignoreComments", False))
        ignore_strings = bool(options.get("ignoreStrings", False))

        for line_no, text in enumerate(context.lines, start=1):
            text = text.rstrip("\r")
            if len(text) <= maximum:
                continue
            stripped = text.lstrip()
            if ignore_comments and stripped.startswith(("//", "/*", "*")):
                continue
            if ignore_strings and any(
                len(m.group(0)) > maximum // 2 for m in _STRING_LITERAL.finditer(text)
            ):
                continue
            self.report(
                context,
                _line_range(line_no, maximum, len(text)),
                f"Line length {len(text)} exceeds maximum of {maximum}.",
            )


class NoTrailingWhitespaceRule(Rule):
    metadata = RuleMetadata(
        id="lint/no-trailing-whitespace",
        category=Category.LINT,
        severity=Severity.INFO,
        title="No Trailing Whitespace",
        description="Lines should not end in spaces or tabs.",
        recommendation="Strip trailing whitespace.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for line_no, text in enumerate(context.lines, start=1):
            text = text.rstrip("\r")
            stripped = text.rstrip(" \t")
            if len(stripped) < len(text):
                self.report(context, _line_range(line_no, len(stripped), len(text)), "Trailing whitespace.")


class IndentRule(Rule):
    metadata = RuleMetadata(
        id="lint/indent",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Indentation",
        description="Indent with spaces, in multiples of the configured width.",
        recommendation="Re-indent with spaces.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        width = self.options(context).get("spaces", 4)
        if width not in (2, 4) or isinstance(width, bool):
            logger.warning("%s: spaces must be 2 or 4, got %r; rule skipped", self.id, width)
            return

        for line_no, text in enumerate(context.lines, start=1):
            text = text.rstrip("\r")
            stripped = text.lstrip(" \t")
            if not stripped:
                continue
            indent = text[: len(text) - len(stripped)]
            if "\t" in indent:
                self.report(context, _line_range(line_no, 0, len(indent)), "Tab used for indentation; use spaces.")
                continue
            # Continuation lines of block comments sit one column in.
            if stripped.startswith("*"):
                continue
            if len(indent) % width:
                self.report(
                    context,
                    _line_range(line_no, 0, len(indent)),
                    f"Indentation of {len(indent)} spaces is not a multiple of {width}.",
                )


class QuotesRule(Rule):
    metadata = RuleMetadata(
        id="lint/quotes",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Quote Style",
        description="String literals should use one quote style consistently.",
        recommendation="Use the configured quote style.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        options = self.options(context)
        style = options.get("style", "single")
        if style not in ("single", "double"):
            logger.warning("%s: style must be 'single' or 'double', got %r; rule skipped", self.id, style)
            return
        avoid_escape = bool(options.get("avoidEscape", True))
        preferred, other = ("'", '"') if style == "single" else ('"', "'")

        for line_no, column, kind, literal in scan_source(context.lines):
            if kind != "string" or literal[0] == preferred:
                continue
            if _PREFIXED_STRING.search(context.lines[line_no - 1][:column]):
                continue
            if avoid_escape and preferred in literal[1:-1]:
                continue
            self.report(
                context,
                _line_range(line_no, column, column + len(literal)),
                f"Use {style} quotes instead of {other}.",
            )


_BRACE_KEYWORDS = (
    "contract", "library", "interface", "function", "constructor",
    "modifier", "if", "else", "for", "while", "do",
)
_KEYWORD_PATTERNS = [(kw, re.compile(rf"\b{kw}\b")) for kw in _BRACE_KEYWORDS]


def _code_part(text: str) -> str:
    index = text.find("//")
    return text if index < 0 else text[:index]


class BraceStyleRule(Rule):
    """1tbs puts the opening brace on the keyword's line; allman puts it on its own line."""

    metadata = RuleMetadata(
        id="lint/brace-style",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Brace Style",
        description="Opening braces should follow the configured style.",
        recommendation="Move the brace to match the configured style.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        style = self.options(context).get("style", "1tbs")
        if style not in ("1tbs", "allman"):
            logger.warning("%s: style must be '1tbs' or 'allman', got %r; rule skipped", self.id, style)
            return

        lines = [_code_part(line.rstrip("\r")) for line in context.lines]
        for index, text in enumerate(lines):
            for keyword, pattern in _KEYWORD_PATTERNS:
                if not pattern.search(text):
                    continue
                if style == "1tbs":
                    following = lines[index + 1].strip() if index + 1 < len(lines) else ""
                    if "{" not in text and following.startswith("{"):
                        column = lines[index + 1].index("{")
                        self.report(
                            context,
                            _line_range(index + 2, column, column + 1),
                            f"Opening brace after '{keyword}' should be on the same line.",
                        )
                elif "{" in text and "}" not in text:
                    column = text.index("{")
                    self.report(
                        context,
                        _line_range(index + 1, column, column + 1),
                        f"Opening brace after '{keyword}' should be on its own line.",
                    )
                break


class SpaceAfterCommaRule(Rule):
    metadata = RuleMetadata(
        id="lint/space-after-comma",
        category=Category.LINT,
        severity=Severity.INFO,
        title="Space After Comma",
        description="A comma should be followed by whitespace.",
        recommendation="Add a space after the comma.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for line_no, column, kind, char in scan_source(context.lines):
            if kind != "code" or char != ",":
                continue
            text = context.lines[line_no - 1].rstrip("\r")
            following = text[column + 1 : column + 2]
            if following and following not in (" ", "\t"):
                self.report(context, _line_range(line_no, column, column + 1), "Missing space after comma.")
