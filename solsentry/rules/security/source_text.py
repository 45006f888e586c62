# Rules over raw source text rather than the tree.

from __future__ import annotations

from solsentry.context import AnalysisContext
from solsentry.findings.models import Category, RuleMetadata, Severity, SourceRange
from solsentry.rules.base import Rule

BIDI_CHARACTERS = {
    "\u202a": "LEFT-TO-RIGHT EMBEDDING (U+202A)",
    "\u202b": "RIGHT-TO-LEFT EMBEDDING (U+202B)",
    "\u202c": "POP DIRECTIONAL FORMATTING (U+202C)",
    "\u202d": "LEFT-TO-RIGHT OVERRIDE (U+202D)",
    "\u202e": "RIGHT-TO-LEFT OVERRIDE (U+202E)",
    "\u2066": "LEFT-TO-RIGHT ISOLATE (U+2066)",
    "\u2067": "RIGHT-TO-LEFT ISOLATE (U+2067)",
    "\u2068": "FIRST STRONG ISOLATE (U+2068)",
    "\u2069": "POP DIRECTIONAL ISOLATE (U+2069)",
}


class RtloCharacterRule(Rule):
    metadata = RuleMetadata(
        id="security/rtlo-character",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        title="Bidirectional Control Character",
        description=(
            "Unicode bidirectional control characters make source render differently "
            "from how it compiles (Trojan Source)."
        ),
        recommendation="Remove every bidirectional control character from the source.",
    )

    def analyze(self, context: AnalysisContext) -> None:
        for line_no, text in enumerate(context.lines, start=1):
            for column, char in enumerate(text):
                name = BIDI_CHARACTERS.get(char)
                if name is None:
                    continue
                self.report(
                    context,
                    SourceRange.from_points(line_no, column, line_no, column + 1),
                    f"Bidirectional control character {name}; the code may not read as it executes.",
                )
