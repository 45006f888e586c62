# Exception types raised by SolSentry before or around analysis (never inside rules).


class SolSentryError(Exception):
    """Base class for SolSentry errors."""


class ConfigError(SolSentryError):
    """Invalid resolved configuration (e.g. an unknown severity for a rule)."""


class AstLoadError(SolSentryError):
    """The external parser's AST for a file is missing or malformed."""

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
