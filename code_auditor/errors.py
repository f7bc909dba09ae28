"""
Exception taxonomy for the code auditor.

Parse failures are not exceptions: they are carried as ParseError values on
the ParseTree and surfaced through the result's ``errors`` side channel.
"""


class CodeAuditError(Exception):
    """Base class for all code auditor errors."""


class ConfigurationError(CodeAuditError):
    """Invalid run configuration. Raised before any file is processed."""


class InternalInvariantViolation(CodeAuditError):
    """An adapter produced an inconsistent tree (e.g. a child outside its parent)."""


class MalformedLiteralError(CodeAuditError):
    """A string literal node could not be decoded (unterminated, broken escapes)."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line
