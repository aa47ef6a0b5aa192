from __future__ import annotations


class GrantlangError(Exception):
    """Base error for everything grantlang reports to a user.

    ``line`` and ``column`` are 1-based positions inside the annotation text
    that produced the error, when one is known. ``details`` carries
    machine-readable context (offending token, expected alternatives, file,
    function id) for renderers and tests.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.details = dict(details or {})

    def __str__(self) -> str:
        return self.message


class GrammarError(GrantlangError):
    """Lexer or parser rejected the annotation text."""


class ResolutionError(GrantlangError):
    """A policy atom could not be lowered, usually an unknown variable path."""


class CompileError(GrantlangError):
    """One or more atoms of a policy failed to compile."""

    def __init__(self, message: str, *, errors: list[GrantlangError] | None = None, details: dict | None = None) -> None:
        super().__init__(message, details=details)
        self.errors = list(errors or [])


class StorageError(GrantlangError):
    """The registry backing store could not be read or written."""


class PayloadError(GrantlangError):
    """A serialized AST payload is malformed."""


class ConfigError(GrantlangError):
    """grantlang.toml or an environment override is invalid."""


__all__ = [
    "CompileError",
    "ConfigError",
    "GrammarError",
    "GrantlangError",
    "PayloadError",
    "ResolutionError",
    "StorageError",
]
