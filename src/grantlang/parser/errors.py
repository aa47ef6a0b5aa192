from __future__ import annotations

from typing import NoReturn, Sequence

from grantlang.errors.base import GrammarError
from grantlang.errors.guidance import build_guidance_message
from grantlang.lexer.tokens import Token


def raise_unexpected(token: Token, expected: Sequence[str], *, context: str, example: str) -> NoReturn:
    found = token.describe()
    alternatives = ", ".join(expected)
    plural = "one of: " if len(expected) > 1 else ""
    raise GrammarError(
        build_guidance_message(
            what=f"Unexpected {found} in {context}.",
            why=f"Expected {plural}{alternatives}.",
            fix=f"Replace {found} with {plural}{alternatives}.",
            example=example,
        ),
        line=token.line,
        column=token.column,
        details={"token": token.value, "expected": list(expected)},
    )


def raise_parse_error(token: Token, message: str, *, expected: Sequence[str] = ()) -> NoReturn:
    raise GrammarError(
        message,
        line=token.line,
        column=token.column,
        details={"token": token.value, "expected": list(expected)},
    )


__all__ = ["raise_parse_error", "raise_unexpected"]
