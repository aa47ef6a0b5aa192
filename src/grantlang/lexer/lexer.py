from __future__ import annotations

from typing import List

from grantlang.errors.base import GrammarError
from grantlang.errors.guidance import build_guidance_message
from grantlang.lexer.tokens import KEYWORDS, Token


_PUNCTUATION_TOKENS = {
    "$": "DOLLAR",
    ".": "DOT",
    ",": "COMMA",
    "(": "LPAREN",
    ")": "RPAREN",
    "[": "LBRACKET",
    "]": "RBRACKET",
}

_ESCAPE_TABLE = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}


class Lexer:
    """Tokenizer for policy annotation text. Newlines are plain whitespace."""

    def __init__(self, source: str) -> None:
        self.source = source

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        lines = _split_lines(self.source)
        for idx, line in enumerate(lines):
            tokens.extend(self._scan_line(line, idx + 1))
        last_line = max(len(lines), 1)
        last_column = len(lines[-1]) + 1 if lines else 1
        tokens.append(Token("EOF", None, last_line, last_column))
        return tokens

    def _scan_line(self, line: str, line_no: int) -> List[Token]:
        tokens: List[Token] = []
        i = 0
        while i < len(line):
            ch = line[i]
            column = i + 1
            if ch in " \t\r\f\v":
                i += 1
                continue
            if ch == "#":
                break
            token_type = _PUNCTUATION_TOKENS.get(ch)
            if token_type is not None:
                tokens.append(Token(token_type, ch, line_no, column))
                i += 1
                continue
            if ch == '"':
                value, end = self._read_string(line, line_no, i)
                tokens.append(Token("STRING", value, line_no, column))
                i = end
                continue
            if ch.isalpha() or ch == "_":
                value, consumed = self._read_identifier(line[i:])
                tokens.append(Token(KEYWORDS.get(value, "IDENT"), value, line_no, column))
                i += consumed
                continue
            raise GrammarError(
                _unsupported_character_message(ch),
                line=line_no,
                column=column,
                details={"token": ch, "expected": []},
            )
        return tokens

    def _read_string(self, line: str, line_no: int, start: int) -> tuple[str, int]:
        value_chars: list[str] = []
        i = start + 1
        while i < len(line):
            ch = line[i]
            if ch == '"':
                return "".join(value_chars), i + 1
            if ch == "\\":
                marker = line[i + 1] if i + 1 < len(line) else ""
                mapped = _ESCAPE_TABLE.get(marker)
                if mapped is None:
                    raise GrammarError(
                        _unsupported_escape_message(marker),
                        line=line_no,
                        column=i + 1,
                        details={"token": "\\" + marker, "expected": sorted(_ESCAPE_TABLE)},
                    )
                value_chars.append(mapped)
                i += 2
                continue
            value_chars.append(ch)
            i += 1
        raise GrammarError(
            build_guidance_message(
                what="String literal is not terminated.",
                why="Strings must open and close with a double quote on the same line.",
                fix='Add the closing ".',
                example='allow read on table "Users"',
            ),
            line=line_no,
            column=start + 1,
            details={"token": line[start:], "expected": ['"']},
        )

    @staticmethod
    def _read_identifier(text: str) -> tuple[str, int]:
        i = 0
        while i < len(text) and (text[i].isalnum() or text[i] == "_"):
            i += 1
        return text[:i], i


def _split_lines(source: str) -> list[str]:
    # Only \n and \r\n end a line; other line separators are ordinary characters.
    if not source:
        return []
    lines = source.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()


def _unsupported_character_message(ch: str) -> str:
    return build_guidance_message(
        what=f"Unsupported character '{ch}'.",
        why="Policies use keywords, quoted strings, $ references and the punctuation . , ( ) [ ].",
        fix="Remove the character or put it inside a quoted string.",
        example='allow read on table "Users" where key_equals $pk "USER#1"',
    )


def _unsupported_escape_message(marker: str) -> str:
    shown = f"\\{marker}" if marker else "\\"
    return build_guidance_message(
        what=f"Unsupported escape sequence '{shown}'.",
        why='Only \\", \\\\, \\n, \\r and \\t are recognised inside strings.',
        fix="Use a supported escape or remove the backslash.",
        example='"say \\"hi\\""',
    )


__all__ = ["Lexer", "tokenize"]
