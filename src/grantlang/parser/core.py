from __future__ import annotations

import logging
from typing import List, Sequence

from grantlang.ast import policy as ast
from grantlang.errors.base import GrammarError
from grantlang.errors.guidance import build_guidance_message
from grantlang.lang.keywords import KEYWORDS
from grantlang.lexer.lexer import Lexer
from grantlang.lexer.tokens import Token
from grantlang.parser.atom import parse_policy_atom
from grantlang.parser.errors import raise_parse_error, raise_unexpected
from grantlang.parser.expressions import parse_string_expr as _parse_string_expr


logger = logging.getLogger(__name__)

_POLICY_EXAMPLE = 'allow create on table "Users"'


class Parser:
    """Recursive-descent parser for one policy annotation.

    Every decision point commits on the next token. ``_peek_keyword`` is the
    only lookahead and never consumes input.

    With ``strict=False`` the parser keeps the greedy behaviour of older
    builds: atoms are read until one fails, the valid prefix is returned and
    the discarded failure is kept on ``truncated``.
    """

    def __init__(self, tokens: List[Token], *, strict: bool = True) -> None:
        self.tokens = tokens
        self.position = 0
        self.strict = strict
        self.continuations: list[str] = []
        self.concat_depth = 0
        self.truncated: GrammarError | None = None

    @classmethod
    def parse(cls, source: str, *, strict: bool = True) -> ast.Policy:
        return cls.from_source(source, strict=strict).parse_policy()

    @classmethod
    def from_source(cls, source: str, *, strict: bool = True) -> "Parser":
        return cls(Lexer(source).tokenize(), strict=strict)

    def parse_policy(self) -> ast.Policy:
        first = self._current()
        if first.type == "EOF":
            raise_parse_error(
                first,
                build_guidance_message(
                    what="Policy annotation is empty.",
                    why="A policy needs at least one allow statement.",
                    fix="Write an allow statement.",
                    example=_POLICY_EXAMPLE,
                ),
                expected=["allow"],
            )
        atoms = [parse_policy_atom(self)]
        while self._current().type != "EOF":
            if self._current().type != "ALLOW":
                self._trailing(self._unexpected_after_atom)
                break
            start = self.position
            atom = self._trailing(lambda: parse_policy_atom(self))
            if atom is None:
                self.position = start
                break
            atoms.append(atom)
        return ast.make_policy(atoms, line=first.line, column=first.column)

    def _trailing(self, parse_step):
        if self.strict:
            return parse_step()
        try:
            return parse_step()
        except GrammarError as err:
            self.truncated = err
            logger.warning(
                "Dropping policy text after line %s, column %s: %s",
                err.line,
                err.column,
                str(err).splitlines()[0],
            )
            return None

    def _unexpected_after_atom(self) -> None:
        expected = [*self.continuations, "allow", "end of input"]
        raise_unexpected(self._current(), expected, context="policy", example=_POLICY_EXAMPLE)

    def _current(self) -> Token:
        return self.tokens[self.position]

    def _advance(self) -> Token:
        tok = self.tokens[self.position]
        if tok.type != "EOF":
            self.position += 1
        return tok

    def _match(self, *types: str) -> bool:
        if self._current().type in types:
            self._advance()
            return True
        return False

    def _peek_keyword(self, word: str) -> bool:
        return self._current().type == KEYWORDS[word]

    def _expect(self, token_type: str, *, expected: Sequence[str], context: str, example: str) -> Token:
        tok = self._current()
        if tok.type != token_type:
            raise_unexpected(tok, expected, context=context, example=example)
        self._advance()
        return tok


def parse_policy(source: str, *, strict: bool = True) -> ast.Policy:
    return Parser.parse(source, strict=strict)


def parse_string_expr(source: str) -> ast.StringExpr:
    parser = Parser.from_source(source)
    expr = _parse_string_expr(parser)
    if parser._current().type != "EOF":
        raise_unexpected(parser._current(), ["end of input"], context="string expression", example='"USER#1"')
    return expr


__all__ = ["Parser", "parse_policy", "parse_string_expr"]
