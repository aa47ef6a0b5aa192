from __future__ import annotations

from grantlang.ast import policy as ast
from grantlang.errors.guidance import build_guidance_message
from grantlang.lang.keywords import KEYWORDS
from grantlang.parser.errors import raise_parse_error, raise_unexpected


_EXPR_START = ["string literal", "$variable.path", "concat"]
_SEGMENT_TYPES = {"IDENT", *KEYWORDS.values()}
_EXAMPLE = 'where key_equals $pk concat("USER#", $caller.id)'
MAX_CONCAT_DEPTH = 32


def parse_string_expr(parser) -> ast.StringExpr:
    tok = parser._current()
    if tok.type == "STRING":
        parser._advance()
        return ast.Literal(tok.value, line=tok.line, column=tok.column)
    if tok.type == "DOLLAR":
        return parse_variable(parser)
    if tok.type == "CONCAT":
        return _parse_concat(parser)
    raise_unexpected(tok, _EXPR_START, context="string expression", example=_EXAMPLE)


def parse_variable(parser) -> ast.Variable:
    dollar = parser._expect("DOLLAR", expected=["$variable.path"], context="variable reference", example=_EXAMPLE)
    segments = [_parse_segment(parser)]
    while parser._match("DOT"):
        segments.append(_parse_segment(parser))
    if len(segments) < 2:
        raise_parse_error(
            dollar,
            build_guidance_message(
                what=f"Variable reference '${segments[0]}' has a single segment.",
                why="Variable paths name a source and a field, separated by dots.",
                fix="Qualify the variable with its source.",
                example="$caller.id",
            ),
            expected=["."],
        )
    var = ast.Var(tuple(segments), line=dollar.line, column=dollar.column)
    return ast.Variable(var, line=dollar.line, column=dollar.column)


def _parse_segment(parser) -> str:
    tok = parser._current()
    if tok.type not in _SEGMENT_TYPES:
        raise_unexpected(tok, ["identifier"], context="variable path", example="$caller.id")
    parser._advance()
    return tok.value


def _parse_concat(parser) -> ast.Concat:
    concat_tok = parser._current()
    if parser.concat_depth >= MAX_CONCAT_DEPTH:
        raise_parse_error(
            concat_tok,
            build_guidance_message(
                what=f"concat is nested more than {MAX_CONCAT_DEPTH} levels deep.",
                why="Each concat joins two expressions and deep chains are not supported.",
                fix="Join longer text into fewer literals.",
                example=_EXAMPLE,
            ),
            expected=["string literal", "$variable.path"],
        )
    parser._advance()
    parser.concat_depth += 1
    try:
        parser._expect("LPAREN", expected=["("], context="concat", example=_EXAMPLE)
        left = parse_string_expr(parser)
        parser._expect("COMMA", expected=[","], context="concat", example=_EXAMPLE)
        right = parse_string_expr(parser)
        parser._expect("RPAREN", expected=[")"], context="concat", example=_EXAMPLE)
    finally:
        parser.concat_depth -= 1
    return ast.Concat(left, right, line=concat_tok.line, column=concat_tok.column)


__all__ = ["MAX_CONCAT_DEPTH", "parse_string_expr", "parse_variable"]
