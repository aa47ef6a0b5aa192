from __future__ import annotations

from grantlang.ast import policy as ast
from grantlang.lang.keywords import ACTION_KEYWORDS, FILTER_KEYWORDS, KEY_NAMES, KEYWORDS
from grantlang.parser.errors import raise_unexpected
from grantlang.parser.expressions import parse_string_expr


_ATOM_EXAMPLE = 'allow read on table "Users" where key_equals $pk "USER#123"'
_ATTR_EXAMPLE = 'allow read on table "Users" with attributes ["full_name", "email"]'
_FIELD_TYPES = {"STRING", "IDENT", *KEYWORDS.values()}
_ACTION_TYPES = {KEYWORDS[name] for name in ACTION_KEYWORDS}


def parse_policy_atom(parser) -> ast.PolicyAtom:
    allow_tok = parser._expect("ALLOW", expected=["allow"], context="policy", example=_ATOM_EXAMPLE)
    action = _parse_action(parser)
    saw_on = parser._match("ON")
    resource = _parse_resource(parser, saw_on=saw_on)
    filters: list[ast.Filter] = []
    while parser._peek_keyword("where"):
        filters.append(_parse_filter(parser))
    attributes = None
    parser.continuations = ["where", "with"]
    if parser._peek_keyword("with"):
        attributes = _parse_attributes(parser)
        parser.continuations = []
    return ast.PolicyAtom(
        action=action,
        resource=resource,
        filters=tuple(filters),
        attributes=attributes,
        line=allow_tok.line,
        column=allow_tok.column,
    )


def _parse_action(parser) -> ast.Action:
    tok = parser._current()
    if tok.type not in _ACTION_TYPES:
        raise_unexpected(tok, list(ACTION_KEYWORDS), context="policy action", example=_ATOM_EXAMPLE)
    parser._advance()
    return ast.Action(tok.value)


def _parse_resource(parser, *, saw_on: bool) -> ast.Resource:
    tok = parser._current()
    if tok.type != "TABLE":
        expected = ["table"] if saw_on else ["on", "table"]
        raise_unexpected(tok, expected, context="policy resource", example=_ATOM_EXAMPLE)
    parser._advance()
    name_tok = parser._expect("STRING", expected=["table name string"], context="policy resource", example=_ATOM_EXAMPLE)
    return ast.Table(name_tok.value, line=tok.line, column=tok.column)


def _parse_filter(parser) -> ast.Filter:
    where_tok = parser._advance()
    op_tok = parser._current()
    if op_tok.type not in {"KEY_EQUALS", "KEY_LIKE"}:
        raise_unexpected(op_tok, list(FILTER_KEYWORDS), context="filter", example=_ATOM_EXAMPLE)
    parser._advance()
    key = _parse_key(parser)
    expr = parse_string_expr(parser)
    if op_tok.type == "KEY_EQUALS":
        return ast.KeyEquals(key, expr, line=where_tok.line, column=where_tok.column)
    return ast.KeyLike(key, expr, line=where_tok.line, column=where_tok.column)


def _parse_key(parser) -> ast.Key:
    expected = [f"${name}" for name in KEY_NAMES]
    parser._expect("DOLLAR", expected=expected, context="filter key", example=_ATOM_EXAMPLE)
    tok = parser._current()
    if tok.type != "IDENT" or tok.value not in KEY_NAMES:
        raise_unexpected(tok, list(KEY_NAMES), context="filter key", example=_ATOM_EXAMPLE)
    parser._advance()
    return ast.Key(tok.value)


def _parse_attributes(parser) -> tuple[str, ...]:
    parser._advance()
    parser._expect("ATTRIBUTES", expected=["attributes"], context="attribute clause", example=_ATTR_EXAMPLE)
    parser._expect("LBRACKET", expected=["["], context="attribute clause", example=_ATTR_EXAMPLE)
    fields: list[str] = []
    if parser._match("RBRACKET"):
        return ()
    while True:
        tok = parser._current()
        if tok.type not in _FIELD_TYPES:
            raise_unexpected(tok, ["field name"], context="attribute list", example=_ATTR_EXAMPLE)
        parser._advance()
        fields.append(tok.value)
        if parser._match("COMMA"):
            continue
        if parser._match("RBRACKET"):
            return tuple(fields)
        raise_unexpected(parser._current(), [",", "]"], context="attribute list", example=_ATTR_EXAMPLE)


__all__ = ["parse_policy_atom"]
