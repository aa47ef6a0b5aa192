from __future__ import annotations

from grantlang.ast.policy import (
    Concat,
    Filter,
    Literal,
    Policy,
    PolicyAtom,
    Resource,
    StringExpr,
    Table,
    Variable,
)


_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def render_policy(policy: Policy) -> str:
    """Render ``policy`` as annotation text, one atom per line."""
    return "\n".join(render_atom(atom) for atom in policy.atoms)


def render_atom(atom: PolicyAtom) -> str:
    parts = ["allow", atom.action.value, "on", render_resource(atom.resource)]
    parts.extend(render_filter(item) for item in atom.filters)
    if atom.attributes is not None:
        fields = ", ".join(quote_string(name) for name in atom.attributes)
        parts.append(f"with attributes [{fields}]")
    return " ".join(parts)


def render_resource(resource: Resource) -> str:
    if isinstance(resource, Table):
        return f"table {quote_string(resource.name)}"
    raise TypeError(f"Cannot render resource of type {type(resource).__name__}")


def render_filter(item: Filter) -> str:
    return f"where {item.operator} {item.key.reference} {render_string_expr(item.expr)}"


def render_string_expr(expr: StringExpr) -> str:
    if isinstance(expr, Literal):
        return quote_string(expr.text)
    if isinstance(expr, Variable):
        return f"${expr.var.dotted}"
    if isinstance(expr, Concat):
        return f"concat({render_string_expr(expr.left)}, {render_string_expr(expr.right)})"
    raise TypeError(f"Cannot render string expression of type {type(expr).__name__}")


def quote_string(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"'


__all__ = [
    "quote_string",
    "render_atom",
    "render_filter",
    "render_policy",
    "render_resource",
    "render_string_expr",
]
