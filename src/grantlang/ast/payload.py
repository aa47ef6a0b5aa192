from __future__ import annotations

from grantlang.ast.policy import (
    Action,
    AtomPolicy,
    CompositePolicy,
    Concat,
    Filter,
    Key,
    KeyEquals,
    KeyLike,
    Literal,
    Policy,
    PolicyAtom,
    Resource,
    StringExpr,
    Table,
    Var,
    Variable,
)
from grantlang.errors.base import PayloadError


def policy_to_payload(policy: Policy) -> dict:
    if isinstance(policy, AtomPolicy):
        return {"kind": "atom", "atoms": [atom_to_payload(policy.atom)]}
    if isinstance(policy, CompositePolicy):
        return {"kind": "composite", "atoms": [atom_to_payload(atom) for atom in policy.items]}
    raise PayloadError(f"Cannot serialize policy of type {type(policy).__name__}")


def atom_to_payload(atom: PolicyAtom) -> dict:
    return {
        "action": atom.action.value,
        "resource": resource_to_payload(atom.resource),
        "filters": [filter_to_payload(item) for item in atom.filters],
        "attributes": None if atom.attributes is None else list(atom.attributes),
    }


def resource_to_payload(resource: Resource) -> dict:
    if isinstance(resource, Table):
        return {"kind": "table", "name": resource.name}
    raise PayloadError(f"Cannot serialize resource of type {type(resource).__name__}")


def filter_to_payload(item: Filter) -> dict:
    if isinstance(item, KeyEquals):
        return {"kind": "key_equals", "key": item.key.value, "value": string_expr_to_payload(item.value)}
    if isinstance(item, KeyLike):
        return {"kind": "key_like", "key": item.key.value, "value": string_expr_to_payload(item.pattern)}
    raise PayloadError(f"Cannot serialize filter of type {type(item).__name__}")


def string_expr_to_payload(expr: StringExpr) -> dict:
    if isinstance(expr, Literal):
        return {"kind": "literal", "text": expr.text}
    if isinstance(expr, Variable):
        return {"kind": "variable", "path": list(expr.var.path)}
    if isinstance(expr, Concat):
        return {
            "kind": "concat",
            "left": string_expr_to_payload(expr.left),
            "right": string_expr_to_payload(expr.right),
        }
    raise PayloadError(f"Cannot serialize string expression of type {type(expr).__name__}")


def policy_from_payload(payload: object) -> Policy:
    data = _require_dict(payload, "policy")
    kind = data.get("kind")
    atoms_payload = data.get("atoms")
    if not isinstance(atoms_payload, list):
        raise PayloadError("policy.atoms must be a list")
    atoms = [atom_from_payload(item) for item in atoms_payload]
    if kind == "atom":
        if len(atoms) != 1:
            raise PayloadError(f"atom policy must hold exactly one atom, found {len(atoms)}")
        return AtomPolicy(atoms[0])
    if kind == "composite":
        if len(atoms) < 2:
            raise PayloadError(f"composite policy must hold at least two atoms, found {len(atoms)}")
        return CompositePolicy(tuple(atoms))
    raise PayloadError(f"Unknown policy kind {kind!r}")


def atom_from_payload(payload: object) -> PolicyAtom:
    data = _require_dict(payload, "atom")
    action = _enum_value(Action, data.get("action"), "atom.action")
    resource = resource_from_payload(data.get("resource"))
    filters_payload = data.get("filters", [])
    if not isinstance(filters_payload, list):
        raise PayloadError("atom.filters must be a list")
    attributes = data.get("attributes")
    if attributes is not None:
        if not isinstance(attributes, list) or any(not isinstance(item, str) for item in attributes):
            raise PayloadError("atom.attributes must be null or a list of strings")
        attributes = tuple(attributes)
    return PolicyAtom(
        action=action,
        resource=resource,
        filters=tuple(filter_from_payload(item) for item in filters_payload),
        attributes=attributes,
    )


def resource_from_payload(payload: object) -> Resource:
    data = _require_dict(payload, "resource")
    kind = data.get("kind")
    if kind == "table":
        name = data.get("name")
        if not isinstance(name, str):
            raise PayloadError("resource.name must be a string")
        return Table(name)
    raise PayloadError(f"Unknown resource kind {kind!r}")


def filter_from_payload(payload: object) -> Filter:
    data = _require_dict(payload, "filter")
    kind = data.get("kind")
    key = _enum_value(Key, data.get("key"), "filter.key")
    value = string_expr_from_payload(data.get("value"))
    if kind == "key_equals":
        return KeyEquals(key, value)
    if kind == "key_like":
        return KeyLike(key, value)
    raise PayloadError(f"Unknown filter kind {kind!r}")


def string_expr_from_payload(payload: object) -> StringExpr:
    data = _require_dict(payload, "string expression")
    kind = data.get("kind")
    if kind == "literal":
        text = data.get("text")
        if not isinstance(text, str):
            raise PayloadError("literal.text must be a string")
        return Literal(text)
    if kind == "variable":
        path = data.get("path")
        if not isinstance(path, list):
            raise PayloadError("variable.path must be a list of strings")
        try:
            return Variable(Var(tuple(path)))
        except ValueError as err:
            raise PayloadError(f"variable.path is invalid: {err}") from err
    if kind == "concat":
        return Concat(string_expr_from_payload(data.get("left")), string_expr_from_payload(data.get("right")))
    raise PayloadError(f"Unknown string expression kind {kind!r}")


def _require_dict(payload: object, label: str) -> dict:
    if not isinstance(payload, dict):
        raise PayloadError(f"{label} payload must be an object, got {type(payload).__name__}")
    return payload


def _enum_value(enum_type, value: object, label: str):
    try:
        return enum_type(value)
    except ValueError as err:
        allowed = ", ".join(member.value for member in enum_type)
        raise PayloadError(f"{label} must be one of: {allowed}; got {value!r}") from err


__all__ = [
    "atom_from_payload",
    "atom_to_payload",
    "filter_from_payload",
    "filter_to_payload",
    "policy_from_payload",
    "policy_to_payload",
    "resource_from_payload",
    "resource_to_payload",
    "string_expr_from_payload",
    "string_expr_to_payload",
]
