from __future__ import annotations

from grantlang.ast.base import Node
from grantlang.ast.payload import policy_from_payload, policy_to_payload
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
    make_policy,
)
from grantlang.ast.render import render_policy, render_string_expr

__all__ = [
    "Action",
    "AtomPolicy",
    "CompositePolicy",
    "Concat",
    "Filter",
    "Key",
    "KeyEquals",
    "KeyLike",
    "Literal",
    "Node",
    "Policy",
    "PolicyAtom",
    "Resource",
    "StringExpr",
    "Table",
    "Var",
    "Variable",
    "make_policy",
    "policy_from_payload",
    "policy_to_payload",
    "render_policy",
    "render_string_expr",
]
