from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable

from grantlang.ast.base import Node


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Key(str, Enum):
    PK = "pk"
    SK = "sk"

    @property
    def reference(self) -> str:
        return f"${self.value}"


@dataclass(frozen=True)
class Resource(Node):
    kind: ClassVar[str] = ""


@dataclass(frozen=True)
class Table(Resource):
    kind: ClassVar[str] = "table"

    name: str


@dataclass(frozen=True)
class Var(Node):
    path: tuple[str, ...]

    def __post_init__(self) -> None:
        path = tuple(self.path)
        if not path:
            raise ValueError("Var path must have at least one segment")
        if any(not isinstance(part, str) or not part for part in path):
            raise ValueError("Var path segments must be non-empty strings")
        object.__setattr__(self, "path", path)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class StringExpr(Node):
    pass


@dataclass(frozen=True)
class Literal(StringExpr):
    text: str


@dataclass(frozen=True)
class Variable(StringExpr):
    var: Var


@dataclass(frozen=True)
class Concat(StringExpr):
    left: StringExpr
    right: StringExpr


@dataclass(frozen=True)
class Filter(Node):
    operator: ClassVar[str] = ""

    @property
    def expr(self) -> StringExpr:
        raise NotImplementedError


@dataclass(frozen=True)
class KeyEquals(Filter):
    operator: ClassVar[str] = "key_equals"

    key: Key
    value: StringExpr

    @property
    def expr(self) -> StringExpr:
        return self.value


@dataclass(frozen=True)
class KeyLike(Filter):
    operator: ClassVar[str] = "key_like"

    key: Key
    pattern: StringExpr

    @property
    def expr(self) -> StringExpr:
        return self.pattern


@dataclass(frozen=True)
class PolicyAtom(Node):
    # attributes=None: no projection. attributes=(): every field denied.
    action: Action
    resource: Resource
    filters: tuple[Filter, ...] = ()
    attributes: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))
        if self.attributes is not None:
            object.__setattr__(self, "attributes", tuple(self.attributes))


@dataclass(frozen=True)
class Policy(Node):
    @property
    def atoms(self) -> tuple[PolicyAtom, ...]:
        raise NotImplementedError


@dataclass(frozen=True)
class AtomPolicy(Policy):
    atom: PolicyAtom

    @property
    def atoms(self) -> tuple[PolicyAtom, ...]:
        return (self.atom,)


@dataclass(frozen=True)
class CompositePolicy(Policy):
    items: tuple[PolicyAtom, ...]

    def __post_init__(self) -> None:
        items = tuple(self.items)
        if len(items) < 2:
            raise ValueError("CompositePolicy needs at least two atoms; use AtomPolicy for one")
        object.__setattr__(self, "items", items)

    @property
    def atoms(self) -> tuple[PolicyAtom, ...]:
        return self.items


def make_policy(atoms: Iterable[PolicyAtom], *, line: int | None = None, column: int | None = None) -> Policy:
    items = tuple(atoms)
    if not items:
        raise ValueError("A policy needs at least one atom")
    if len(items) == 1:
        return AtomPolicy(items[0], line=line, column=column)
    return CompositePolicy(items, line=line, column=column)


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
    "Policy",
    "PolicyAtom",
    "Resource",
    "StringExpr",
    "Table",
    "Var",
    "Variable",
    "make_policy",
]
