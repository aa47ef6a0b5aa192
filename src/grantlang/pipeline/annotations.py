from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar


POLICY_ATTRIBUTE = "__grantlang_policies__"

F = TypeVar("F", bound=Callable)


@dataclass(frozen=True)
class AnnotatedUnit:
    """One function and the policy text declared on it."""

    function_id: str
    source: str
    file: str | None = None
    line: int | None = None


def policy(text: str) -> Callable[[F], F]:
    """Declare the access policy of a function.

    The decorator has no runtime effect beyond recording ``text`` on the
    function; ``grantlang build`` finds the declaration statically.
    """
    if not isinstance(text, str):
        raise TypeError("policy() expects the policy text as a string")

    def decorator(func: F) -> F:
        # Decorators apply bottom-up; prepend to keep source order.
        declared = (text, *getattr(func, POLICY_ATTRIBUTE, ()))
        setattr(func, POLICY_ATTRIBUTE, declared)
        return func

    return decorator


def declared_policies(func: Callable) -> tuple[str, ...]:
    return tuple(getattr(func, POLICY_ATTRIBUTE, ()))


def join_declarations(texts: Iterable[str]) -> str:
    """Several declarations on one function form a single policy."""
    return "\n".join(texts)


def units_from_functions(functions: Iterable[Callable]) -> list[AnnotatedUnit]:
    units: list[AnnotatedUnit] = []
    for func in functions:
        texts = declared_policies(func)
        if not texts:
            continue
        function_id = f"{func.__module__}.{func.__qualname__}"
        units.append(AnnotatedUnit(function_id=function_id, source=join_declarations(texts)))
    return units


__all__ = [
    "AnnotatedUnit",
    "POLICY_ATTRIBUTE",
    "declared_policies",
    "join_declarations",
    "policy",
    "units_from_functions",
]
