from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from grantlang.ast.policy import Policy
from grantlang.errors.base import ResolutionError


@dataclass(frozen=True)
class CompileResult:
    document: dict
    errors: tuple[ResolutionError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class PolicyCompiler(Protocol):
    target: str

    def compile_document(self, policy: Policy) -> CompileResult: ...

    def compile_policy(self, policy: Policy) -> str: ...


__all__ = ["CompileResult", "PolicyCompiler"]
