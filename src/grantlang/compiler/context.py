from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from grantlang.ast.policy import Concat, Literal, StringExpr, Var, Variable
from grantlang.errors.base import ResolutionError
from grantlang.errors.guidance import build_guidance_message


# Caller identity is only known per request, so these resolve to IAM policy
# variables instead of values.
DEFAULT_DYNAMIC_VARIABLES = {
    "caller.id": "${aws:userid}",
    "caller.username": "${aws:username}",
    "caller.account": "${aws:PrincipalAccount}",
    "caller.sub": "${cognito-identity.amazonaws.com:sub}",
}


def escape_policy_text(text: str) -> str:
    """Quote every ``$`` so IAM reads ``text`` verbatim instead of as a policy variable."""
    return text.replace("$", "${$}")


@dataclass(frozen=True)
class CompileContext:
    static_variables: Mapping[str, str] = field(default_factory=dict)
    dynamic_variables: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_DYNAMIC_VARIABLES))

    @classmethod
    def from_mappings(
        cls,
        *,
        static: Mapping[str, str] | None = None,
        dynamic: Mapping[str, str] | None = None,
    ) -> "CompileContext":
        dynamic_variables = dict(DEFAULT_DYNAMIC_VARIABLES)
        dynamic_variables.update(dynamic or {})
        return cls(static_variables=dict(static or {}), dynamic_variables=dynamic_variables)

    def resolve_var(self, var: Var) -> str:
        path = var.dotted
        if path in self.static_variables:
            return escape_policy_text(str(self.static_variables[path]))
        if path in self.dynamic_variables:
            return str(self.dynamic_variables[path])
        known = sorted({*self.static_variables, *self.dynamic_variables})
        raise ResolutionError(
            build_guidance_message(
                what=f"Variable '${path}' cannot be resolved.",
                why="It is neither a configured static variable nor a known request-time variable.",
                fix="Use a known variable or declare it under [variables] in grantlang.toml.",
                example=", ".join(f"${name}" for name in known) or "$caller.id",
            ),
            line=var.line,
            column=var.column,
            details={"variable": path, "known": known},
        )

    def resolve_string(self, expr: StringExpr) -> str:
        if isinstance(expr, Literal):
            return escape_policy_text(expr.text)
        if isinstance(expr, Variable):
            return self.resolve_var(expr.var)
        if isinstance(expr, Concat):
            left = self.resolve_string(expr.left)
            return left + self.resolve_string(expr.right)
        raise ResolutionError(f"Unsupported string expression {type(expr).__name__}")


__all__ = ["CompileContext", "DEFAULT_DYNAMIC_VARIABLES", "escape_policy_text"]
