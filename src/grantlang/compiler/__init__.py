from __future__ import annotations

from grantlang.compiler.base import CompileResult, PolicyCompiler
from grantlang.compiler.context import DEFAULT_DYNAMIC_VARIABLES, CompileContext
from grantlang.compiler.iam import IamPolicyCompiler, IamSettings

__all__ = [
    "CompileContext",
    "CompileResult",
    "DEFAULT_DYNAMIC_VARIABLES",
    "IamPolicyCompiler",
    "IamSettings",
    "PolicyCompiler",
]
