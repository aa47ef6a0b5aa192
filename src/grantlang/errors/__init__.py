from __future__ import annotations

from grantlang.errors.base import (
    CompileError,
    ConfigError,
    GrammarError,
    GrantlangError,
    PayloadError,
    ResolutionError,
    StorageError,
)
from grantlang.errors.guidance import build_guidance_message
from grantlang.errors.render import format_error

__all__ = [
    "CompileError",
    "ConfigError",
    "GrammarError",
    "GrantlangError",
    "PayloadError",
    "ResolutionError",
    "StorageError",
    "build_guidance_message",
    "format_error",
]
