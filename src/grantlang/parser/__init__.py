from __future__ import annotations

from grantlang.parser.core import Parser, parse_policy, parse_string_expr

__all__ = ["Parser", "parse_policy", "parse_string_expr"]
