from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from grantlang.lang.keywords import KEYWORDS


@dataclass(frozen=True)
class Token:
    type: str
    value: Optional[str]
    line: int
    column: int

    def describe(self) -> str:
        if self.type == "EOF":
            return "end of input"
        if self.type == "STRING":
            return f'"{self.value}"'
        return f"'{self.value}'"

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Token({self.type}, {self.value}, {self.line}:{self.column})"


__all__ = ["KEYWORDS", "Token"]
