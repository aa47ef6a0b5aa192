from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RegistryConfig:
    path: str = "policies"
    prune: bool = True


@dataclass
class ParserConfig:
    strict: bool = True


@dataclass
class CompilerConfig:
    partition: str = "aws"
    region: str = "*"
    account: str = "*"
    sid_prefix: str = ""


@dataclass
class VariablesConfig:
    static: dict[str, str] = field(default_factory=dict)
    dynamic: dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    variables: VariablesConfig = field(default_factory=VariablesConfig)


__all__ = ["AppConfig", "CompilerConfig", "ParserConfig", "RegistryConfig", "VariablesConfig"]
