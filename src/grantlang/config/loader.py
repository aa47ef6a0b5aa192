from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from grantlang.config.model import AppConfig
from grantlang.errors.base import ConfigError
from grantlang.errors.guidance import build_guidance_message


CONFIG_FILENAME = "grantlang.toml"
RESERVED_TRUE_VALUES = {"1", "true", "yes", "on"}
RESERVED_FALSE_VALUES = {"0", "false", "no", "off"}
_SID_PREFIX_RE = re.compile(r"^[A-Za-z0-9]*$")


@dataclass(frozen=True)
class ConfigSource:
    kind: str
    path: str | None = None


def load_config(root: Path | None = None) -> AppConfig:
    config, _ = resolve_config(root=root)
    return config


def resolve_config(root: Path | None = None) -> tuple[AppConfig, list[ConfigSource]]:
    config = AppConfig()
    sources: list[ConfigSource] = []
    project_root = Path(root).resolve() if root else Path.cwd()
    toml_path = project_root / CONFIG_FILENAME
    if toml_path.exists():
        data = _parse_toml(toml_path)
        _apply_toml_config(config, data)
        sources.append(ConfigSource(kind="toml", path=toml_path.as_posix()))
    if _apply_env_overrides(config):
        sources.append(ConfigSource(kind="env", path=None))
    return config, sources


def registry_path(config: AppConfig, root: Path | None = None) -> Path:
    path = Path(config.registry.path)
    if path.is_absolute():
        return path
    base = Path(root).resolve() if root else Path.cwd()
    return base / path


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(
            build_guidance_message(
                what=f"{CONFIG_FILENAME} is not valid TOML.",
                why=f"TOML parsing failed: {err}.",
                fix=f"Fix the TOML syntax in {CONFIG_FILENAME}.",
                example='[registry]\npath = "policies"',
            ),
            details={"file": path.as_posix()},
        ) from err
    return data


def _apply_toml_config(config: AppConfig, data: Dict[str, Any]) -> None:
    _apply_registry_toml(config, data.get("registry"))
    _apply_parser_toml(config, data.get("parser"))
    _apply_compiler_toml(config, data.get("compiler"))
    _apply_variables_toml(config, data.get("variables"))


def _apply_registry_toml(config: AppConfig, table: Any) -> None:
    if not isinstance(table, dict):
        return
    path = table.get("path")
    if path is not None:
        config.registry.path = _ensure_str(path, "registry.path")
    prune = table.get("prune")
    if prune is not None:
        config.registry.prune = _ensure_bool(prune, "registry.prune")


def _apply_parser_toml(config: AppConfig, table: Any) -> None:
    if not isinstance(table, dict):
        return
    strict = table.get("strict")
    if strict is not None:
        config.parser.strict = _ensure_bool(strict, "parser.strict")


def _apply_compiler_toml(config: AppConfig, table: Any) -> None:
    if not isinstance(table, dict):
        return
    for name in ("partition", "region", "account"):
        value = table.get(name)
        if value is not None:
            setattr(config.compiler, name, _ensure_str(value, f"compiler.{name}"))
    sid_prefix = table.get("sid_prefix")
    if sid_prefix is not None:
        config.compiler.sid_prefix = _ensure_sid_prefix(_ensure_str(sid_prefix, "compiler.sid_prefix"))


def _apply_variables_toml(config: AppConfig, table: Any) -> None:
    if not isinstance(table, dict):
        return
    static = table.get("static")
    if static is not None:
        config.variables.static = _ensure_str_map(static, "variables.static")
    dynamic = table.get("dynamic")
    if dynamic is not None:
        config.variables.dynamic = _ensure_str_map(dynamic, "variables.dynamic")


def _apply_env_overrides(config: AppConfig) -> bool:
    used = False
    path = os.getenv("GRANTLANG_REGISTRY_PATH")
    if path:
        config.registry.path = path
        used = True
    prune = os.getenv("GRANTLANG_REGISTRY_PRUNE")
    if prune:
        config.registry.prune = _env_bool(prune, "GRANTLANG_REGISTRY_PRUNE")
        used = True
    strict = os.getenv("GRANTLANG_PARSER_STRICT")
    if strict:
        config.parser.strict = _env_bool(strict, "GRANTLANG_PARSER_STRICT")
        used = True
    for env_name, attr in (
        ("GRANTLANG_AWS_PARTITION", "partition"),
        ("GRANTLANG_AWS_REGION", "region"),
        ("GRANTLANG_AWS_ACCOUNT", "account"),
    ):
        value = os.getenv(env_name)
        if value:
            setattr(config.compiler, attr, value)
            used = True
    return used


def _env_bool(value: str, label: str) -> bool:
    lowered = value.strip().lower()
    if lowered in RESERVED_TRUE_VALUES:
        return True
    if lowered in RESERVED_FALSE_VALUES:
        return False
    raise ConfigError(f"{label} must be one of: {', '.join(sorted(RESERVED_TRUE_VALUES | RESERVED_FALSE_VALUES))}")


def _ensure_str(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{label} must be a string")
    return value


def _ensure_bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{label} must be true or false")
    return value


def _ensure_str_map(value: Any, label: str) -> dict[str, str]:
    if not isinstance(value, dict) or any(not isinstance(k, str) or not isinstance(v, str) for k, v in value.items()):
        raise ConfigError(f"{label} must be a mapping of strings to strings")
    return {str(k): str(v) for k, v in value.items()}


def _ensure_sid_prefix(value: str) -> str:
    if not _SID_PREFIX_RE.match(value):
        raise ConfigError(
            build_guidance_message(
                what=f"compiler.sid_prefix {value!r} is not alphanumeric.",
                why="IAM statement ids may only contain letters and digits.",
                fix="Remove punctuation and spaces from the prefix.",
                example='sid_prefix = "Orders"',
            )
        )
    return value


__all__ = ["CONFIG_FILENAME", "ConfigSource", "load_config", "registry_path", "resolve_config"]
