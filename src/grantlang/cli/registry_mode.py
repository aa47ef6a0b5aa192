from __future__ import annotations

from grantlang.ast.render import render_policy
from grantlang.cli.common import GlobalOptions, emit_json, reject_unknown_flags
from grantlang.config.loader import load_config, registry_path
from grantlang.errors.base import GrantlangError
from grantlang.errors.guidance import build_guidance_message
from grantlang.persistence.registry import PolicyRegistry
from grantlang.persistence.store import DirectoryStore


_SUBCOMMANDS = {"list", "show", "remove"}


def run_registry_command(args: list[str], options: GlobalOptions) -> int:
    if not args or args[0] in {"help", "-h", "--help"}:
        _print_usage()
        return 0
    subcommand = args[0].strip().lower()
    if subcommand not in _SUBCOMMANDS:
        raise GrantlangError(_unknown_subcommand_message(subcommand))
    rest = args[1:]
    reject_unknown_flags(rest, command=f"registry {subcommand}", allowed={"--json"})
    json_mode = "--json" in rest
    positional = [arg for arg in rest if not arg.startswith("--")]

    config = load_config(options.project)
    store = DirectoryStore(registry_path(config, options.project))
    registry = PolicyRegistry.load(store)

    if subcommand == "list":
        if json_mode:
            emit_json({"registry": store.describe(), "functions": registry.function_ids()})
            return 0
        for function_id in registry.function_ids():
            print(function_id)
        return 0

    function_id = _single_function_id(positional, subcommand)
    entry = registry.get(function_id)
    if entry is None:
        raise GrantlangError(f"No registry record for '{function_id}' in {store.describe()}")
    if subcommand == "show":
        if json_mode:
            emit_json(entry.to_payload())
        else:
            print(render_policy(entry.policy))
        return 0

    registry.remove(function_id)
    registry.persist()
    print(f"Removed {function_id}.")
    return 0


def _single_function_id(positional: list[str], subcommand: str) -> str:
    if len(positional) != 1:
        raise GrantlangError(
            build_guidance_message(
                what=f"registry {subcommand} needs exactly one function id.",
                why="Records are addressed by the id of the function that declared them.",
                fix="Pass the function id shown by `grantlang registry list`.",
                example=f"grantlang registry {subcommand} handlers.profile.get_profile",
            )
        )
    return positional[0]


def _print_usage() -> None:
    print(
        "Usage:\n"
        "  grantlang registry list [--json] [--project DIR]\n"
        "  grantlang registry show <function_id> [--json] [--project DIR]\n"
        "  grantlang registry remove <function_id> [--project DIR]"
    )


def _unknown_subcommand_message(subcommand: str) -> str:
    return build_guidance_message(
        what=f"Unknown registry command '{subcommand}'.",
        why="Supported commands are list, show and remove.",
        fix="Use one of the supported subcommands.",
        example="grantlang registry list",
    )


__all__ = ["run_registry_command"]
