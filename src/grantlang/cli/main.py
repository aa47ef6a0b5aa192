from __future__ import annotations

import sys

from grantlang.cli.build_mode import run_build_command
from grantlang.cli.common import configure_logging, report_error, split_global_options
from grantlang.cli.compile_mode import run_compile_command
from grantlang.cli.parse_mode import run_parse_command, run_render_command
from grantlang.cli.registry_mode import run_registry_command
from grantlang.errors.base import GrantlangError
from grantlang.errors.guidance import build_guidance_message
from grantlang.version import get_version


COMMANDS = ("parse", "render", "compile", "build", "registry")


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        options, args = split_global_options(args)
        configure_logging(options.verbose)
        if not args or args[0] in {"help", "-h", "--help"}:
            _print_usage()
            return 0
        cmd = args[0]
        if cmd in {"version", "--version"}:
            print(get_version())
            return 0
        if cmd == "parse":
            return run_parse_command(args[1:])
        if cmd == "render":
            return run_render_command(args[1:])
        if cmd == "compile":
            return run_compile_command(args[1:], options)
        if cmd == "build":
            return run_build_command(args[1:], options)
        if cmd == "registry":
            return run_registry_command(args[1:], options)
        raise GrantlangError(_unknown_command_message(cmd))
    except GrantlangError as err:
        return report_error(err)


def _print_usage() -> None:
    print(
        "Usage:\n"
        "  grantlang parse <text>        print the policy AST as JSON\n"
        "  grantlang render <text>       print the canonical policy text\n"
        "  grantlang compile <text>      print the IAM policy document\n"
        "  grantlang build [SRC]         compile every @policy declaration into the registry\n"
        "  grantlang registry list|show|remove\n"
        "\n"
        "Global flags: --project DIR, --verbose"
    )


def _unknown_command_message(cmd: str) -> str:
    return build_guidance_message(
        what=f"Unknown command '{cmd}'.",
        why=f"Supported commands are {', '.join(COMMANDS)}.",
        fix="Use one of the supported commands.",
        example="grantlang build src",
    )


__all__ = ["main"]
