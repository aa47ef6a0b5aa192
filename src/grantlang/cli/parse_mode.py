from __future__ import annotations

from grantlang.ast.payload import policy_to_payload
from grantlang.ast.render import render_policy
from grantlang.cli.common import emit_json, read_policy_text, reject_unknown_flags, report_error
from grantlang.errors.base import GrantlangError
from grantlang.parser.core import Parser


def run_parse_command(args: list[str]) -> int:
    if args and args[0] in {"help", "-h", "--help"}:
        print("Usage:\n  grantlang parse <text | --file PATH | -> [--lenient]")
        return 0
    lenient = "--lenient" in args
    remaining = [arg for arg in args if arg != "--lenient"]
    text = ""
    try:
        reject_unknown_flags(remaining, command="parse", allowed={"--file", "--lenient"})
        text = read_policy_text(remaining, command="parse")
        parser = Parser.from_source(text, strict=not lenient)
        policy = parser.parse_policy()
    except GrantlangError as err:
        return report_error(err, text)
    payload = {"policy": policy_to_payload(policy)}
    if parser.truncated is not None:
        payload["truncated"] = {
            "line": parser.truncated.line,
            "column": parser.truncated.column,
            "message": str(parser.truncated),
        }
    emit_json(payload)
    return 0


def run_render_command(args: list[str]) -> int:
    if args and args[0] in {"help", "-h", "--help"}:
        print("Usage:\n  grantlang render <text | --file PATH | ->")
        return 0
    text = ""
    try:
        reject_unknown_flags(args, command="render", allowed={"--file"})
        text = read_policy_text(args, command="render")
        policy = Parser.parse(text)
    except GrantlangError as err:
        return report_error(err, text)
    print(render_policy(policy))
    return 0


__all__ = ["run_parse_command", "run_render_command"]
