from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from grantlang.determinism import canonical_json_dumps
from grantlang.errors.base import GrantlangError
from grantlang.errors.guidance import build_guidance_message
from grantlang.errors.render import format_error


@dataclass(frozen=True)
class GlobalOptions:
    verbose: bool = False
    project: Path | None = None


def split_global_options(args: list[str]) -> tuple[GlobalOptions, list[str]]:
    verbose = False
    project: Path | None = None
    remaining: list[str] = []
    idx = 0
    while idx < len(args):
        arg = args[idx]
        if arg in {"--verbose", "-v"}:
            verbose = True
            idx += 1
            continue
        if arg == "--project":
            if idx + 1 >= len(args):
                raise GrantlangError(_missing_value_message("--project"))
            project = Path(args[idx + 1])
            idx += 2
            continue
        remaining.append(arg)
        idx += 1
    return GlobalOptions(verbose=verbose, project=project), remaining


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_policy_text(args: list[str], *, command: str) -> str:
    if not args:
        raise GrantlangError(_missing_text_message(command))
    if args[0] == "--file":
        if len(args) < 2:
            raise GrantlangError(_missing_value_message("--file"))
        path = Path(args[1])
        try:
            return path.read_text(encoding="utf-8")
        except OSError as err:
            raise GrantlangError(f"Cannot read {path.as_posix()}: {err}") from err
    if args[0] == "-":
        return sys.stdin.read()
    return " ".join(args)


def emit_json(payload: object) -> None:
    sys.stdout.write(canonical_json_dumps(payload))


def report_error(err: GrantlangError, source: str | None = None) -> int:
    print(format_error(err, source), file=sys.stderr)
    return 1


def reject_unknown_flags(args: list[str], *, command: str, allowed: set[str]) -> None:
    for arg in args:
        if arg.startswith("--") and arg not in allowed:
            supported = ", ".join(sorted(allowed)) or "no flags"
            raise GrantlangError(
                build_guidance_message(
                    what=f"Unknown flag '{arg}'.",
                    why=f"grantlang {command} supports {supported}.",
                    fix="Remove the unsupported flag.",
                    example=f"grantlang {command} --help",
                )
            )


def _missing_value_message(flag: str) -> str:
    return build_guidance_message(
        what=f"{flag} needs a value.",
        why=f"{flag} is followed by a path.",
        fix=f"Pass a path after {flag}.",
        example=f"{flag} ./service",
    )


def _missing_text_message(command: str) -> str:
    return build_guidance_message(
        what=f"grantlang {command} needs policy text.",
        why="The policy can be passed inline, from a file, or on stdin.",
        fix="Pass the text, --file PATH, or - to read stdin.",
        example=f"grantlang {command} 'allow read on table \"Users\"'",
    )


__all__ = [
    "GlobalOptions",
    "configure_logging",
    "emit_json",
    "read_policy_text",
    "reject_unknown_flags",
    "report_error",
    "split_global_options",
]
