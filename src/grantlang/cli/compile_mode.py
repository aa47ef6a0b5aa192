from __future__ import annotations

import sys

from grantlang.cli.common import GlobalOptions, emit_json, read_policy_text, reject_unknown_flags, report_error
from grantlang.compiler.iam import IamPolicyCompiler
from grantlang.config.loader import load_config
from grantlang.errors.base import CompileError, GrantlangError
from grantlang.parser.core import Parser


def run_compile_command(args: list[str], options: GlobalOptions) -> int:
    if args and args[0] in {"help", "-h", "--help"}:
        _print_usage()
        return 0
    partial = "--partial" in args
    remaining = [arg for arg in args if arg != "--partial"]
    text = ""
    try:
        reject_unknown_flags(remaining, command="compile", allowed={"--file", "--partial"})
        text = read_policy_text(remaining, command="compile")
        config = load_config(options.project)
        policy = Parser.parse(text, strict=config.parser.strict)
        compiler = IamPolicyCompiler.from_config(config)
        if not partial:
            sys.stdout.write(compiler.compile_policy(policy))
            return 0
        result = compiler.compile_document(policy)
    except GrantlangError as err:
        return report_error(err, text)
    emit_json(result.document)
    if result.errors:
        report_error(CompileError("Some policy atoms were left out of the document.", errors=list(result.errors)), text)
        return 1
    return 0


def _print_usage() -> None:
    print(
        "Usage:\n"
        "  grantlang compile <text | --file PATH | -> [--partial] [--project DIR]\n"
        "\n"
        "--partial prints the statements that compiled even when some atoms fail."
    )


__all__ = ["run_compile_command"]
