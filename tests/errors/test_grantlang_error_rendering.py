import pytest

from grantlang.compiler.iam import IamPolicyCompiler
from grantlang.errors import CompileError, GrammarError, GrantlangError, ResolutionError, format_error
from grantlang.errors.guidance import build_guidance_message, guidance_summary
from grantlang.parser.core import parse_policy


def test_guidance_message_layout() -> None:
    message = build_guidance_message(what="A broke.", why="B.", fix="C.", example="D")
    assert message.splitlines() == ["What happened: A broke.", "Why: B.", "Fix: C.", "Example: D"]
    assert guidance_summary(message) == "A broke."
    assert guidance_summary("plain text\nmore") == "plain text"


def test_grammar_error_renders_caret_on_offending_line() -> None:
    source = 'allow read table "Users"\nallow read table Users'
    with pytest.raises(GrammarError) as exc:
        parse_policy(source)
    rendered = format_error(exc.value, source)
    lines = rendered.splitlines()
    assert lines[-2] == "allow read table Users"
    assert lines[-1] == " " * 17 + "^"
    assert "line: 2, column: 18" in rendered


def test_caret_is_clamped_past_end_of_line() -> None:
    source = "allow read table"
    with pytest.raises(GrammarError) as exc:
        parse_policy(source)
    assert exc.value.details["token"] is None
    lines = format_error(exc.value, source).splitlines()
    assert lines[-1] == " " * 16 + "^"


def test_error_without_position_renders_message_only() -> None:
    err = GrantlangError("Something failed")
    assert format_error(err, "allow read table \"A\"") == "Something failed"


def test_compile_error_lists_each_failing_atom() -> None:
    source = 'allow read table "A" where key_equals $pk $a.b\nallow read table "B" where key_equals $pk $c.d'
    with pytest.raises(CompileError) as exc:
        IamPolicyCompiler().compile_policy(parse_policy(source))
    err = exc.value
    assert all(isinstance(child, ResolutionError) for child in err.errors)
    rendered = format_error(err, source)
    assert rendered.startswith("2 of 2 policy atom(s) failed to compile.")
    assert "  atom: 0, line: 1, column: 43" in rendered
    assert "  atom: 1, line: 2, column: 43" in rendered


def test_location_includes_file_and_function() -> None:
    err = GrantlangError("boom", line=3, column=1, details={"file": "app.py", "function_id": "app.f"})
    assert format_error(err).splitlines()[1] == "file: app.py, function: app.f, line: 3, column: 1"
