from __future__ import annotations

from grantlang.errors.base import CompileError, GrantlangError


def format_error(err: GrantlangError, source: str | None = None) -> str:
    """Render ``err`` for a terminal.

    ``source`` is the annotation text the error positions refer to; when
    given, the offending line is shown with a caret under the column.
    """
    if isinstance(err, CompileError) and err.errors:
        parts = [str(err)]
        for child in err.errors:
            parts.append(_indent(format_error(child, source)))
        return "\n".join(parts)

    base = str(err)
    location = _location_line(err)
    if location:
        base = f"{base}\n{location}"
    if not source or err.line is None:
        return base

    lines = source.replace("\r\n", "\n").split("\n")
    line_index = err.line - 1
    if line_index < 0 or line_index >= len(lines):
        return base

    line_text = lines[line_index]
    column = err.column if err.column is not None else 1
    caret_pos = max(1, min(column, len(line_text) + 1))
    caret_line = " " * (caret_pos - 1) + "^"
    return f"{base}\n{line_text}\n{caret_line}"


def _location_line(err: GrantlangError) -> str:
    parts: list[str] = []
    file_path = err.details.get("file")
    if file_path:
        parts.append(f"file: {file_path}")
    function_id = err.details.get("function_id")
    if function_id:
        parts.append(f"function: {function_id}")
    atom_index = err.details.get("atom_index")
    if atom_index is not None:
        parts.append(f"atom: {atom_index}")
    if err.line is not None:
        parts.append(f"line: {err.line}")
        if err.column is not None:
            parts.append(f"column: {err.column}")
    return ", ".join(parts)


def _indent(text: str) -> str:
    return "\n".join(f"  {line}" for line in text.splitlines())


__all__ = ["format_error"]
