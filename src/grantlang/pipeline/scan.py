from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path

from grantlang.errors.base import GrantlangError
from grantlang.errors.guidance import build_guidance_message
from grantlang.pipeline.annotations import AnnotatedUnit, join_declarations


logger = logging.getLogger(__name__)

DECORATOR_NAMES = frozenset({"policy"})
DECORATOR_MODULES = frozenset({"grantlang"})
_SKIP_DIRS = {"__pycache__", "node_modules", "venv", "build", "dist"}


@dataclass
class ScanResult:
    units: list[AnnotatedUnit] = field(default_factory=list)
    errors: list[GrantlangError] = field(default_factory=list)
    files: int = 0

    def extend(self, other: "ScanResult") -> None:
        self.units.extend(other.units)
        self.errors.extend(other.errors)
        self.files += other.files


def scan_source(text: str, *, module: str, file: str | None = None) -> ScanResult:
    result = ScanResult(files=1)
    try:
        tree = ast.parse(text, filename=file or "<source>")
    except SyntaxError as err:
        result.errors.append(
            GrantlangError(
                f"Cannot scan {file or module} for policies: {err.msg}",
                line=err.lineno,
                column=err.offset,
                details={"file": file, "module": module},
            )
        )
        return result
    visitor = _PolicyVisitor(module=module, file=file)
    visitor.visit(tree)
    result.units.extend(visitor.units)
    result.errors.extend(visitor.errors)
    return result


def scan_path(root: str | Path) -> ScanResult:
    root_path = Path(root)
    result = ScanResult()
    if root_path.is_file():
        result.extend(_scan_file(root_path, module=root_path.stem))
        return result
    for path in _python_files(root_path):
        result.extend(_scan_file(path, module=module_name(root_path, path)))
    logger.info("Scanned %d file(s) under %s: %d annotated function(s)", result.files, root_path, len(result.units))
    return result


def module_name(root: Path, path: Path) -> str:
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    if (root / "__init__.py").exists():
        parts.insert(0, root.resolve().name)
    return ".".join(parts) or root.resolve().name


def _python_files(root: Path) -> list[Path]:
    files = []
    for path in sorted(root.rglob("*.py")):
        relative = path.relative_to(root).parts[:-1]
        if any(part.startswith(".") or part in _SKIP_DIRS for part in relative):
            continue
        files.append(path)
    return files


def _scan_file(path: Path, *, module: str) -> ScanResult:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        return ScanResult(
            errors=[GrantlangError(f"Cannot read {path.as_posix()}: {err}", details={"file": path.as_posix()})],
            files=1,
        )
    return scan_source(text, module=module, file=path.as_posix())


class _PolicyVisitor(ast.NodeVisitor):
    def __init__(self, *, module: str, file: str | None) -> None:
        self.module = module
        self.file = file
        self.scope: list[str] = []
        self.in_function = 0
        self.units: list[AnnotatedUnit] = []
        self.errors: list[GrantlangError] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.scope.append(node.name)
        self.generic_visit(node)
        self.scope.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._visit_function(node)

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self.scope.append(node.name)
        function_id = ".".join([self.module, *self.scope])
        decorators = [item for item in node.decorator_list if _is_policy_decorator(item)]
        if decorators:
            self._collect(node, function_id, decorators)
        self.in_function += 1
        self.generic_visit(node)
        self.in_function -= 1
        self.scope.pop()

    def _collect(self, node, function_id: str, decorators: list[ast.Call]) -> None:
        if self.in_function:
            self.errors.append(
                self._error(
                    node,
                    function_id,
                    build_guidance_message(
                        what=f"Policy on nested function {function_id} cannot be registered.",
                        why="Only module-level functions and methods have a stable function id.",
                        fix="Move the function to module or class level.",
                        example='@policy(\'allow read on table "Users"\')',
                    ),
                )
            )
            return
        texts: list[str] = []
        for decorator in decorators:
            text = _decorator_text(decorator)
            if text is None:
                self.errors.append(
                    self._error(
                        decorator,
                        function_id,
                        build_guidance_message(
                            what=f"Policy on {function_id} is not a string literal.",
                            why="Policies are read from source without running it.",
                            fix="Pass the policy text as one literal string argument.",
                            example='@policy(\'allow read on table "Users"\')',
                        ),
                    )
                )
                return
            texts.append(text)
        self.units.append(
            AnnotatedUnit(
                function_id=function_id,
                source=join_declarations(texts),
                file=self.file,
                line=decorators[0].lineno,
            )
        )

    def _error(self, node: ast.AST, function_id: str, message: str) -> GrantlangError:
        return GrantlangError(
            message,
            details={"file": self.file, "function_id": function_id, "source_line": getattr(node, "lineno", None)},
        )


def _is_policy_decorator(node: ast.expr) -> bool:
    if not isinstance(node, ast.Call):
        return False
    func = node.func
    if isinstance(func, ast.Name):
        return func.id in DECORATOR_NAMES
    if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
        return func.attr in DECORATOR_NAMES and func.value.id in DECORATOR_MODULES
    return False


def _decorator_text(node: ast.Call) -> str | None:
    if any(keyword.arg != "text" for keyword in node.keywords):
        return None
    args = [*node.args, *(keyword.value for keyword in node.keywords)]
    if len(args) != 1:
        return None
    value = args[0]
    if isinstance(value, ast.Constant) and isinstance(value.value, str):
        return value.value
    return None


__all__ = ["DECORATOR_MODULES", "DECORATOR_NAMES", "ScanResult", "module_name", "scan_path", "scan_source"]
