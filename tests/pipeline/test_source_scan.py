from pathlib import Path

import pytest

from grantlang import policy
from grantlang.pipeline.annotations import declared_policies, units_from_functions
from grantlang.pipeline.scan import module_name, scan_path, scan_source


HANDLERS = '''
from grantlang import policy
import grantlang


@policy('allow read on table "Users" where key_equals $pk concat("USER#", $caller.id)')
def get_user(event):
    return event


@grantlang.policy(text='allow create table "Orders"')
async def create_order(event):
    return event


class ProfileHandler:
    @policy('allow update table "Profiles"')
    def put(self, event):
        return event


def undecorated():
    return None
'''


def test_scan_source_finds_functions_methods_and_async_functions() -> None:
    result = scan_source(HANDLERS, module="app.handlers")
    assert result.errors == []
    assert [unit.function_id for unit in result.units] == [
        "app.handlers.get_user",
        "app.handlers.create_order",
        "app.handlers.ProfileHandler.put",
    ]
    first = result.units[0]
    assert first.source.startswith("allow read on table")
    assert first.line == 6


def test_stacked_decorators_form_one_policy_in_source_order() -> None:
    text = (
        "@policy('allow read table \"A\"')\n"
        "@policy('allow create table \"B\"')\n"
        "def handler():\n"
        "    pass\n"
    )
    result = scan_source(text, module="mod")
    assert [unit.source for unit in result.units] == ['allow read table "A"\nallow create table "B"']


def test_policy_on_nested_function_is_reported() -> None:
    text = (
        "def outer():\n"
        "    @policy('allow read table \"A\"')\n"
        "    def inner():\n"
        "        pass\n"
        "    return inner\n"
    )
    result = scan_source(text, module="mod", file="mod.py")
    assert result.units == []
    assert len(result.errors) == 1
    err = result.errors[0]
    assert "nested function mod.outer.inner" in str(err)
    assert err.details["file"] == "mod.py"


def test_non_literal_policy_is_reported() -> None:
    text = (
        "TEXT = 'allow read table \"A\"'\n"
        "@policy(TEXT)\n"
        "def handler():\n"
        "    pass\n"
    )
    result = scan_source(text, module="mod")
    assert result.units == []
    assert "is not a string literal" in str(result.errors[0])


def test_unrelated_decorators_are_ignored() -> None:
    text = (
        "@other.policy('x')\n"
        "@cache\n"
        "def handler():\n"
        "    pass\n"
    )
    result = scan_source(text, module="mod")
    assert result.units == []
    assert result.errors == []


def test_syntax_error_is_reported_with_location() -> None:
    result = scan_source("def broken(:\n", module="mod", file="mod.py")
    assert result.units == []
    assert result.errors[0].line == 1
    assert "Cannot scan mod.py" in str(result.errors[0])


def test_scan_path_walks_packages_and_skips_hidden_dirs(tmp_path: Path) -> None:
    package = tmp_path / "app"
    (package / "handlers").mkdir(parents=True)
    (package / ".cache").mkdir()
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "handlers" / "__init__.py").write_text("", encoding="utf-8")
    (package / "handlers" / "users.py").write_text(HANDLERS, encoding="utf-8")
    (package / ".cache" / "stale.py").write_text(HANDLERS, encoding="utf-8")

    result = scan_path(package)
    assert result.errors == []
    assert result.files == 3
    assert {unit.function_id for unit in result.units} == {
        "app.handlers.users.get_user",
        "app.handlers.users.create_order",
        "app.handlers.users.ProfileHandler.put",
    }
    assert all(unit.file.endswith("users.py") for unit in result.units)


def test_module_name_without_package_marker(tmp_path: Path) -> None:
    assert module_name(tmp_path, tmp_path / "jobs" / "nightly.py") == "jobs.nightly"


def test_scan_path_on_single_file_uses_its_stem(tmp_path: Path) -> None:
    path = tmp_path / "orders.py"
    path.write_text(HANDLERS, encoding="utf-8")
    result = scan_path(path)
    assert result.units[0].function_id == "orders.get_user"


@policy('allow read table "Users"')
@policy('allow delete table "Users"')
def _decorated(event):
    return event


def test_decorator_records_declarations_and_returns_function() -> None:
    assert _decorated("x") == "x"
    assert declared_policies(_decorated) == ('allow read table "Users"', 'allow delete table "Users"')
    units = units_from_functions([_decorated, len])
    assert len(units) == 1
    assert units[0].function_id == f"{__name__}._decorated"
    assert units[0].source == 'allow read table "Users"\nallow delete table "Users"'


def test_decorator_rejects_non_string() -> None:
    with pytest.raises(TypeError):
        policy(42)
