from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from grantlang.errors.base import StorageError


RECORD_SUFFIX = ".json"


class RegistryStore(Protocol):
    """Backing store holding one serialized record per function id."""

    def describe(self) -> str: ...
    def list_ids(self) -> list[str]: ...
    def read_record(self, function_id: str) -> str | None: ...
    def write_record(self, function_id: str, text: str) -> bool: ...
    def delete_record(self, function_id: str) -> bool: ...


class DirectoryStore:
    """One ``<function_id>.json`` file per record inside ``root``.

    Builds that touch different function ids write different files, so they
    never overwrite each other's records.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def describe(self) -> str:
        return self._root.as_posix()

    def path_for(self, function_id: str) -> Path:
        return self._root / f"{function_id}{RECORD_SUFFIX}"

    def list_ids(self) -> list[str]:
        if not self._root.exists():
            return []
        if not self._root.is_dir():
            raise StorageError(f"Registry path {self.describe()} is not a directory")
        try:
            names = [path.name for path in self._root.iterdir() if path.is_file()]
        except OSError as err:
            raise StorageError(f"Cannot list registry directory {self.describe()}: {err}") from err
        return sorted(name[: -len(RECORD_SUFFIX)] for name in names if name.endswith(RECORD_SUFFIX) and not name.startswith("."))

    def read_record(self, function_id: str) -> str | None:
        path = self.path_for(function_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as err:
            raise StorageError(f"Cannot read registry record {path.as_posix()}: {err}") from err

    def write_record(self, function_id: str, text: str) -> bool:
        path = self.path_for(function_id)
        if _has_content(path, text):
            return False
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{function_id}.", suffix=".tmp", dir=self._root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as err:
            raise StorageError(f"Cannot write registry record {path.as_posix()}: {err}") from err
        return True

    def delete_record(self, function_id: str) -> bool:
        path = self.path_for(function_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as err:
            raise StorageError(f"Cannot delete registry record {path.as_posix()}: {err}") from err
        return True


def _has_content(path: Path, text: str) -> bool:
    try:
        return path.read_text(encoding="utf-8") == text
    except (OSError, UnicodeDecodeError):
        return False


class MemoryStore:
    def __init__(self, records: dict[str, str] | None = None) -> None:
        self.records: dict[str, str] = dict(records or {})
        self.writes = 0

    def describe(self) -> str:
        return "memory"

    def list_ids(self) -> list[str]:
        return list(self.records)

    def read_record(self, function_id: str) -> str | None:
        return self.records.get(function_id)

    def write_record(self, function_id: str, text: str) -> bool:
        if self.records.get(function_id) == text:
            return False
        self.records[function_id] = text
        self.writes += 1
        return True

    def delete_record(self, function_id: str) -> bool:
        return self.records.pop(function_id, None) is not None


__all__ = ["DirectoryStore", "MemoryStore", "RECORD_SUFFIX", "RegistryStore"]
