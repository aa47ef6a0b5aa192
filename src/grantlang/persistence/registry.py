from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from typing import Iterable

from grantlang.ast.payload import policy_from_payload, policy_to_payload
from grantlang.ast.policy import Policy
from grantlang.determinism import canonical_json_dumps
from grantlang.errors.base import GrantlangError, StorageError
from grantlang.errors.guidance import build_guidance_message
from grantlang.persistence.store import RegistryStore


logger = logging.getLogger(__name__)

REGISTRY_ENTRY_SCHEMA = "grantlang.registry_entry.v1"
FUNCTION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]*$")


@dataclass(frozen=True)
class RegistryEntry:
    function_id: str
    policy: Policy
    document: dict | None = None
    source: str | None = None

    def to_payload(self) -> dict:
        return {
            "schema": REGISTRY_ENTRY_SCHEMA,
            "function_id": self.function_id,
            "policy": policy_to_payload(self.policy),
            "document": self.document,
            "source": self.source,
        }

    @classmethod
    def from_payload(cls, payload: object) -> "RegistryEntry":
        if not isinstance(payload, dict):
            raise StorageError("Registry record must be a JSON object")
        schema = payload.get("schema")
        if schema != REGISTRY_ENTRY_SCHEMA:
            raise StorageError(f"Unsupported registry record schema {schema!r}")
        function_id = payload.get("function_id")
        if not isinstance(function_id, str):
            raise StorageError("Registry record is missing function_id")
        document = payload.get("document")
        if document is not None and not isinstance(document, dict):
            raise StorageError("Registry record document must be an object or null")
        source = payload.get("source")
        if source is not None and not isinstance(source, str):
            raise StorageError("Registry record source must be a string or null")
        return cls(
            function_id=function_id,
            policy=policy_from_payload(payload.get("policy")),
            document=document,
            source=source,
        )


def validate_function_id(function_id: str) -> str:
    if not isinstance(function_id, str) or not FUNCTION_ID_PATTERN.match(function_id):
        raise StorageError(
            build_guidance_message(
                what=f"Function id {function_id!r} cannot be used as a registry key.",
                why="Registry records are stored as <function_id>.json files.",
                fix="Use letters, digits, underscores, dots and dashes only.",
                example="handlers.profile.get_profile",
            ),
            details={"function_id": function_id},
        )
    return function_id


class PolicyRegistry:
    """Ordered map of function id to policy, backed by a ``RegistryStore``.

    ``load`` never fails on bad state: an unreadable store or a corrupt
    record is treated as "nothing declared" for that scope. Each recovery is
    logged and appended to ``diagnostics``, and the dropped record will be
    overwritten by the next ``persist`` of that function id.

    ``persist`` writes every held entry and deletes only the ids removed
    through this registry, so records written by another build for other
    function ids survive. Upserts and persists are serialized by a lock.
    """

    def __init__(self, store: RegistryStore) -> None:
        self._store = store
        self._entries: dict[str, RegistryEntry] = {}
        self._removed: set[str] = set()
        self._lock = threading.RLock()
        self.diagnostics: list[str] = []

    @classmethod
    def load(cls, store: RegistryStore) -> "PolicyRegistry":
        registry = cls(store)
        registry.reload()
        return registry

    def reload(self) -> None:
        with self._lock:
            self._entries = {}
            self._removed = set()
            self.diagnostics = []
            try:
                function_ids = self._store.list_ids()
            except StorageError as err:
                self._recover(f"Registry store {self._store.describe()} is unreadable; starting empty. {err}")
                return
            for function_id in function_ids:
                entry = self._read_entry(function_id)
                if entry is not None:
                    self._entries[function_id] = entry

    def _read_entry(self, function_id: str) -> RegistryEntry | None:
        try:
            text = self._store.read_record(function_id)
            if text is None:
                return None
            entry = RegistryEntry.from_payload(json.loads(text))
        except (GrantlangError, ValueError, RecursionError) as err:
            self._recover(f"Registry record {function_id!r} is unreadable and was ignored: {err}")
            return None
        if entry.function_id != function_id:
            self._recover(
                f"Registry record {function_id!r} declares function id {entry.function_id!r} and was ignored"
            )
            return None
        return entry

    def _recover(self, message: str) -> None:
        logger.warning(message)
        self.diagnostics.append(message)

    def upsert(self, function_id: str, entry: RegistryEntry | Policy) -> bool:
        """Insert or replace the entry for ``function_id``; return whether it changed."""
        validate_function_id(function_id)
        if isinstance(entry, Policy):
            entry = RegistryEntry(function_id=function_id, policy=entry)
        if entry.function_id != function_id:
            raise StorageError(f"Entry for {entry.function_id!r} cannot be stored under {function_id!r}")
        with self._lock:
            self._removed.discard(function_id)
            if self._entries.get(function_id) == entry:
                return False
            # Assigning an existing key keeps its position.
            self._entries[function_id] = entry
            return True

    def get(self, function_id: str) -> RegistryEntry | None:
        return self._entries.get(function_id)

    def function_ids(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def remove(self, function_id: str) -> bool:
        with self._lock:
            if function_id not in self._entries:
                return False
            del self._entries[function_id]
            self._removed.add(function_id)
            return True

    def retain(self, function_ids: Iterable[str]) -> list[str]:
        keep = set(function_ids)
        with self._lock:
            stale = [function_id for function_id in self._entries if function_id not in keep]
            for function_id in stale:
                self.remove(function_id)
        return stale

    def persist(self) -> list[str]:
        """Write the registry back to its store; return the ids whose records changed."""
        changed: list[str] = []
        with self._lock:
            for function_id in sorted(self._removed):
                if self._store.delete_record(function_id):
                    changed.append(function_id)
            self._removed = set()
            for function_id, entry in self._entries.items():
                text = canonical_json_dumps(entry.to_payload())
                if self._store.write_record(function_id, text):
                    changed.append(function_id)
        if changed:
            logger.info("Persisted %d registry record(s) to %s", len(changed), self._store.describe())
        return changed

    def __contains__(self, function_id: object) -> bool:
        return function_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "FUNCTION_ID_PATTERN",
    "PolicyRegistry",
    "REGISTRY_ENTRY_SCHEMA",
    "RegistryEntry",
    "validate_function_id",
]
