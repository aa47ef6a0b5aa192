from __future__ import annotations

from grantlang.persistence.registry import PolicyRegistry, RegistryEntry, validate_function_id
from grantlang.persistence.store import DirectoryStore, MemoryStore, RegistryStore

__all__ = [
    "DirectoryStore",
    "MemoryStore",
    "PolicyRegistry",
    "RegistryEntry",
    "RegistryStore",
    "validate_function_id",
]
