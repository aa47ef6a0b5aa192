from __future__ import annotations

KEYWORDS = {
    "allow": "ALLOW",
    "create": "CREATE",
    "read": "READ",
    "update": "UPDATE",
    "delete": "DELETE",
    "on": "ON",
    "table": "TABLE",
    "where": "WHERE",
    "key_equals": "KEY_EQUALS",
    "key_like": "KEY_LIKE",
    "with": "WITH",
    "attributes": "ATTRIBUTES",
    "concat": "CONCAT",
}

ACTION_KEYWORDS = ("create", "read", "update", "delete")
FILTER_KEYWORDS = ("key_equals", "key_like")
KEY_NAMES = ("pk", "sk")

__all__ = [
    "ACTION_KEYWORDS",
    "FILTER_KEYWORDS",
    "KEYWORDS",
    "KEY_NAMES",
]
