from __future__ import annotations

import json


def canonical_json_dumps(payload: object, *, pretty: bool = True) -> str:
    """Serialize ``payload`` so equal inputs always produce identical bytes.

    Object keys are sorted; list order is kept as given. Pretty output ends
    with a newline so generated files diff cleanly.
    """
    if pretty:
        return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False) + "\n"
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = ["canonical_json_dumps"]
