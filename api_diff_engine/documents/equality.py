from __future__ import annotations

import json
from typing import Any, Mapping


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _stringify_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_keys(item) for item in value]
    return value


def canonical_json(value: Any, sort_keys: bool = True) -> str:
    # YAML documents may mix int and str keys (e.g. 200 and "default" responses)
    return json.dumps(
        _stringify_keys(value),
        sort_keys=sort_keys,
        separators=(",", ":"),
        default=str,
    )


def values_equal(left: Any, right: Any, key_order_sensitive: bool = False) -> bool:
    """Compare two document fragments by their JSON serialization.

    With ``key_order_sensitive`` the mapping keys keep their document order,
    so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` are different values.
    Sequence order always matters.
    """
    if left is right:
        return True
    sort_keys = not key_order_sensitive
    return canonical_json(left, sort_keys=sort_keys) == canonical_json(
        right, sort_keys=sort_keys
    )
