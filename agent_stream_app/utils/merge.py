"""
Deep merge for JSON-like values with null-as-delete semantics.

Used for every settings and global-config update: the stored value is the
left side, the incoming partial update is the right side.
"""

import copy
from typing import Any

JsonValue = None | bool | int | float | str | list[Any] | dict[str, Any]


def merge(a: JsonValue, b: JsonValue) -> JsonValue:
    """
    Merges `b` into `a` and returns the result.

    When both sides are objects, `a` is updated in place key by key: a `None`
    value in `b` removes that key from `a`, any other value replaces or is
    merged recursively into the value already at that key. When either side is
    not an object, `b` replaces `a` wholesale, so callers must use the return
    value. `b` is never mutated; values taken from it are copied.
    """
    if isinstance(a, dict) and isinstance(b, dict):
        for key, value in b.items():
            if value is None:
                a.pop(key, None)
            elif key in a:
                a[key] = merge(a[key], value)
            elif isinstance(value, dict):
                # Nulls inside a new subtree are deletions too, not stored values.
                a[key] = merge({}, value)
            else:
                a[key] = copy.deepcopy(value)
        return a
    return copy.deepcopy(b)


def merged(a: JsonValue, b: JsonValue) -> JsonValue:
    """Returns the merge of `b` over a copy of `a`, leaving both untouched."""
    return merge(copy.deepcopy(a), b)
