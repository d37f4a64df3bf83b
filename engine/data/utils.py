"""
Helpers for working with nested source objects.

Source data is plain JSON-compatible dicts and lists. These helpers address
nested keys with dot-separated paths ("texture.src") and implement the
merge/diff semantics used by document updates.
"""

from __future__ import annotations

import copy
import secrets
import string
from collections.abc import Mapping
from typing import Any

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 16

# Marks a key that is missing, as opposed to one explicitly set to None
_MISSING = object()


def random_id(length: int = ID_LENGTH) -> str:
    """Generate a random alphanumeric document identifier."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def has_path(data: Mapping, path: str) -> bool:
    return get_path(data, path, _MISSING) is not _MISSING


def get_path(data: Mapping, path: str, default: Any = None) -> Any:
    """Read a dotted path, returning default if any segment is missing."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def set_path(data: dict, path: str, value: Any) -> None:
    """Write a dotted path, creating intermediate objects as needed."""
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value


def pop_path(data: dict, path: str, default: Any = None) -> Any:
    """
    Remove and return the value at a dotted path.

    Parent objects left empty by the removal are pruned, so a fully
    consumed legacy sub-object does not linger in the source.
    """
    parts = path.split(".")
    parents = []
    current: Any = data
    for part in parts[:-1]:
        if not isinstance(current, dict) or part not in current:
            return default
        parents.append((current, part))
        current = current[part]
    if not isinstance(current, dict) or parts[-1] not in current:
        return default
    value = current.pop(parts[-1])
    for parent, key in reversed(parents):
        if parent[key]:
            break
        del parent[key]
    return value


def expand_object(data: Mapping) -> dict:
    """
    Expand dotted keys into nested objects.

    {"texture.src": "a.png", "x": 1} -> {"texture": {"src": "a.png"}, "x": 1}
    """
    expanded: dict = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            value = expand_object(value)
        if isinstance(key, str) and "." in key:
            head, _, rest = key.partition(".")
            existing = expanded.get(head)
            nested = expand_object({rest: value})
            if isinstance(existing, dict):
                merge_object(existing, nested)
            else:
                expanded[head] = nested
        elif isinstance(value, dict) and isinstance(expanded.get(key), dict):
            merge_object(expanded[key], value)
        else:
            expanded[key] = value
    return expanded


def merge_object(original: dict, other: Mapping) -> dict:
    """
    Recursively merge other into original, in place.

    Nested objects merge key by key; every other value (lists included)
    is replaced. A key of the form "-=name" deletes "name".
    """
    for key, value in other.items():
        if isinstance(key, str) and key.startswith("-="):
            original.pop(key[2:], None)
            continue
        target = original.get(key)
        if isinstance(value, Mapping) and isinstance(target, dict):
            merge_object(target, value)
        elif isinstance(value, Mapping):
            original[key] = merge_object({}, value)
        else:
            original[key] = copy.deepcopy(value)
    return original


def strip_deletions(data: Mapping) -> dict:
    """Deep copy of data with every "-=key" marker removed, at any depth."""
    result = {}
    for key, value in data.items():
        if isinstance(key, str) and key.startswith("-="):
            continue
        result[key] = strip_deletions(value) if isinstance(value, Mapping) else copy.deepcopy(value)
    return result


def diff_object(original: Mapping, other: Mapping) -> dict:
    """
    Return the subset of other that differs from original.

    Keys present in original but missing from other are reported as
    "-=key": None.
    """
    diff: dict = {}
    for key, value in other.items():
        if key not in original:
            diff[key] = copy.deepcopy(value)
            continue
        before = original[key]
        if isinstance(value, Mapping) and isinstance(before, Mapping):
            inner = diff_object(before, value)
            if inner:
                diff[key] = inner
        elif before != value:
            diff[key] = copy.deepcopy(value)
    for key in original:
        if key not in other:
            diff[f"-={key}"] = None
    return diff
