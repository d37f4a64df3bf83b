"""
Read-only runtime views of document data.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator


class DataProperties(Mapping):
    """
    Immutable, attribute-accessible mapping of initialized values.

    Keys that collide with Mapping methods (items, keys, values, get)
    must be read with item access: props["items"].
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None):
        object.__setattr__(self, "_data", dict(data or {}))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"Cannot assign '{name}': document properties are read-only, "
            "use DocumentData.update()"
        )

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Cannot delete '{name}': document properties are read-only")

    def __repr__(self) -> str:
        return f"DataProperties({self._data!r})"

    def to_dict(self) -> dict[str, Any]:
        """Deep-convert back to plain dicts and lists."""
        return {key: _thaw(value) for key, value in self._data.items()}


def freeze(value: Any) -> Any:
    """Recursively convert dicts to DataProperties and lists to tuples."""
    if isinstance(value, Mapping) and not isinstance(value, DataProperties):
        return DataProperties({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, DataProperties):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    if hasattr(value, "to_properties"):
        return value.to_properties()
    return value
