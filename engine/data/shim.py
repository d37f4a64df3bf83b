"""
Shim layer - legacy-shaped views over current documents.

Consumers written against an older schema keep working through a
ShimView. It exposes deprecated names, forwards them to the canonical
fields, and sends writes through DocumentData.update(), so the canonical
instance is always the one that changes. Shims never persist anything
themselves.

Usage:
    view = shim(tile)
    view.img                  # reads tile.texture.src (DeprecationWarning)
    view.img = "tiles/b.png"  # tile.update({"texture.src": "tiles/b.png"})
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator

from engine.data.collection import EmbeddedCollection
from engine.data.utils import expand_object, get_path

if TYPE_CHECKING:
    from engine.data.document import DocumentData


@dataclass(frozen=True)
class Shim:
    """
    A deprecated name bridged to a current field.

    Attributes:
        legacy: The deprecated top-level name
        target: Dotted path of the canonical field
        get: Converts the canonical value to its legacy form on read
        set: Converts a legacy value to its canonical form on write
        since: Schema version that deprecated the name
    """
    legacy: str
    target: str
    get: Callable[[Any], Any] | None = None
    set: Callable[[Any], Any] | None = None
    since: int | None = None


class ShimView:
    """
    A read/write proxy exposing legacy names over a document.

    Current names pass straight through; legacy names are translated.
    With embedded=True, embedded collections are exposed as collections
    of child views using each child model's own shims.
    """

    __slots__ = ("_document", "_shims", "_embedded")

    def __init__(self, document: DocumentData, *, embedded: bool = True):
        object.__setattr__(self, "_document", document)
        object.__setattr__(self, "_shims", {s.legacy: s for s in document.model.shims})
        object.__setattr__(self, "_embedded", embedded)

    @property
    def document(self) -> DocumentData:
        """The canonical instance behind this view."""
        return self._document

    def _warn(self, shim: Shim) -> None:
        if not self._document.config.shim_warnings:
            return
        since = f" since schema version {shim.since}" if shim.since else ""
        warnings.warn(
            f"{self._document.model.name}#{shim.legacy} is deprecated{since}, "
            f"use {shim.target} instead",
            DeprecationWarning,
            stacklevel=4,
        )

    # Reads

    def _read(self, name: str) -> Any:
        shim = self._shims.get(name)
        if shim is not None:
            self._warn(shim)
            value = get_path(self._document.properties, shim.target)
            return shim.get(value) if shim.get else value
        value = self._document.properties[name]
        if self._embedded and isinstance(value, EmbeddedCollection):
            return EmbeddedCollectionView(value)
        return value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._read(name)
        except KeyError:
            raise AttributeError(
                f"{self._document.model.name} has no field or legacy name '{name}'"
            ) from None

    def __getitem__(self, name: str) -> Any:
        return self._read(name)

    def __contains__(self, name: object) -> bool:
        return name in self._shims or name in self._document.properties

    def __iter__(self) -> Iterator[str]:
        yield from self._document.properties
        yield from self._shims

    # Writes

    def _translate(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        translated: dict[str, Any] = {}
        for key, value in expand_object(changes).items():
            shim = self._shims.get(key)
            if shim is None:
                translated[key] = value
                continue
            self._warn(shim)
            translated[shim.target] = shim.set(value) if shim.set else value
        return translated

    def update(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Update the canonical document, accepting legacy names."""
        return self._document.update(self._translate(changes))

    def __setattr__(self, name: str, value: Any) -> None:
        self.update({name: value})

    def __setitem__(self, name: str, value: Any) -> None:
        self.update({name: value})

    def __repr__(self) -> str:
        return f"<ShimView {self._document!r}>"


class EmbeddedCollectionView:
    """An embedded collection whose children are exposed as ShimViews."""

    def __init__(self, collection: EmbeddedCollection):
        self._collection = collection

    def get(self, doc_id: str, *, strict: bool = False) -> ShimView | None:
        child = self._collection.get(doc_id, strict=strict)
        return ShimView(child) if child is not None else None

    def __getitem__(self, doc_id: str) -> ShimView:
        return ShimView(self._collection[doc_id])

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._collection

    def __iter__(self) -> Iterator[ShimView]:
        return (ShimView(child) for child in self._collection)

    def __len__(self) -> int:
        return len(self._collection)


def shim(document: DocumentData, *, embedded: bool = True) -> ShimView:
    """
    Wrap a document in a legacy-compatible view.

    Args:
        document: The canonical instance
        embedded: Also shim children of embedded collections
    """
    return ShimView(document, embedded=embedded)
