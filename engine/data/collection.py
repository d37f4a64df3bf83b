"""
Embedded collections - ordered, id-keyed containers of child documents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from engine.data.document import DocumentData

if TYPE_CHECKING:
    from engine.data.model import DocumentModel


class EmbeddedCollection:
    """
    The runtime form of an embedded collection field.

    Children are exclusively owned by the parent document. Iteration
    yields children in source order; get() looks them up by _id.

    Usage:
        for effect in item.effects:
            print(effect.name)
        effect = item.effects.get("a1b2c3d4e5f6g7h8")
    """

    def __init__(
        self,
        model: DocumentModel,
        sources: list[dict[str, Any]],
        *,
        parent: DocumentData | None = None,
        name: str = "",
    ):
        self.model = model
        self.name = name
        self._parent = parent
        config = parent.config if parent is not None else None
        self._children: dict[str, DocumentData] = {}
        for source in sources:
            child = DocumentData.from_source(model, source, parent=parent, config=config)
            self._children[child.id] = child

    @property
    def parent(self) -> DocumentData | None:
        return self._parent

    def get(self, doc_id: str | None, *, strict: bool = False) -> DocumentData | None:
        """
        Get a child by id.

        Raises:
            KeyError: If strict and no child has this id
        """
        child = self._children.get(doc_id)
        if child is None and strict:
            raise KeyError(f"{self.model.name} {doc_id!r} does not exist in '{self.name}'")
        return child

    def __getitem__(self, doc_id: str) -> DocumentData:
        return self.get(doc_id, strict=True)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._children

    def __iter__(self) -> Iterator[DocumentData]:
        return iter(list(self._children.values()))

    def __len__(self) -> int:
        return len(self._children)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmbeddedCollection):
            return NotImplemented
        return self.model is other.model and self.contents == other.contents

    __hash__ = None

    def __repr__(self) -> str:
        return f"<EmbeddedCollection {self.name} [{len(self)} {self.model.name}]>"

    @property
    def ids(self) -> list[str]:
        return list(self._children)

    @property
    def contents(self) -> list[DocumentData]:
        return list(self._children.values())

    def at(self, index: int) -> DocumentData:
        """Positional access."""
        return self.contents[index]

    def to_source(self) -> list[dict[str, Any]]:
        return [child.source for child in self._children.values()]

    def to_properties(self) -> list[dict[str, Any]]:
        return [child.properties.to_dict() for child in self._children.values()]

    def _add(self, child: DocumentData) -> None:
        self._children[child.id] = child

    def _remove(self, doc_id: str) -> DocumentData | None:
        return self._children.pop(doc_id, None)

    def _reconcile(self, sources: list[dict[str, Any]]) -> None:
        """Match children to new source entries by _id, keeping existing instances."""
        config = self._parent.config if self._parent is not None else None
        children: dict[str, DocumentData] = {}
        for source in sources:
            child = self._children.get(source.get("_id"))
            if child is None:
                child = DocumentData.from_source(self.model, source, parent=self._parent, config=config)
            else:
                child._rebind(source)
            children[child.id] = child
        self._children = children
