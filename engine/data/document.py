"""
Document data instances.

A DocumentData is the result of applying a document model to raw data.
It keeps two parallel views:

- source: the persisted form, as plain dicts and lists
- properties: the runtime form, read-only, with nested schemas as
  attribute-access mappings and embedded collections as live containers

Properties are always rebuilt from source, and all mutation goes through
update(), so the two can never drift apart. Embedded children keep their
identity across rebuilds, so a held child stays attached to its parent.

Usage:
    item = Item.construct({"name": "Sword", "type": "weapon"})
    item.properties.data          # defaults for the weapon template
    item.update({"name": "Long Sword", "data.damage": 8})
    item.to_object()              # persisted form
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from engine.core.config import DEFAULT_CONFIG, DataConfig
from engine.data.constants import VERSION_KEY
from engine.data.errors import DataError, DuplicateEmbeddedId, TypeMismatch
from engine.data.fields import EmbeddedCollectionField, ForeignDocumentField
from engine.data.properties import DataProperties
from engine.data.utils import diff_object, expand_object, get_path, merge_object, random_id

if TYPE_CHECKING:
    from engine.data.collection import EmbeddedCollection
    from engine.data.model import DocumentModel

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """
    Outcome of one operation in a batch.

    Attributes:
        id: Identifier of the affected document (None if it never got one)
        value: Created document, or the diff of an update
        error: The failure, if the operation was rejected
    """
    id: str | None
    value: Any = None
    error: DataError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DocumentData:
    """
    A validated document built from a model and raw data.

    Construction migrates the raw data, then resolves every field. It is
    atomic: any failure raises and no instance is created.

    Args:
        model: The document model defining schema, migrations and shims
        data: Raw data (None constructs from defaults alone)
        parent: Owning document, for embedded documents
        config: Engine configuration

    Raises:
        DataValidationError: A field rejected its value
        MigrationError: The data has an unrecognized or unsupported shape
    """

    def __init__(
        self,
        model: DocumentModel,
        data: Mapping[str, Any] | None = None,
        *,
        parent: DocumentData | None = None,
        config: DataConfig | None = None,
    ):
        config = config or DEFAULT_CONFIG
        raw = model.migrate_data({} if data is None else data, config=config)
        source = model.schema.clean(raw)
        self._setup(model, source, parent=parent, config=config)

    @classmethod
    def from_source(
        cls,
        model: DocumentModel,
        source: dict[str, Any],
        *,
        parent: DocumentData | None = None,
        config: DataConfig | None = None,
    ) -> DocumentData:
        """Wrap an already-cleaned source object without re-validating it."""
        instance = cls.__new__(cls)
        instance._setup(model, source, parent=parent, config=config or DEFAULT_CONFIG)
        return instance

    def _setup(self, model, source, *, parent, config) -> None:
        self._model = model
        self._parent = parent
        self._config = config
        self._source = source
        self._properties = model.schema.initialize(source, self)

    # Views

    @property
    def model(self) -> DocumentModel:
        return self._model

    @property
    def parent(self) -> DocumentData | None:
        """The owning document, for embedded documents."""
        return self._parent

    @property
    def config(self) -> DataConfig:
        return self._config

    @property
    def id(self) -> str | None:
        return self._source.get("_id")

    @property
    def source(self) -> dict[str, Any]:
        """A deep copy of the persisted form."""
        return copy.deepcopy(self._source)

    @property
    def properties(self) -> DataProperties:
        return self._properties

    def __getitem__(self, key: str) -> Any:
        return self._properties[key]

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not real attributes
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._properties[name]
        except KeyError:
            raise AttributeError(
                f"{self._model.name} has no field or attribute '{name}'"
            ) from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentData):
            return NotImplemented
        return self._model is other._model and self._source == other._source

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"<{self._model.name} id={self.id!r}>"

    # Serialization

    def to_object(self) -> dict[str, Any]:
        """The persisted form, deep-copied."""
        return self.source

    def to_json(self, **kwargs: Any) -> str:
        """The persisted form as JSON, stamped with the schema version."""
        return json.dumps({VERSION_KEY: self._model.version, **self._source}, **kwargs)

    def clone(self, changes: Mapping[str, Any] | None = None, *, keep_id: bool = False) -> DocumentData:
        """
        Construct a new, unowned instance from this one's source.

        Args:
            changes: Updates merged over the copied source
            keep_id: Keep the _id instead of clearing it
        """
        data = self.source
        if not keep_id and "_id" in data:
            data["_id"] = None
        if changes:
            merge_object(data, expand_object(changes))
        return DocumentData(self._model, data, config=self._config)

    # Updates

    def update(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        """
        Apply a partial update.

        Dotted keys are expanded and legacy shapes migrated. Only the
        changed top-level fields are resolved again, against their merged
        values. The update is atomic: on failure nothing changes.

        Returns:
            The diff of values that actually changed (empty if none)

        Raises:
            DataValidationError: A changed field rejected its value
            MigrationError: The changes use an unrecognized shape
        """
        if not isinstance(changes, Mapping):
            raise TypeMismatch(f"expected an object, got {type(changes).__name__}")
        if self._parent is not None and not self._parent._owns(self):
            raise DataError(f"{self!r} no longer belongs to {self._parent!r}")
        changes = self._model.migrate_data(expand_object(changes), config=self._config)
        changes.pop("_id", None)
        if not changes:
            return {}

        candidate = merge_object(copy.deepcopy(self._source), changes)
        changed = {name: candidate.get(name) for name in changes if name in self._model.schema}
        resolved = self._model.schema.clean(changed, partial=True)

        source = {}
        for name in self._model.schema:
            if name in resolved:
                source[name] = resolved[name]
            elif name in self._source:
                source[name] = self._source[name]

        diff = diff_object(self._source, source)
        if not diff:
            return {}

        self._rebind(source)
        if self._parent is not None:
            self._parent._sync_child(self)
        logger.debug("Updated %r: %s", self, diff)
        return diff

    # Foreign references

    def resolve(self, field_name: str, lookup: Callable[[str, str], Any]) -> Any:
        """
        Resolve a foreign reference field to its target document.

        Args:
            field_name: Name of a ForeignDocumentField
            lookup: Callable (document kind, id) -> document or None

        Returns:
            The target, or None for a null or dangling reference
        """
        field = self._model.schema.get_field(field_name)
        if not isinstance(field, ForeignDocumentField):
            raise KeyError(f"{self._model.name}.{field_name} is not a foreign reference")
        value = get_path(self._source, field_name)
        target = field.resolve_reference(value, lookup)
        if target is None and value is not None:
            logger.debug("%r.%s references a missing %s", self, field_name, field.document)
        return target

    # Embedded documents

    def embedded(self, name: str) -> EmbeddedCollection:
        """The live embedded collection stored in field `name`."""
        self._embedded_field(name)
        return self._properties[name]

    def create_embedded(self, name: str, data: Iterable[Mapping[str, Any]]) -> list[OperationResult]:
        """
        Create child documents in an embedded collection.

        Each child is migrated and constructed independently; a rejected
        child does not prevent the others from being created.
        """
        field = self._embedded_field(name)
        collection = self.embedded(name)
        results = []
        for raw in data:
            child_id = raw.get("_id") if isinstance(raw, Mapping) else None
            try:
                if not isinstance(raw, Mapping):
                    raise TypeMismatch(f"expected an object, got {type(raw).__name__}")
                migrated = field.model.migrate_data(raw, config=self._config)
                if migrated.get("_id") is None:
                    migrated["_id"] = random_id()
                child_id = migrated["_id"]
                if child_id in collection:
                    raise DuplicateEmbeddedId(
                        f"_id {child_id!r} is already used in this collection", name
                    )
                child_source = field.model.schema.clean(migrated)
            except DataError as e:
                results.append(OperationResult(id=child_id, error=e))
                continue
            child = DocumentData.from_source(field.model, child_source, parent=self, config=self._config)
            self._source.setdefault(name, []).append(child_source)
            collection._add(child)
            results.append(OperationResult(id=child.id, value=child))
        return results

    def update_embedded(self, name: str, changes: Iterable[Mapping[str, Any]]) -> list[OperationResult]:
        """
        Update child documents; each change must carry the child's _id.

        Each update is atomic on its own child.
        """
        collection = self.embedded(name)
        results = []
        for change in changes:
            if not isinstance(change, Mapping):
                results.append(OperationResult(
                    id=None, error=TypeMismatch(f"expected an object, got {type(change).__name__}"),
                ))
                continue
            child_id = change.get("_id")
            child = collection.get(child_id)
            if child is None:
                results.append(OperationResult(
                    id=child_id,
                    error=DataError(f"{name} has no document with _id {child_id!r}"),
                ))
                continue
            try:
                diff = child.update({k: v for k, v in change.items() if k != "_id"})
            except DataError as e:
                results.append(OperationResult(id=child_id, error=e))
                continue
            results.append(OperationResult(id=child_id, value=diff))
        return results

    def delete_embedded(self, name: str, ids: Iterable[str]) -> list[str]:
        """Delete child documents by id; returns the ids actually removed."""
        collection = self.embedded(name)
        deleted = []
        for child_id in ids:
            if collection._remove(child_id) is None:
                continue
            self._source[name] = [c for c in self._source[name] if c["_id"] != child_id]
            deleted.append(child_id)
        return deleted

    def _embedded_field(self, name: str) -> EmbeddedCollectionField:
        field = self._model.schema.get(name)
        if not isinstance(field, EmbeddedCollectionField):
            raise KeyError(f"{self._model.name} has no embedded collection '{name}'")
        return field

    def _rebind(self, source: dict[str, Any]) -> None:
        """Point this document at a new source, keeping live embedded children."""
        self._source = source
        self._properties = self._model.schema.initialize(source, self, reuse=self._properties)

    def _owns(self, child: DocumentData) -> bool:
        for name, field in self._model.schema.items():
            if isinstance(field, EmbeddedCollectionField) and self._properties[name] is not None:
                if self._properties[name].get(child.id) is child:
                    return True
        return False

    def _sync_child(self, child: DocumentData) -> None:
        """Write an updated child's source back into this document's source."""
        for name, field in self._model.schema.items():
            if not isinstance(field, EmbeddedCollectionField):
                continue
            entries = self._source.get(name) or []
            for index, entry in enumerate(entries):
                if entry.get("_id") == child.id and self._properties[name].get(child.id) is child:
                    entries[index] = child._source
                    if self._parent is not None:
                        self._parent._sync_child(self)
                    return
        raise RuntimeError(f"{child!r} is not owned by {self!r}")
