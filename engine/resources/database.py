"""
World Database.

Holds the top-level document collections and handles loading and
validation of data packs (items, actors, folders, etc.).

Data pack layout:
    <data_path>/database/<collection>/*.json   one record or a list of records
    <data_path>/schemas/<kind>.schema.json     optional JSON schema gate
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Iterator

import jsonschema

from engine.core.config import DEFAULT_CONFIG, DataConfig
from engine.core.events import DataEvent, EventBus
from engine.data.constants import VERSION_KEY
from engine.data.document import DocumentData, OperationResult
from engine.data.errors import DataError, TypeMismatch
from engine.data.model import DocumentModel
from engine.data.registry import DocumentRegistry
from engine.data.utils import random_id

logger = logging.getLogger(__name__)


class WorldCollection:
    """
    The top-level collection of one document kind.

    Args:
        model: The kind stored in this collection
        config: Configuration used to construct documents
        event_bus: Bus notified of creations, updates and deletions
    """

    def __init__(self, model: DocumentModel, *, config: DataConfig | None = None,
                 event_bus: EventBus | None = None):
        self.model = model
        self.config = config or DEFAULT_CONFIG
        self.event_bus = event_bus
        self._documents: dict[str, DocumentData] = {}

    @property
    def name(self) -> str:
        return self.model.collection

    def _publish(self, event_type: DataEvent, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, collection=self.name, **data)

    def insert(self, data: Mapping[str, Any] | None = None) -> DocumentData:
        """
        Construct a document and add it to the collection.

        A document without an _id is assigned a fresh one.

        Raises:
            DataValidationError: The data was rejected
            MigrationError: The data has an unrecognized shape
            ValueError: The _id is already used in this collection
        """
        data = dict(data or {})
        if data.get("_id") is None:
            data["_id"] = random_id()
        if data["_id"] in self._documents:
            raise ValueError(f"{self.model.name} {data['_id']!r} already exists")
        document = self.model.construct(data, config=self.config)
        self._add(document)
        self._publish(DataEvent.DOCUMENT_CREATED, document=document)
        return document

    def get(self, doc_id: str | None) -> DocumentData | None:
        return self._documents.get(doc_id)

    def __getitem__(self, doc_id: str) -> DocumentData:
        try:
            return self._documents[doc_id]
        except KeyError:
            raise KeyError(f"{self.model.name} {doc_id!r} does not exist") from None

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __iter__(self) -> Iterator[DocumentData]:
        return iter(list(self._documents.values()))

    def __len__(self) -> int:
        return len(self._documents)

    def update(self, doc_id: str, changes: Mapping[str, Any]) -> dict[str, Any]:
        """
        Update one document atomically.

        Returns:
            The diff of values that changed

        Raises:
            KeyError: No document has this id
        """
        document = self[doc_id]
        diff = document.update(changes)
        if diff:
            self._publish(DataEvent.DOCUMENT_UPDATED, document=document, diff=diff)
        return diff

    def update_many(self, changes: Iterable[Mapping[str, Any]]) -> list[OperationResult]:
        """
        Apply several updates, each carrying its target's _id.

        Every update is independent: a rejected one leaves its document
        unchanged and does not affect the others.
        """
        results = []
        for change in changes:
            if not isinstance(change, Mapping):
                results.append(OperationResult(
                    id=None, error=TypeMismatch(f"expected an object, got {type(change).__name__}"),
                ))
                continue
            doc_id = change.get("_id")
            document = self.get(doc_id)
            if document is None:
                results.append(OperationResult(
                    id=doc_id, error=DataError(f"{self.model.name} {doc_id!r} does not exist"),
                ))
                continue
            try:
                diff = self.update(doc_id, {k: v for k, v in change.items() if k != "_id"})
            except DataError as e:
                logger.debug("Rejected update of %r: %s", document, e)
                results.append(OperationResult(id=doc_id, error=e))
                continue
            results.append(OperationResult(id=doc_id, value=diff))
        return results

    def delete(self, doc_id: str) -> DocumentData:
        """
        Remove a document.

        Raises:
            KeyError: No document has this id
        """
        document = self[doc_id]
        del self._documents[doc_id]
        self._publish(DataEvent.DOCUMENT_DELETED, document=document)
        return document

    def _add(self, document: DocumentData) -> None:
        self._documents[document.id] = document

    def to_source(self) -> list[dict[str, Any]]:
        return [document.to_object() for document in self._documents.values()]


class Database:
    """
    Central storage for world documents.

    One WorldCollection is created per registered top-level kind.

    Args:
        data_path: Root directory of the data pack
        registry: Locked document registry
        event_bus: Bus notified of document and load events

    Raises:
        RuntimeError: The registry is not locked yet
    """

    def __init__(self, data_path: Path | str, registry: DocumentRegistry,
                 event_bus: EventBus | None = None):
        if not registry.locked:
            raise RuntimeError("The document registry must be locked before creating a Database")
        self._data_path = Path(data_path)
        self._schemas: dict[str, Any] = {}
        self.registry = registry
        self.event_bus = event_bus

        # kind name -> collection
        self.collections: dict[str, WorldCollection] = {
            model.name: WorldCollection(model, config=registry.config, event_bus=event_bus)
            for model in registry
            if model.metadata.top_level
        }

        self.logger = logging.getLogger(__name__)

    def __getitem__(self, kind: str) -> WorldCollection:
        try:
            return self.collections[kind]
        except KeyError:
            raise KeyError(f"No top-level collection for document kind '{kind}'") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self.collections

    def lookup(self, kind: str, doc_id: str) -> DocumentData | None:
        """Resolve a foreign reference; None if the target does not exist."""
        collection = self.collections.get(kind)
        if collection is None:
            return None
        return collection.get(doc_id)

    def get(self, kind: str, doc_id: str) -> DocumentData | None:
        return self.lookup(kind, doc_id)

    # Loading

    def load_all(self) -> None:
        """Load all data packs from disk."""
        self._load_schemas()

        counts = {}
        for collection in self.collections.values():
            counts[collection.name] = self._load_collection(collection)

        self.logger.info(
            "Loaded %s.",
            ", ".join(f"{count} {name}" for name, count in counts.items()) or "nothing",
        )
        if self.event_bus is not None:
            self.event_bus.publish(DataEvent.DATA_LOADED, counts=counts)

    def _schema_name(self, model: DocumentModel) -> str:
        return f"{model.name.lower()}.schema.json"

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning("Schema directory not found: %s", schema_dir)
            return

        for schema_file in schema_dir.glob("*.schema.json"):
            try:
                with open(schema_file, "r", encoding="utf-8") as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error("Failed to load schema %s: %s", schema_file, e)

    def _load_collection(self, collection: WorldCollection) -> int:
        """Load all JSON files in a collection folder; returns the number loaded."""
        collection_dir = self._data_path / "database" / collection.name
        if not collection_dir.exists():
            self.logger.warning("Data directory not found: %s", collection_dir)
            return 0

        schema_name = self._schema_name(collection.model)
        schema = self._schemas.get(schema_name)
        if schema is None:
            self.logger.warning(
                "No schema found for %s (%s), loading without validation",
                collection.name, schema_name,
            )

        loaded = 0
        for file_path in sorted(collection_dir.glob("*.json")):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error("Failed to load %s: %s", file_path, e)
                continue

            records = data if isinstance(data, list) else [data]
            for record in records:
                if self._load_record(collection, record, schema, file_path):
                    loaded += 1
        return loaded

    def _load_record(self, collection: WorldCollection, record: Any,
                     schema: dict[str, Any] | None, file_path: Path) -> bool:
        model = collection.model
        if not isinstance(record, dict):
            self.logger.error("Invalid record in %s: expected an object", file_path)
            return False
        try:
            migrated = model.migrate_data(record, config=collection.config)
            document = model.construct(migrated, config=collection.config)
            if schema:
                jsonschema.validate(instance=document.to_object(), schema=schema)
            if document.id is None or document.id in collection:
                raise ValueError(f"missing or duplicate _id {document.id!r}")
        except jsonschema.ValidationError as e:
            self.logger.error("Validation error in %s: %s", file_path, e.message)
            return False
        except (DataError, ValueError) as e:
            self.logger.error("Invalid %s in %s: %s", model.name, file_path, e)
            return False

        collection._add(document)
        original = {k: v for k, v in record.items() if k != VERSION_KEY}
        if migrated != original:
            self.logger.debug("Migrated %r from %s", document, file_path)
            if self.event_bus is not None:
                self.event_bus.publish(
                    DataEvent.DOCUMENT_MIGRATED, collection=collection.name, document=document,
                )
        return True

    # Export

    def export_schemas(self, path: Path | str | None = None) -> list[Path]:
        """
        Write the generated JSON schema of every registered kind.

        Args:
            path: Target directory (defaults to <data_path>/schemas)

        Returns:
            The written files
        """
        schema_dir = Path(path) if path is not None else self._data_path / "schemas"
        schema_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for model in self.registry:
            schema = {
                "$schema": "https://json-schema.org/draft/2020-12/schema",
                "title": model.name,
                **model.schema.to_json_schema(),
            }
            file_path = schema_dir / self._schema_name(model)
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(schema, f, indent=2)
            written.append(file_path)
        self.logger.info("Exported %d schemas to %s", len(written), schema_dir)
        return written
