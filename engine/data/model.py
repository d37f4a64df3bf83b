"""
Document models - declarative definitions of document kinds.

A DocumentModel bundles everything that makes one kind of document what
it is: its schema, current schema version, migration rules and legacy
shims. Kinds differ by configuration, not by subclassing.

Usage:
    Note = DocumentModel(
        "Note",
        {
            "_id": DocumentIdField(),
            "text": StringField(required=True),
        },
        collection="notes",
        version=2,
        migrations=[MigrationRule.rename("content", "text", version=2)],
        shims=[Shim("content", "text", since=2)],
    )
    note = Note.construct({"content": "hello"})
    note.text  # "hello"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from engine.core.config import DEFAULT_CONFIG, DataConfig
from engine.data.document import DocumentData
from engine.data.errors import MigrationError, SchemaDefinitionError
from engine.data.fields import DataField, EmbeddedCollectionField
from engine.data.migration import MigrationRule, Migrator
from engine.data.schema import DataSchema
from engine.data.shim import Shim, ShimView
from engine.data.utils import pop_path

logger = logging.getLogger(__name__)


class DocumentMetadata(BaseModel):
    """Descriptive metadata for a document kind."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    collection: str = Field(min_length=1)
    label: str
    label_plural: str
    version: int = Field(default=1, ge=1)
    min_version: int = Field(default=1, ge=1)
    top_level: bool = True
    embedded: dict[str, str] = Field(default_factory=dict)


class DocumentModel:
    """
    The definition of one document kind.

    Args:
        name: Document kind name ("Item")
        schema: The kind's schema, or a mapping of fields to build one
        collection: Name of the collection documents of this kind live in
        version: Current schema version
        min_version: Oldest schema version still migrated
        migrations: Migration rules, in application order
        shims: Legacy names exposed by shim views
        label: Display label (defaults to "DOCUMENT.<name>")
        label_plural: Plural display label
        top_level: Whether documents of this kind have a top-level
            collection, or only ever live embedded in a parent

    Raises:
        SchemaDefinitionError: Invalid schema, migrations or shims
    """

    def __init__(
        self,
        name: str,
        schema: DataSchema | Mapping[str, DataField],
        *,
        collection: str,
        version: int = 1,
        min_version: int = 1,
        migrations: Iterable[MigrationRule] = (),
        shims: Iterable[Shim] = (),
        label: str = "",
        label_plural: str = "",
        top_level: bool = True,
    ):
        self.schema = schema if isinstance(schema, DataSchema) else DataSchema(schema)
        self.migrator = Migrator(migrations, version=version, min_version=min_version, document=name)
        self.shims = tuple(shims)
        self.metadata = DocumentMetadata(
            name=name,
            collection=collection,
            label=label or f"DOCUMENT.{name}",
            label_plural=label_plural or f"DOCUMENT.{name}s",
            version=version,
            min_version=min_version,
            top_level=top_level,
            embedded={
                field_name: field.model.name
                for field_name, field in self.embedded_fields().items()
            },
        )
        self.validate_definition()

    def __repr__(self) -> str:
        return f"<DocumentModel {self.name} v{self.version}>"

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def collection(self) -> str:
        return self.metadata.collection

    @property
    def version(self) -> int:
        return self.metadata.version

    def embedded_fields(self) -> dict[str, EmbeddedCollectionField]:
        return {
            name: field for name, field in self.schema.items()
            if isinstance(field, EmbeddedCollectionField)
        }

    def validate_definition(self) -> None:
        """
        Check the schema, migration table and shim table.

        Called at definition and again when the model is registered.
        """
        self.schema.validate_definition()
        self.migrator.validate_definition()
        seen = set()
        for shim in self.shims:
            if shim.legacy in self.schema:
                raise SchemaDefinitionError(
                    f"{self.name}: shim '{shim.legacy}' shadows a current field"
                )
            if shim.legacy in seen:
                raise SchemaDefinitionError(f"{self.name}: duplicate shim '{shim.legacy}'")
            if self.schema.get_field(shim.target) is None:
                raise SchemaDefinitionError(
                    f"{self.name}: shim '{shim.legacy}' targets unknown field '{shim.target}'"
                )
            seen.add(shim.legacy)

    # Operations

    def migrate_data(self, data: Mapping[str, Any], *, config: DataConfig | None = None,
                     target: int | None = None) -> dict[str, Any]:
        """
        Bring raw data to the current schema shape.

        Applies this kind's rules, then recurses into embedded collections
        with each child kind's rules. Keys that remain unrecognized are
        reported (or dropped, if configured).

        Raises:
            MigrationError: Unsupported version or unrecognized keys
        """
        config = config or DEFAULT_CONFIG
        if not isinstance(data, Mapping):
            return data
        data = self.migrator.migrate(data, target=target, window=config.migration_window)

        for name, field in self.embedded_fields().items():
            children = data.get(name)
            if isinstance(children, list):
                data[name] = [
                    field.model.migrate_data(child, config=config)
                    if isinstance(child, Mapping) else child
                    for child in children
                ]

        unknown = list(self.schema.unknown_keys(data))
        if unknown:
            if config.unknown_keys == "error":
                raise MigrationError(
                    f"unrecognized keys {unknown}: no migration rule covers them",
                    self.name,
                )
            logger.warning("%s: dropping unrecognized keys %s", self.name, unknown)
            for key in unknown:
                pop_path(data, key)
        return data

    def construct(self, data: Mapping[str, Any] | None = None, *,
                  parent: DocumentData | None = None,
                  config: DataConfig | None = None) -> DocumentData:
        """Migrate and construct a document of this kind."""
        return DocumentData(self, data, parent=parent, config=config)

    def shim(self, document: DocumentData, *, embedded: bool = True) -> ShimView:
        if document.model is not self:
            raise TypeError(f"{document!r} is not a {self.name}")
        return ShimView(document, embedded=embedded)
