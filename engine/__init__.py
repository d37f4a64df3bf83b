"""
Document Data Engine

Schema-driven document data for a virtual tabletop: typed fields,
migrations of legacy shapes, and shims for deprecated names.

Quick Start:
    from engine import DocumentModel, DocumentRegistry, StringField, DocumentIdField

    Note = DocumentModel(
        "Note",
        {"_id": DocumentIdField(), "text": StringField(required=True)},
        collection="notes",
    )

    registry = DocumentRegistry()
    registry.register(Note)
    registry.lock()
    note = registry.construct("Note", {"text": "Hello"})
"""

__version__ = "0.1.0"
__author__ = "Developer"

# Re-export core components for convenience
from engine.core import (
    DataConfig,
    configure_logging,
    EventBus,
    Event,
    DataEvent,
)

from engine.data import (
    DataField,
    StringField,
    NumberField,
    BooleanField,
    ObjectField,
    DocumentIdField,
    ForeignDocumentField,
    SchemaField,
    EmbeddedCollectionField,
    DataSchema,
    DocumentData,
    DocumentModel,
    DocumentRegistry,
    MigrationRule,
    Shim,
    shim,
)

__all__ = [
    # Core
    "DataConfig",
    "configure_logging",
    # Events
    "EventBus",
    "Event",
    "DataEvent",
    # Fields
    "DataField",
    "StringField",
    "NumberField",
    "BooleanField",
    "ObjectField",
    "DocumentIdField",
    "ForeignDocumentField",
    "SchemaField",
    "EmbeddedCollectionField",
    # Documents
    "DataSchema",
    "DocumentData",
    "DocumentModel",
    "DocumentRegistry",
    "MigrationRule",
    "Shim",
    "shim",
]
