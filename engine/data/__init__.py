"""
Document data module.

Exports:
- DataField and the field types: typed schema nodes
- DataSchema: ordered field mappings
- DocumentModel, DocumentMetadata: per-kind definitions
- DocumentData, EmbeddedCollection: validated document instances
- MigrationRule, Migrator: legacy shape rewriting
- Shim, ShimView, shim: legacy-compatible views
- DocumentRegistry, registry: kind name -> model
- Errors: DataError and its subclasses
"""

from engine.data.errors import (
    ErrorKind,
    DataError,
    DataValidationError,
    MissingRequiredField,
    NullNotAllowed,
    TypeMismatch,
    ConstraintViolation,
    CustomValidationFailed,
    DuplicateEmbeddedId,
    SchemaDefinitionError,
    UnknownFieldReference,
    MigrationRuleConflict,
    MigrationError,
    RegistryLockedError,
)
from engine.data.fields import (
    DataField,
    StringField,
    NumberField,
    BooleanField,
    ObjectField,
    FlagsField,
    DocumentPermissionsField,
    DocumentIdField,
    ForeignDocumentField,
    FilePathField,
    ColorField,
    AngleField,
    AlphaField,
    IntegerSortField,
    SchemaField,
    EmbeddedCollectionField,
)
from engine.data.schema import DataSchema
from engine.data.properties import DataProperties
from engine.data.document import DocumentData, OperationResult
from engine.data.collection import EmbeddedCollection
from engine.data.migration import MigrationRule, Migrator
from engine.data.shim import Shim, ShimView, shim
from engine.data.model import DocumentModel, DocumentMetadata
from engine.data.registry import DocumentRegistry, registry, register_document, get_document_model

__all__ = [
    # Errors
    "ErrorKind",
    "DataError",
    "DataValidationError",
    "MissingRequiredField",
    "NullNotAllowed",
    "TypeMismatch",
    "ConstraintViolation",
    "CustomValidationFailed",
    "DuplicateEmbeddedId",
    "SchemaDefinitionError",
    "UnknownFieldReference",
    "MigrationRuleConflict",
    "MigrationError",
    "RegistryLockedError",
    # Fields
    "DataField",
    "StringField",
    "NumberField",
    "BooleanField",
    "ObjectField",
    "FlagsField",
    "DocumentPermissionsField",
    "DocumentIdField",
    "ForeignDocumentField",
    "FilePathField",
    "ColorField",
    "AngleField",
    "AlphaField",
    "IntegerSortField",
    "SchemaField",
    "EmbeddedCollectionField",
    # Schema / documents
    "DataSchema",
    "DataProperties",
    "DocumentData",
    "OperationResult",
    "EmbeddedCollection",
    # Migration / shims
    "MigrationRule",
    "Migrator",
    "Shim",
    "ShimView",
    "shim",
    # Models
    "DocumentModel",
    "DocumentMetadata",
    "DocumentRegistry",
    "registry",
    "register_document",
    "get_document_model",
]
