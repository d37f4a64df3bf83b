"""
Document data errors.

Validation failures carry a taxonomy kind and the dotted path of the
failing field, so callers can decide whether to reject an update outright
or fall back to prior values.

Usage:
    try:
        item = Item.construct({"name": "Sword"})
    except DataValidationError as e:
        print(e.kind, e.path)   # ErrorKind.MISSING_REQUIRED_FIELD, "type"
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Failure taxonomy."""
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    NULL_NOT_ALLOWED = "NullNotAllowed"
    TYPE_MISMATCH = "TypeMismatch"
    CONSTRAINT_VIOLATION = "ConstraintViolation"
    CUSTOM_VALIDATION_FAILED = "CustomValidationFailed"
    DUPLICATE_EMBEDDED_ID = "DuplicateEmbeddedId"
    MIGRATION_RULE_CONFLICT = "MigrationRuleConflict"
    UNKNOWN_FIELD_REFERENCE = "UnknownFieldReference"
    MIGRATION_FAILED = "MigrationFailed"


class DataError(Exception):
    """Base class for all document data errors."""
    kind: ErrorKind | None = None


# Validation (construction/update time)

class DataValidationError(DataError, ValueError):
    """
    A field rejected its value.

    Attributes:
        kind: Taxonomy kind of the failure
        path: Dot-separated path to the failing field
        reason: Human readable message, without the path
    """

    kind = ErrorKind.CONSTRAINT_VIOLATION

    def __init__(self, reason: str, path: str = ""):
        self.reason = reason
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path:
            return f"{self.kind.value} at '{self.path}': {self.reason}"
        return f"{self.kind.value}: {self.reason}"

    def prefixed(self, prefix: str) -> DataValidationError:
        """Prepend a parent segment to the path (used while unwinding)."""
        self.path = f"{prefix}.{self.path}" if self.path else prefix
        self.args = (self._format(),)
        return self


class MissingRequiredField(DataValidationError):
    kind = ErrorKind.MISSING_REQUIRED_FIELD


class NullNotAllowed(DataValidationError):
    kind = ErrorKind.NULL_NOT_ALLOWED


class TypeMismatch(DataValidationError):
    kind = ErrorKind.TYPE_MISMATCH


class ConstraintViolation(DataValidationError):
    kind = ErrorKind.CONSTRAINT_VIOLATION


class CustomValidationFailed(DataValidationError):
    kind = ErrorKind.CUSTOM_VALIDATION_FAILED


class DuplicateEmbeddedId(DataValidationError):
    kind = ErrorKind.DUPLICATE_EMBEDDED_ID


# Definition time

class SchemaDefinitionError(DataError, ValueError):
    """A schema or document model is malformed."""


class UnknownFieldReference(SchemaDefinitionError):
    """An initial function reads a field that is not resolved before it."""
    kind = ErrorKind.UNKNOWN_FIELD_REFERENCE


class MigrationRuleConflict(SchemaDefinitionError):
    """Two migration rules claim the same detected shape."""
    kind = ErrorKind.MIGRATION_RULE_CONFLICT


# Migration

class MigrationError(DataError, ValueError):
    """
    Source data could not be brought to the current schema shape.

    Raised for unrecognized legacy keys, versions outside the retention
    window, and rules that fail to consume their own legacy shape.
    """
    kind = ErrorKind.MIGRATION_FAILED

    def __init__(self, message: str, document: str = ""):
        self.document = document
        super().__init__(f"[{document}] {message}" if document else message)


# Registry

class RegistryLockedError(DataError, RuntimeError):
    """Registration attempted after the registry was locked."""
