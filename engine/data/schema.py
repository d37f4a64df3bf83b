"""
Document schemas - ordered mappings of field name to field.

Field order is significant: fields resolve in declaration order, and an
initial function may only read siblings declared before it. Declared
dependencies are checked when the schema is built; undeclared reads of an
unresolved sibling are caught at resolution time.

Usage:
    schema = DataSchema({
        "type": StringField(required=True),
        "data": ObjectField(initial=default_data, depends_on=("type",)),
    })
    source = schema.clean({"type": "weapon"})
    properties = schema.initialize(source)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Iterator

from engine.data.errors import (
    DataValidationError,
    SchemaDefinitionError,
    TypeMismatch,
    UnknownFieldReference,
)
from engine.data.fields import ABSENT, DataField
from engine.data.properties import DataProperties


class ResolutionContext(Mapping):
    """
    Read-only view of the sibling values resolved so far.

    Handed to initial functions. Reading a field that has not been
    resolved yet (declared later, or unknown) raises UnknownFieldReference.
    Fields that resolved to nothing read as None.
    """

    def __init__(self, field_name: str = ""):
        self._values: dict[str, Any] = {}
        self._resolved: list[str] = []
        self.field_name = field_name

    def _mark(self, name: str, value: Any) -> None:
        self._resolved.append(name)
        if value is not ABSENT:
            self._values[name] = value

    def __getitem__(self, key: str) -> Any:
        if key not in self._resolved:
            raise UnknownFieldReference(
                f"Field '{self.field_name}' reads '{key}' before it is resolved"
            )
        return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._resolved

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolved)

    def __len__(self) -> int:
        return len(self._resolved)


class DataSchema(Mapping):
    """
    An ordered, composable set of fields.

    Args:
        fields: Mapping of name -> field, or an iterable of (name, field)
            pairs; pairs allow duplicate names to be detected

    Raises:
        SchemaDefinitionError: Duplicate names or non-field values
        UnknownFieldReference: A declared dependency points forward
    """

    def __init__(self, fields: Mapping[str, DataField] | Iterable[tuple[str, DataField]]):
        items = fields.items() if isinstance(fields, Mapping) else fields
        self._fields: dict[str, DataField] = {}
        for name, field in items:
            if not isinstance(field, DataField):
                raise SchemaDefinitionError(f"'{name}' is not a DataField: {field!r}")
            if name in self._fields:
                raise SchemaDefinitionError(f"Duplicate field name '{name}'")
            if not name or "." in name:
                raise SchemaDefinitionError(f"Invalid field name {name!r}")
            field.name = name
            self._fields[name] = field
        self.validate_definition()

    def __getitem__(self, name: str) -> DataField:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"DataSchema({list(self._fields)})"

    def validate_definition(self) -> None:
        """Check that every declared dependency points at an earlier field."""
        defined: set[str] = set()
        for name, field in self._fields.items():
            for dependency in field.depends_on:
                if dependency not in defined:
                    raise UnknownFieldReference(
                        f"Field '{name}' depends on '{dependency}', "
                        "which is not defined before it"
                    )
            if field.depends_on and not callable(field.initial):
                raise SchemaDefinitionError(
                    f"Field '{name}' declares dependencies without an initial function"
                )
            nested = field.nested_schema
            if nested is not None:
                nested.validate_definition()
            defined.add(name)

    def get_field(self, path: str) -> DataField | None:
        """Find a field by dotted path through nested schemas."""
        head, _, rest = path.partition(".")
        field = self._fields.get(head)
        if field is None or not rest:
            return field
        nested = field.nested_schema
        return nested.get_field(rest) if nested is not None else None

    def clean(self, data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """
        Resolve raw data into a source object.

        Fields resolve in declaration order. The first failure aborts the
        whole resolution; its path is prefixed with the field name.

        Args:
            data: Raw (already migrated) data
            partial: Only resolve keys present in data, without defaults

        Returns:
            The source object, in schema order

        Raises:
            DataValidationError: A field rejected its value
        """
        if not isinstance(data, Mapping):
            raise TypeMismatch(f"expected an object, got {type(data).__name__}")

        source: dict[str, Any] = {}
        for name, field in self._fields.items():
            if partial and name not in data:
                continue
            context = _context_for(source, self._fields, name)
            try:
                value = field.resolve(data.get(name, ABSENT), context, partial=partial)
            except DataValidationError as e:
                raise e.prefixed(name)
            if value is not ABSENT:
                source[name] = value
        return source

    def initialize(self, source: Mapping[str, Any], owner: Any = None,
                   reuse: Mapping[str, Any] | None = None) -> DataProperties:
        """
        Build the runtime properties for a cleaned source object.

        Args:
            source: Cleaned source object
            owner: Document the properties belong to
            reuse: Previous properties; their embedded collections are
                refreshed in place so held child references stay live
        """
        values = {}
        for name, field in self._fields.items():
            value = source.get(name)
            previous = reuse.get(name) if reuse is not None else None
            if value is None:
                values[name] = None
            elif previous is not None:
                values[name] = field.reinitialize(previous, value, owner)
            else:
                values[name] = field.initialize(value, owner)
        return DataProperties(values)

    def unknown_keys(self, data: Mapping[str, Any], prefix: str = "") -> Iterator[str]:
        """Yield dotted keys of data that this schema does not declare."""
        for key, value in data.items():
            field = self._fields.get(key)
            if field is None:
                yield f"{prefix}{key}"
                continue
            nested = field.nested_schema
            if nested is not None and isinstance(value, Mapping):
                yield from nested.unknown_keys(value, prefix=f"{prefix}{key}.")

    def to_json_schema(self) -> dict[str, Any]:
        """Describe the persisted source shape as a JSON Schema object."""
        required = [
            name for name, field in self._fields.items()
            if field.required and not field.has_initial
        ]
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {name: field.to_json_schema() for name, field in self._fields.items()},
            "additionalProperties": False,
        }
        if required:
            schema["required"] = required
        return schema


def _context_for(source: dict[str, Any], fields: dict[str, DataField], name: str) -> ResolutionContext:
    context = ResolutionContext(name)
    for earlier in fields:
        if earlier == name:
            break
        context._mark(earlier, source.get(earlier, ABSENT))
    return context
