"""
Typed schema fields.

A field is one node of a document schema. Each field type implements the
same small capability set:

- _cast: coerce a raw value to the field's primitive kind (TypeMismatch)
- _validate_constraints: kind-specific rules (ConstraintViolation)
- custom ``validate`` predicate, checked last (CustomValidationFailed)
- initialize: turn a persisted source value into its runtime form
- to_json_schema: describe the persisted shape

Usage:
    schema = DataSchema({
        "type": StringField(required=True, choices=["weapon", "armor"]),
        "data": ObjectField(
            initial=lambda ctx: {"damage": 0} if ctx["type"] == "weapon" else {},
            depends_on=("type",),
        ),
        "quantity": NumberField(initial=1, min=0, integer=True),
    })
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable

from engine.data.constants import FILE_CATEGORIES, PermissionLevel
from engine.data.errors import (
    ConstraintViolation,
    CustomValidationFailed,
    DataValidationError,
    DuplicateEmbeddedId,
    MissingRequiredField,
    NullNotAllowed,
    SchemaDefinitionError,
    TypeMismatch,
)
from engine.data.properties import freeze
from engine.data.utils import random_id, strip_deletions

if TYPE_CHECKING:
    from engine.data.model import DocumentModel
    from engine.data.schema import DataSchema


class _Sentinel:
    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


# A raw value that was not supplied at all
ABSENT = _Sentinel("ABSENT")

# A field option that was not declared (e.g. no initial value)
UNSET = _Sentinel("UNSET")

ID_PATTERN = re.compile(r"^[a-zA-Z0-9]{16}$")

# A literal default or a function of the sibling context
Initial = Any


def _empty_object(context: Mapping[str, Any]) -> dict:
    return {}


def _empty_list(context: Mapping[str, Any]) -> list:
    return []


def _default_permissions(context: Mapping[str, Any]) -> dict:
    return {"default": int(PermissionLevel.NONE)}


class DataField:
    """
    Base class for all fields.

    Args:
        required: Absence after defaulting is an error
        nullable: An explicit None is a valid value
        initial: Literal default, or a function of already-resolved siblings
        validate: Custom predicate run after all built-in checks
        validation_error: Message attached to constraint and predicate failures
        choices: Allowed values (sequence, or a function returning one)
        depends_on: Sibling fields an initial function reads
        label: Display label for presentation collaborators
        hint: Display hint for presentation collaborators
    """

    json_type: str | None = None

    def __init__(
        self,
        *,
        required: bool = False,
        nullable: bool = False,
        initial: Initial = UNSET,
        validate: Callable[[Any], bool] | None = None,
        validation_error: str = "",
        choices: Sequence[Any] | Callable[[], Sequence[Any]] | None = None,
        depends_on: Sequence[str] = (),
        label: str = "",
        hint: str = "",
    ):
        if validate is not None and not callable(validate):
            raise SchemaDefinitionError("validate must be callable")
        self.required = required
        self.nullable = nullable
        self.initial = initial
        self.validate = validate
        self.validation_error = validation_error
        self.choices = choices
        self.depends_on = tuple(depends_on)
        self.label = label
        self.hint = hint
        self.name = ""  # set when bound into a schema

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name or '?'}>"

    @property
    def has_initial(self) -> bool:
        return self.initial is not UNSET

    @property
    def nested_schema(self) -> DataSchema | None:
        """Schema of a nested field, if this field has one."""
        return None

    def get_initial(self, context: Mapping[str, Any]) -> Any:
        """Compute the default value from the sibling context."""
        if callable(self.initial):
            return self.initial(context)
        return copy.deepcopy(self.initial)

    def get_choices(self) -> Sequence[Any] | None:
        if callable(self.choices):
            return self.choices()
        return self.choices

    # Resolution

    def resolve(self, value: Any, context: Mapping[str, Any], *, partial: bool = False) -> Any:
        """
        Resolve a raw value into its persisted form.

        Args:
            value: The raw value, or ABSENT if the key was not supplied
            context: Read-only view of sibling values resolved so far
            partial: Resolve nested objects as partial updates

        Returns:
            The cleaned value, or ABSENT if the field stays unset

        Raises:
            DataValidationError: The value was rejected
        """
        if value is ABSENT:
            if not self.has_initial:
                if self.required:
                    raise MissingRequiredField("is required")
                return ABSENT
            value = self.get_initial(context)

        if value is None:
            if self.nullable:
                return None
            raise NullNotAllowed("may not be null")

        value = self._cast(value, partial=partial)
        self._validate_constraints(value)
        if self.validate is not None and not self.validate(value):
            raise CustomValidationFailed(self.validation_error or f"{value!r} failed validation")
        return value

    def _cast(self, value: Any, *, partial: bool = False) -> Any:
        return value

    def _validate_constraints(self, value: Any) -> None:
        choices = self.get_choices()
        if choices is not None and value not in choices:
            raise self._violation(f"{value!r} is not a valid choice")

    def _violation(self, reason: str) -> ConstraintViolation:
        if self.validation_error:
            reason = f"{reason}: {self.validation_error}"
        return ConstraintViolation(reason)

    # Runtime / description

    def initialize(self, value: Any, owner: Any = None) -> Any:
        """Convert a source value to its runtime representation."""
        return value

    def reinitialize(self, previous: Any, value: Any, owner: Any = None) -> Any:
        """Refresh a runtime value after its source changed; live containers are kept."""
        return self.initialize(value, owner)

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        if self.json_type:
            schema["type"] = [self.json_type, "null"] if self.nullable else self.json_type
        choices = self.get_choices()
        if choices is not None:
            schema["enum"] = list(choices) + ([None] if self.nullable else [])
        if self.label:
            schema["title"] = self.label
        if self.hint:
            schema["description"] = self.hint
        return schema


class StringField(DataField):
    """
    A string value.

    Numbers are accepted and stringified. Surrounding whitespace is
    trimmed unless trim=False. Empty strings are rejected when blank=False.
    """

    json_type = "string"

    def __init__(self, *, blank: bool = True, trim: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.blank = blank
        self.trim = trim

    def _cast(self, value: Any, *, partial: bool = False) -> str:
        if isinstance(value, bool):
            raise TypeMismatch(f"expected a string, got {type(value).__name__}")
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            raise TypeMismatch(f"expected a string, got {type(value).__name__}")
        return value.strip() if self.trim else value

    def _validate_constraints(self, value: str) -> None:
        if not self.blank and value == "":
            raise self._violation("may not be a blank string")
        super()._validate_constraints(value)


class NumberField(DataField):
    """
    A numeric value.

    Args:
        min: Inclusive lower bound
        max: Inclusive upper bound
        step: Value must be a multiple of step, offset from min (or 0)
        integer: Value must be integral
        positive: Value must be strictly greater than zero
    """

    json_type = "number"

    def __init__(
        self,
        *,
        min: float | None = None,
        max: float | None = None,
        step: float | None = None,
        integer: bool = False,
        positive: bool = False,
        nullable: bool = True,
        **kwargs,
    ):
        super().__init__(nullable=nullable, **kwargs)
        if min is not None and max is not None and min > max:
            raise SchemaDefinitionError(f"min {min} is greater than max {max}")
        if step is not None and step <= 0:
            raise SchemaDefinitionError("step must be positive")
        self.min = min
        self.max = max
        self.step = step
        self.integer = integer
        self.positive = positive

    def _cast(self, value: Any, *, partial: bool = False) -> int | float:
        if isinstance(value, bool):
            raise TypeMismatch("expected a number, got bool")
        if isinstance(value, str):
            text = value.strip()
            try:
                value = int(text)
            except ValueError:
                try:
                    value = float(text)
                except ValueError:
                    raise TypeMismatch(f"{value!r} is not numeric") from None
        if not isinstance(value, (int, float)):
            raise TypeMismatch(f"expected a number, got {type(value).__name__}")
        if isinstance(value, float):
            if not math.isfinite(value):
                raise TypeMismatch("must be a finite number")
            if self.integer and value.is_integer():
                value = int(value)
        return value

    def _validate_constraints(self, value: int | float) -> None:
        if self.integer and not isinstance(value, int):
            raise self._violation(f"{value} is not an integer")
        if self.positive and value <= 0:
            raise self._violation(f"{value} is not positive")
        if self.min is not None and value < self.min:
            raise self._violation(f"{value} is less than the minimum {self.min}")
        if self.max is not None and value > self.max:
            raise self._violation(f"{value} is greater than the maximum {self.max}")
        if self.step is not None and not self._on_step(value):
            raise self._violation(f"{value} is not a multiple of {self.step}")
        super()._validate_constraints(value)

    def _on_step(self, value: float) -> bool:
        base = self.min if self.min is not None else 0
        steps = (value - base) / self.step
        return abs(steps - round(steps)) <= 1e-9 * max(1.0, abs(steps))

    def to_json_schema(self) -> dict[str, Any]:
        schema = super().to_json_schema()
        if self.integer:
            schema["type"] = ["integer", "null"] if self.nullable else "integer"
        if self.min is not None:
            schema["minimum"] = self.min
        if self.max is not None:
            schema["maximum"] = self.max
        if self.positive:
            schema["exclusiveMinimum"] = 0
        return schema


class BooleanField(DataField):
    """A boolean value; accepts the strings "true" and "false"."""

    json_type = "boolean"

    def __init__(self, *, initial: Initial = False, **kwargs):
        super().__init__(initial=initial, **kwargs)

    def _cast(self, value: Any, *, partial: bool = False) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise TypeMismatch(f"expected a boolean, got {type(value).__name__}")


class ObjectField(DataField):
    """
    A free-form object.

    Contents are not described by a schema; they are deep-copied into
    the source and frozen into read-only mappings at runtime.
    """

    json_type = "object"

    def __init__(self, *, initial: Initial = UNSET, **kwargs):
        super().__init__(initial=_empty_object if initial is UNSET else initial, **kwargs)

    def _cast(self, value: Any, *, partial: bool = False) -> dict:
        if not isinstance(value, Mapping):
            raise TypeMismatch(f"expected an object, got {type(value).__name__}")
        for key in value:
            if not isinstance(key, str):
                raise TypeMismatch(f"object keys must be strings, got {key!r}")
        # Deletion markers are consumed by merging; none may reach source
        return strip_deletions(value)

    def initialize(self, value: Any, owner: Any = None) -> Any:
        return freeze(value)


class FlagsField(ObjectField):
    """Optional key/value flags, grouped by namespace: {scope: {key: value}}."""

    def _validate_constraints(self, value: dict) -> None:
        for scope, flags in value.items():
            if scope.startswith("-="):
                continue
            if not isinstance(flags, Mapping):
                raise self._violation(f"flags for scope '{scope}' must be an object")
        super()._validate_constraints(value)


class DocumentPermissionsField(ObjectField):
    """
    User permission levels for a document.

    Keys are user ids or "default"; values are PermissionLevel members.
    """

    def __init__(self, *, initial: Initial = UNSET, **kwargs):
        if initial is UNSET:
            initial = _default_permissions
        super().__init__(initial=initial, **kwargs)

    def _cast(self, value: Any, *, partial: bool = False) -> dict:
        value = super()._cast(value, partial=partial)
        for key, level in value.items():
            if key.startswith("-="):
                continue
            if isinstance(level, bool) or not isinstance(level, (int, str)):
                raise TypeMismatch(f"permission for '{key}' must be a level")
            if isinstance(level, str):
                try:
                    level = PermissionLevel[level.upper()]
                except KeyError:
                    raise TypeMismatch(f"unknown permission level {level!r}") from None
            value[key] = int(level)
        return value

    def _validate_constraints(self, value: dict) -> None:
        levels = {int(level) for level in PermissionLevel}
        for key, level in value.items():
            if key.startswith("-="):
                continue
            if key != "default" and not ID_PATTERN.match(key):
                raise self._violation(f"'{key}' is not a user id")
            if level not in levels:
                raise self._violation(f"{level} is not a permission level")
        super()._validate_constraints(value)


class DocumentIdField(StringField):
    """A 16 character alphanumeric document identifier, null until assigned."""

    def __init__(self, *, nullable: bool = True, initial: Initial = None, **kwargs):
        super().__init__(nullable=nullable, initial=initial, blank=False, **kwargs)

    def _validate_constraints(self, value: str) -> None:
        if not ID_PATTERN.match(value):
            raise self._violation(f"{value!r} is not a valid document id")
        super()._validate_constraints(value)


class ForeignDocumentField(DocumentIdField):
    """
    A weak reference to a document of another kind, by identifier.

    The runtime value stays the identifier; use resolve() to look the
    target up. A reference whose target no longer exists is valid.
    """

    def __init__(self, document: str, **kwargs):
        super().__init__(**kwargs)
        self.document = document

    def resolve_reference(self, value: str | None, lookup: Callable[[str, str], Any]) -> Any:
        """Look up the referenced document; None for null or dangling ids."""
        if value is None:
            return None
        return lookup(self.document, value)


class FilePathField(StringField):
    """
    A path or URL to a media file.

    Args:
        categories: FILE_CATEGORIES keys whose extensions are accepted
    """

    def __init__(self, *, categories: Sequence[str] = (), nullable: bool = True, **kwargs):
        super().__init__(nullable=nullable, blank=False, **kwargs)
        unknown = [c for c in categories if c not in FILE_CATEGORIES]
        if unknown:
            raise SchemaDefinitionError(f"Unknown file categories: {unknown}")
        self.categories = tuple(categories)

    def _validate_constraints(self, value: str) -> None:
        if self.categories:
            path = value.split("?", 1)[0].split("#", 1)[0]
            ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
            if not any(ext in FILE_CATEGORIES[c] for c in self.categories):
                raise self._violation(
                    f"'{value}' does not have a valid file extension for {'/'.join(self.categories)}"
                )
        super()._validate_constraints(value)


class ColorField(StringField):
    """A hex color string such as #ff8800; stored lowercase."""

    _PATTERN = re.compile(r"^#[0-9a-f]{6}$")

    def __init__(self, *, nullable: bool = True, initial: Initial = None, **kwargs):
        super().__init__(nullable=nullable, initial=initial, blank=False, **kwargs)

    def _cast(self, value: Any, *, partial: bool = False) -> str:
        return super()._cast(value, partial=partial).lower()

    def _validate_constraints(self, value: str) -> None:
        if not self._PATTERN.match(value):
            raise self._violation(f"{value!r} is not a valid hex color")
        super()._validate_constraints(value)


class AngleField(NumberField):
    """An angle in degrees between 0 and 360."""

    def __init__(self, *, min: float = 0, max: float = 360, required: bool = True,
                 nullable: bool = False, initial: Initial = 0, **kwargs):
        super().__init__(min=min, max=max, required=required, nullable=nullable,
                         initial=initial, **kwargs)


class AlphaField(NumberField):
    """An opacity between 0 and 1."""

    def __init__(self, *, min: float = 0, max: float = 1, required: bool = True,
                 nullable: bool = False, initial: Initial = 1, **kwargs):
        super().__init__(min=min, max=max, required=required, nullable=nullable,
                         initial=initial, **kwargs)


class IntegerSortField(NumberField):
    """An integer sort key ordering a document among its siblings."""

    def __init__(self, *, required: bool = True, nullable: bool = False,
                 initial: Initial = 0, **kwargs):
        super().__init__(integer=True, required=required, nullable=nullable,
                         initial=initial, **kwargs)


class SchemaField(DataField):
    """
    A nested object described by its own schema.

    The default value is an empty object, which resolves every inner
    field to its own default.
    """

    json_type = "object"

    def __init__(self, fields: Mapping[str, DataField] | DataSchema, *,
                 required: bool = True, initial: Initial = UNSET, **kwargs):
        from engine.data.schema import DataSchema

        super().__init__(required=required,
                         initial=_empty_object if initial is UNSET else initial, **kwargs)
        self.schema = fields if isinstance(fields, DataSchema) else DataSchema(fields)

    @property
    def nested_schema(self) -> DataSchema:
        return self.schema

    def _cast(self, value: Any, *, partial: bool = False) -> dict:
        if not isinstance(value, Mapping):
            raise TypeMismatch(f"expected an object, got {type(value).__name__}")
        return self.schema.clean(value, partial=partial)

    def initialize(self, value: Any, owner: Any = None) -> Any:
        return self.schema.initialize(value, owner)

    def reinitialize(self, previous: Any, value: Any, owner: Any = None) -> Any:
        return self.schema.initialize(value, owner, reuse=previous)

    def to_json_schema(self) -> dict[str, Any]:
        schema = self.schema.to_json_schema()
        if self.nullable:
            schema["type"] = ["object", "null"]
        return schema


class EmbeddedCollectionField(DataField):
    """
    An ordered collection of child documents owned by this document.

    Each element is resolved against the child model's schema. Elements
    without an _id receive a fresh one; duplicate ids are rejected.
    """

    json_type = "array"

    def __init__(self, model: DocumentModel, *, required: bool = True,
                 initial: Initial = UNSET, **kwargs):
        super().__init__(required=required,
                         initial=_empty_list if initial is UNSET else initial, **kwargs)
        if "_id" not in model.schema:
            raise SchemaDefinitionError(
                f"Embedded document {model.name} must declare an _id field"
            )
        self.model = model

    def _cast(self, value: Any, *, partial: bool = False) -> list[dict]:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise TypeMismatch(f"expected a list, got {type(value).__name__}")
        cleaned: list[dict] = []
        seen: set[str] = set()
        for index, element in enumerate(value):
            try:
                if not isinstance(element, Mapping):
                    raise TypeMismatch(f"expected an object, got {type(element).__name__}")
                element = dict(element)
                if element.get("_id") is None:
                    element["_id"] = random_id()
                child = self.model.schema.clean(element)
                if child["_id"] in seen:
                    raise DuplicateEmbeddedId(f"_id {child['_id']!r} is already used in this collection")
            except DataValidationError as e:
                raise e.prefixed(str(index))
            seen.add(child["_id"])
            cleaned.append(child)
        return cleaned

    def initialize(self, value: Any, owner: Any = None) -> Any:
        from engine.data.collection import EmbeddedCollection

        return EmbeddedCollection(self.model, value, parent=owner, name=self.name)

    def reinitialize(self, previous: Any, value: Any, owner: Any = None) -> Any:
        from engine.data.collection import EmbeddedCollection

        if isinstance(previous, EmbeddedCollection) and previous.parent is owner:
            previous._reconcile(value)
            return previous
        return self.initialize(value, owner)

    def to_json_schema(self) -> dict[str, Any]:
        schema = super().to_json_schema()
        schema["items"] = self.model.schema.to_json_schema()
        return schema
