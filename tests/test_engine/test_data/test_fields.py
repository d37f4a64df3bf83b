import math

import pytest

from engine.data.errors import (
    ConstraintViolation,
    CustomValidationFailed,
    ErrorKind,
    MissingRequiredField,
    NullNotAllowed,
    SchemaDefinitionError,
    TypeMismatch,
)
from engine.data.fields import (
    ABSENT,
    AlphaField,
    AngleField,
    BooleanField,
    ColorField,
    DocumentIdField,
    DocumentPermissionsField,
    FilePathField,
    FlagsField,
    ForeignDocumentField,
    IntegerSortField,
    NumberField,
    ObjectField,
    StringField,
)
from engine.data.properties import DataProperties

VALID_ID = "a1B2c3D4e5F6g7H8"


# Presence and nullability

def test_absent_optional_field_stays_absent():
    assert StringField().resolve(ABSENT, {}) is ABSENT


def test_absent_required_field_without_initial():
    with pytest.raises(MissingRequiredField) as exc:
        StringField(required=True).resolve(ABSENT, {})
    assert exc.value.kind == ErrorKind.MISSING_REQUIRED_FIELD


def test_absent_field_uses_literal_initial():
    assert StringField(initial="hello").resolve(ABSENT, {}) == "hello"


def test_initial_is_copied_per_resolution():
    field = ObjectField(initial={"a": [1]})
    first = field.resolve(ABSENT, {})
    first["a"].append(2)
    assert field.resolve(ABSENT, {}) == {"a": [1]}


def test_initial_function_reads_context():
    field = StringField(initial=lambda ctx: ctx["type"].upper())
    assert field.resolve(ABSENT, {"type": "weapon"}) == "WEAPON"


def test_null_rejected_unless_nullable():
    with pytest.raises(NullNotAllowed):
        StringField().resolve(None, {})
    assert StringField(nullable=True).resolve(None, {}) is None


# Strings

def test_string_cast():
    field = StringField()
    assert field.resolve("  padded  ", {}) == "padded"
    assert field.resolve(5, {}) == "5"
    assert StringField(trim=False).resolve(" x ", {}) == " x "


def test_string_rejects_non_strings():
    with pytest.raises(TypeMismatch):
        StringField().resolve(True, {})
    with pytest.raises(TypeMismatch):
        StringField().resolve(["a"], {})


def test_string_blank():
    assert StringField().resolve("", {}) == ""
    with pytest.raises(ConstraintViolation):
        StringField(blank=False).resolve("   ", {})


def test_choices():
    field = StringField(choices=["a", "m"])
    assert field.resolve("m", {}) == "m"
    with pytest.raises(ConstraintViolation):
        field.resolve("z", {})


def test_callable_choices():
    field = StringField(choices=lambda: ("x",))
    assert field.resolve("x", {}) == "x"
    with pytest.raises(ConstraintViolation):
        field.resolve("y", {})


# Numbers

def test_integer_minimum_scenario():
    field = NumberField(min=0, integer=True)
    with pytest.raises(ConstraintViolation):
        field.resolve(-1, {})
    with pytest.raises((TypeMismatch, ConstraintViolation)):
        field.resolve(2.5, {})
    assert field.resolve(0, {}) == 0


def test_number_range_boundaries_are_valid():
    field = NumberField(min=0, max=10)
    assert field.resolve(0, {}) == 0
    assert field.resolve(10, {}) == 10
    with pytest.raises(ConstraintViolation):
        field.resolve(-0.5, {})
    with pytest.raises(ConstraintViolation):
        field.resolve(10.5, {})


def test_number_cast():
    field = NumberField()
    assert field.resolve("3", {}) == 3
    assert field.resolve("2.5", {}) == 2.5
    assert NumberField(integer=True).resolve(4.0, {}) == 4
    assert isinstance(NumberField(integer=True).resolve(4.0, {}), int)


@pytest.mark.parametrize("value", [True, "abc", [1], math.nan, math.inf])
def test_number_type_mismatch(value):
    with pytest.raises(TypeMismatch):
        NumberField().resolve(value, {})


def test_number_step():
    field = NumberField(min=0, step=0.1)
    assert field.resolve(0.3, {}) == 0.3
    assert field.resolve(12.7, {}) == 12.7
    with pytest.raises(ConstraintViolation):
        field.resolve(0.25, {})


def test_number_positive():
    field = NumberField(positive=True)
    assert field.resolve(0.5, {}) == 0.5
    with pytest.raises(ConstraintViolation):
        field.resolve(0, {})


def test_number_is_nullable_by_default():
    assert NumberField().resolve(None, {}) is None


def test_invalid_number_definition():
    with pytest.raises(SchemaDefinitionError):
        NumberField(min=5, max=1)
    with pytest.raises(SchemaDefinitionError):
        NumberField(step=0)


def test_constraints_run_before_custom_validation():
    field = NumberField(min=0, validate=lambda v: v % 2 == 0, validation_error="must be even")
    with pytest.raises(ConstraintViolation):
        field.resolve(-1, {})
    with pytest.raises(CustomValidationFailed) as exc:
        field.resolve(3, {})
    assert exc.value.reason == "must be even"
    assert field.resolve(4, {}) == 4


def test_validation_error_is_attached_to_violations():
    field = NumberField(max=1, validation_error="too loud")
    with pytest.raises(ConstraintViolation) as exc:
        field.resolve(2, {})
    assert "too loud" in str(exc.value)


def test_derived_number_fields():
    assert AngleField().resolve(ABSENT, {}) == 0
    assert AlphaField().resolve(ABSENT, {}) == 1
    assert IntegerSortField().resolve(ABSENT, {}) == 0
    with pytest.raises(ConstraintViolation):
        AngleField().resolve(361, {})
    with pytest.raises(ConstraintViolation):
        AlphaField().resolve(1.5, {})
    with pytest.raises(ConstraintViolation):
        IntegerSortField().resolve(1.5, {})


# Booleans

def test_boolean():
    field = BooleanField()
    assert field.resolve(ABSENT, {}) is False
    assert field.resolve("true", {}) is True
    assert field.resolve("False", {}) is False
    with pytest.raises(TypeMismatch):
        field.resolve(1, {})


# Objects

def test_object_is_copied():
    raw = {"nested": {"a": 1}}
    value = ObjectField().resolve(raw, {})
    value["nested"]["a"] = 2
    assert raw["nested"]["a"] == 1


def test_object_defaults_to_empty():
    assert ObjectField().resolve(ABSENT, {}) == {}


def test_object_rejects_non_mappings():
    with pytest.raises(TypeMismatch):
        ObjectField().resolve([1, 2], {})


def test_object_never_keeps_deletion_markers():
    field = ObjectField()
    assert field.resolve({"a": 1, "-=b": None}, {}) == {"a": 1}
    assert field.resolve({"a": {"-=b": None, "c": 2}}, {}, partial=True) == {"a": {"c": 2}}


def test_object_initializes_read_only():
    value = ObjectField().initialize({"a": {"b": [1, 2]}})
    assert isinstance(value, DataProperties)
    assert value.a.b == (1, 2)
    with pytest.raises(AttributeError):
        value.a = 3


def test_flags_must_be_grouped_by_scope():
    field = FlagsField()
    assert field.resolve({"core": {"sheet": "x"}}, {}) == {"core": {"sheet": "x"}}
    with pytest.raises(ConstraintViolation):
        field.resolve({"core": 1}, {})


def test_permissions():
    field = DocumentPermissionsField()
    assert field.resolve(ABSENT, {}) == {"default": 0}
    assert field.resolve({"default": "owner", VALID_ID: 2}, {}) == {"default": 3, VALID_ID: 2}
    with pytest.raises(ConstraintViolation):
        field.resolve({"default": 7}, {})
    with pytest.raises(ConstraintViolation):
        field.resolve({"not-a-user": 1}, {})
    with pytest.raises(TypeMismatch):
        field.resolve({"default": "admin"}, {})


# Identifiers and references

def test_document_id():
    field = DocumentIdField()
    assert field.resolve(ABSENT, {}) is None
    assert field.resolve(VALID_ID, {}) == VALID_ID
    with pytest.raises(ConstraintViolation):
        field.resolve("short", {})


def test_foreign_reference_resolution():
    field = ForeignDocumentField("Folder")
    targets = {("Folder", VALID_ID): "the folder"}
    lookup = lambda kind, doc_id: targets.get((kind, doc_id))

    assert field.resolve_reference(VALID_ID, lookup) == "the folder"
    assert field.resolve_reference("Zz9Zz9Zz9Zz9Zz9Z", lookup) is None
    assert field.resolve_reference(None, lookup) is None


# Media

def test_file_path_categories():
    field = FilePathField(categories=("IMAGE",))
    assert field.resolve("tiles/a.PNG", {}) == "tiles/a.PNG"
    assert field.resolve("https://host/a.webp?v=2", {}) == "https://host/a.webp?v=2"
    with pytest.raises(ConstraintViolation):
        field.resolve("sounds/a.mp3", {})


def test_unknown_file_category():
    with pytest.raises(SchemaDefinitionError):
        FilePathField(categories=("SMELL",))


def test_color():
    field = ColorField()
    assert field.resolve("#FF8800", {}) == "#ff8800"
    assert field.resolve(ABSENT, {}) is None
    with pytest.raises(ConstraintViolation):
        field.resolve("red", {})
