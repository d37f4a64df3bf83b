import logging

import pytest

from engine.core.config import DataConfig
from engine.core.events import DataEvent
from engine.data import (
    DocumentIdField,
    DocumentModel,
    DocumentRegistry,
    MigrationRule,
    MigrationRuleConflict,
    RegistryLockedError,
    ShimView,
    StringField,
)


def test_register_and_get(registry, note_model):
    registry.register(note_model)
    assert "Note" in registry
    assert registry.get("Note") is note_model
    assert list(registry) == [note_model]
    assert len(registry) == 1


def test_get_unknown_kind(registry):
    with pytest.raises(KeyError):
        registry.get("Nope")


def test_duplicate_registration(registry, note_model):
    registry.register(note_model)
    with pytest.raises(ValueError):
        registry.register(note_model)


def test_lock_is_one_way(registry, note_model):
    registry.lock()
    assert registry.locked
    with pytest.raises(RegistryLockedError):
        registry.register(note_model)

    registry.lock()
    assert registry.locked


def test_lock_publishes_event(registry, event_bus):
    received = []
    event_bus.subscribe(DataEvent.REGISTRY_LOCKED, received.append)
    registry.lock()
    registry.lock()
    assert len(received) == 1
    assert received[0]["registry"] is registry


def test_lock_is_logged(registry, note_model, caplog):
    registry.register(note_model)
    with caplog.at_level(logging.INFO, logger="engine.data.registry"):
        registry.lock()
    assert "locked" in caplog.text
    assert "Note" in caplog.text


def test_serving_requires_lock(registry, note_model):
    registry.register(note_model)
    with pytest.raises(RuntimeError):
        registry.construct("Note", {"name": "x"})
    with pytest.raises(RuntimeError):
        registry.migrate("Note", {"oldName": "x"})


def test_construct_migrate_and_shim(registry, note_model):
    registry.register(note_model)
    registry.lock()

    assert registry.migrate("Note", {"oldName": "x"}) == {"name": "x"}

    note = registry.construct("Note", {"oldName": "x"})
    assert note.name == "x"

    view = registry.shim(note)
    assert isinstance(view, ShimView)
    with pytest.warns(DeprecationWarning):
        assert view.oldName == "x"


def test_registry_config_reaches_documents(note_model):
    registry = DocumentRegistry(config=DataConfig(unknown_keys="drop"))
    registry.register(note_model)
    registry.lock()
    note = registry.construct("Note", {"name": "x", "stray": 1})
    assert note.config.unknown_keys == "drop"
    assert "stray" not in note.source


def test_definitions_validated_at_definition():
    with pytest.raises(MigrationRuleConflict):
        DocumentModel(
            "Broken",
            {"_id": DocumentIdField(), "name": StringField()},
            collection="broken",
            version=2,
            migrations=[
                MigrationRule.rename("title", "name", version=2),
                MigrationRule.rename("title", "name", version=2, name="again"),
            ],
        )


def test_metadata(note_model):
    metadata = note_model.metadata
    assert metadata.name == "Note"
    assert metadata.collection == "notes"
    assert metadata.label == "DOCUMENT.Note"
    assert metadata.version == 2
    assert metadata.top_level


def test_framework_registration(locked_registry):
    assert {model.name for model in locked_registry} == {
        "ActiveEffect", "Folder", "Item", "Actor", "Tile",
    }
    assert locked_registry.get("Actor").metadata.embedded == {
        "items": "Item", "effects": "ActiveEffect",
    }
