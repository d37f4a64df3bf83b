import os
import sys
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def registry(event_bus):
    """Fresh, unlocked DocumentRegistry for each test."""
    from engine.data.registry import DocumentRegistry
    return DocumentRegistry(event_bus=event_bus)


@pytest.fixture
def locked_registry(registry):
    """Registry with every framework document kind, locked."""
    from framework.documents import register_documents
    register_documents(registry)
    registry.lock()
    return registry


@pytest.fixture
def note_model():
    """Small document kind used across engine tests."""
    from engine.data import (
        DocumentIdField,
        DocumentModel,
        MigrationRule,
        NumberField,
        Shim,
        StringField,
    )
    return DocumentModel(
        "Note",
        {
            "_id": DocumentIdField(),
            "name": StringField(required=True),
            "priority": NumberField(min=0, integer=True, initial=0),
        },
        collection="notes",
        version=2,
        migrations=[MigrationRule.rename("oldName", "name", version=2)],
        shims=[Shim("oldName", "name", since=2)],
    )
