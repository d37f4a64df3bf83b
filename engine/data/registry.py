"""
Document registry - the map from document kind name to model.

The registry has two phases. During registration, models are added and
their definitions validated. lock() ends that phase for good: from then
on the registry only serves lookups, construction, migration and shims.

Usage:
    registry = DocumentRegistry()
    registry.register(Item)
    registry.lock()
    item = registry.construct("Item", {"name": "Sword", "type": "weapon"})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Iterator

from engine.core.config import DEFAULT_CONFIG, DataConfig
from engine.core.events import DataEvent, EventBus
from engine.data.document import DocumentData
from engine.data.errors import RegistryLockedError
from engine.data.model import DocumentModel
from engine.data.shim import ShimView

logger = logging.getLogger(__name__)


class DocumentRegistry:
    """
    Registry of document models.

    Args:
        config: Configuration passed to everything the registry constructs
        event_bus: Bus notified when the registry locks
    """

    def __init__(self, config: DataConfig | None = None, event_bus: EventBus | None = None):
        self.config = config or DEFAULT_CONFIG
        self.event_bus = event_bus
        self._models: dict[str, DocumentModel] = {}
        self._locked = False

    # Registration phase

    def register(self, model: DocumentModel) -> DocumentModel:
        """
        Register a document model.

        Raises:
            RegistryLockedError: The registry is locked
            ValueError: A model with this name is already registered
            SchemaDefinitionError: The model's definition is invalid
        """
        if self._locked:
            raise RegistryLockedError(f"Cannot register {model.name}: the registry is locked")
        if model.name in self._models:
            raise ValueError(f"Document kind '{model.name}' is already registered")
        model.validate_definition()
        self._models[model.name] = model
        logger.debug("Registered document kind %s (v%d)", model.name, model.version)
        return model

    def register_all(self, models: Iterable[DocumentModel]) -> None:
        for model in models:
            self.register(model)

    def lock(self) -> None:
        """End the registration phase. Locking is one-way."""
        if self._locked:
            return
        self._locked = True
        logger.info("Document registry locked with %d kinds: %s",
                    len(self._models), ", ".join(self._models))
        if self.event_bus is not None:
            self.event_bus.publish(DataEvent.REGISTRY_LOCKED, registry=self)

    @property
    def locked(self) -> bool:
        return self._locked

    # Lookups

    def get(self, name: str) -> DocumentModel:
        """
        Get a model by kind name.

        Raises:
            KeyError: No such kind is registered
        """
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"Unknown document kind '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[DocumentModel]:
        return iter(list(self._models.values()))

    def __len__(self) -> int:
        return len(self._models)

    # Serving phase

    def _require_lock(self, operation: str) -> None:
        if not self._locked:
            raise RuntimeError(f"Cannot {operation} before the document registry is locked")

    def construct(self, name: str, data: Mapping[str, Any] | None = None) -> DocumentData:
        """Migrate and construct a document of the named kind."""
        self._require_lock("construct documents")
        return self.get(name).construct(data, config=self.config)

    def migrate(self, name: str, data: Mapping[str, Any], *, target: int | None = None) -> dict[str, Any]:
        """Migrate raw data of the named kind without constructing it."""
        self._require_lock("migrate documents")
        return self.get(name).migrate_data(data, config=self.config, target=target)

    def shim(self, document: DocumentData, *, embedded: bool = True) -> ShimView:
        """Wrap a document in a legacy-compatible view."""
        self._require_lock("shim documents")
        return self.get(document.model.name).shim(document, embedded=embedded)


# Default process-wide registry
registry = DocumentRegistry()


def register_document(model: DocumentModel) -> DocumentModel:
    """Register a model with the default registry."""
    return registry.register(model)


def get_document_model(name: str) -> DocumentModel:
    return registry.get(name)
