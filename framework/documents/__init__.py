"""
Concrete document kinds.

Provides:
- ActiveEffect, Folder, Item, Actor, Tile: document models
- create_item_model, create_actor_model: models for a custom game system
- register_documents: register every kind with a registry
"""

from __future__ import annotations

from engine.data.model import DocumentModel
from engine.data.registry import DocumentRegistry, registry as default_registry
from framework.documents.active_effect import ActiveEffect
from framework.documents.folder import Folder
from framework.documents.item import Item, create_item_model
from framework.documents.actor import Actor, create_actor_model
from framework.documents.tile import Tile
from framework.system import SystemTemplate


def register_documents(
    registry: DocumentRegistry | None = None,
    template: SystemTemplate | None = None,
) -> dict[str, DocumentModel]:
    """
    Register all document kinds.

    Args:
        registry: Target registry (defaults to the process-wide one)
        template: Game system template; Item and Actor are rebuilt for it

    Returns:
        The registered models by kind name
    """
    registry = registry if registry is not None else default_registry
    item, actor = Item, Actor
    if template is not None:
        item = create_item_model(template)
        actor = create_actor_model(template, item)

    models = [ActiveEffect, Folder, item, actor, Tile]
    registry.register_all(models)
    return {model.name: model for model in models}


__all__ = [
    "ActiveEffect",
    "Folder",
    "Item",
    "Actor",
    "Tile",
    "create_item_model",
    "create_actor_model",
    "register_documents",
]
