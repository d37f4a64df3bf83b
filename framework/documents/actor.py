"""
Actor - a character or creature, owning items and effects.
"""

from __future__ import annotations

from engine.data import (
    DocumentIdField,
    DocumentModel,
    DocumentPermissionsField,
    EmbeddedCollectionField,
    FilePathField,
    FlagsField,
    ForeignDocumentField,
    IntegerSortField,
    ObjectField,
    StringField,
)
from framework.constants import DEFAULT_ACTOR_ICON
from framework.documents.active_effect import ActiveEffect
from framework.documents.item import Item
from framework.system import DEFAULT_TEMPLATE, SystemTemplate

ACTOR_TYPE_ERROR = "The provided Actor type must be in the array of types defined by the game system"


def create_actor_model(template: SystemTemplate = DEFAULT_TEMPLATE,
                       item: DocumentModel = Item) -> DocumentModel:
    """
    Build the Actor model for a game system.

    Args:
        template: The game system template
        item: The Item model for owned items (built for the same template)
    """
    types = template.actor

    return DocumentModel(
        "Actor",
        {
            "_id": DocumentIdField(),
            "name": StringField(required=True, blank=False),
            "type": StringField(
                required=True,
                validate=lambda t: t in types.types,
                validation_error=ACTOR_TYPE_ERROR,
            ),
            "img": FilePathField(
                categories=("IMAGE",),
                initial=lambda ctx: types.default_image(ctx["type"], DEFAULT_ACTOR_ICON),
                depends_on=("type",),
            ),
            "data": ObjectField(
                initial=lambda ctx: types.type_data(ctx["type"]),
                depends_on=("type",),
            ),
            "items": EmbeddedCollectionField(item),
            "effects": EmbeddedCollectionField(ActiveEffect),
            "folder": ForeignDocumentField("Folder"),
            "sort": IntegerSortField(),
            "permission": DocumentPermissionsField(),
            "flags": FlagsField(),
        },
        collection="actors",
    )


Actor = create_actor_model()
