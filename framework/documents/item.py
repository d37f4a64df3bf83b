"""
Item - a piece of equipment, ability or other owned object.

Item types and their default data come from the game system template,
so the model is built for a given template.
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
    MigrationRule,
    ObjectField,
    Shim,
    StringField,
)
from framework.constants import DEFAULT_ITEM_ICON
from framework.documents.active_effect import ActiveEffect
from framework.system import DEFAULT_TEMPLATE, SystemTemplate

ITEM_TYPE_ERROR = "The provided Item type must be in the array of types defined by the game system"


def create_item_model(template: SystemTemplate = DEFAULT_TEMPLATE) -> DocumentModel:
    """Build the Item model for a game system."""
    types = template.item

    return DocumentModel(
        "Item",
        {
            "_id": DocumentIdField(),
            "name": StringField(required=True, blank=False),
            "type": StringField(
                required=True,
                validate=lambda t: t in types.types,
                validation_error=ITEM_TYPE_ERROR,
            ),
            "img": FilePathField(
                categories=("IMAGE",),
                initial=lambda ctx: types.default_image(ctx["type"], DEFAULT_ITEM_ICON),
                depends_on=("type",),
            ),
            # System data model for the item's type
            "data": ObjectField(
                initial=lambda ctx: types.type_data(ctx["type"]),
                depends_on=("type",),
            ),
            "effects": EmbeddedCollectionField(ActiveEffect),
            "folder": ForeignDocumentField("Folder"),
            "sort": IntegerSortField(),
            "permission": DocumentPermissionsField(),
            "flags": FlagsField(),
        },
        collection="items",
        version=3,
        migrations=[
            MigrationRule.rename("image", "img", version=2),
            MigrationRule.rename("permissions", "permission", version=3),
        ],
        shims=[
            Shim("image", "img", since=2),
            Shim("permissions", "permission", since=3),
        ],
    )


Item = create_item_model()
