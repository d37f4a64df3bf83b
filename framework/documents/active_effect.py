"""
ActiveEffect - an effect applied to an Actor or carried by an Item.

Effects only exist embedded in a parent document.
"""

from __future__ import annotations

from engine.data import (
    BooleanField,
    DocumentIdField,
    DocumentModel,
    FilePathField,
    FlagsField,
    MigrationRule,
    NumberField,
    SchemaField,
    Shim,
    StringField,
)
from framework.constants import DEFAULT_EFFECT_ICON


ActiveEffect = DocumentModel(
    "ActiveEffect",
    {
        "_id": DocumentIdField(),
        "name": StringField(required=True, blank=False, label="EFFECT.Name"),
        "icon": FilePathField(categories=("IMAGE",), initial=DEFAULT_EFFECT_ICON),
        # Uuid of the document that applied the effect
        "origin": StringField(nullable=True, initial=None),
        "disabled": BooleanField(),
        "duration": SchemaField({
            "rounds": NumberField(integer=True, min=0),
            "turns": NumberField(integer=True, min=0),
            "seconds": NumberField(integer=True, min=0),
            "startRound": NumberField(integer=True, min=0),
        }),
        "flags": FlagsField(),
    },
    collection="effects",
    version=2,
    migrations=[
        MigrationRule.rename("label", "name", version=2),
    ],
    shims=[
        Shim("label", "name", since=2),
    ],
    top_level=False,
)
