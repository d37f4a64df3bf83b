"""
Tile - an image or video placed on a scene.

Schema version 2 moved the texture path and tint into a texture object.
"""

from __future__ import annotations

from engine.data import (
    AlphaField,
    AngleField,
    BooleanField,
    ColorField,
    DocumentIdField,
    DocumentModel,
    FilePathField,
    FlagsField,
    MigrationRule,
    NumberField,
    SchemaField,
    Shim,
)
from framework.constants import TILE_OCCLUSION_MODES, TileOcclusionMode


def _texture_field() -> SchemaField:
    return SchemaField({
        "src": FilePathField(categories=("IMAGE", "VIDEO"), initial=None),
        "scaleX": NumberField(nullable=False, initial=1),
        "scaleY": NumberField(nullable=False, initial=1),
        "offsetX": NumberField(nullable=False, initial=0),
        "offsetY": NumberField(nullable=False, initial=0),
        "rotation": AngleField(),
        "tint": ColorField(),
    })


Tile = DocumentModel(
    "Tile",
    {
        "_id": DocumentIdField(),
        "texture": _texture_field(),
        "width": NumberField(required=True, min=0, nullable=False, step=0.1, initial=0),
        "height": NumberField(required=True, min=0, nullable=False, step=0.1, initial=0),
        "x": NumberField(required=True, integer=True, nullable=False, initial=0, label="XCoord"),
        "y": NumberField(required=True, integer=True, nullable=False, initial=0, label="YCoord"),
        "z": NumberField(required=True, integer=True, nullable=False, initial=100),
        "rotation": AngleField(),
        "alpha": AlphaField(),
        "hidden": BooleanField(),
        "locked": BooleanField(),
        "overhead": BooleanField(),
        "roof": BooleanField(),
        "occlusion": SchemaField({
            "mode": NumberField(
                choices=TILE_OCCLUSION_MODES,
                initial=int(TileOcclusionMode.FADE),
                validation_error="must be a value in TILE_OCCLUSION_MODES",
            ),
            "alpha": AlphaField(initial=0),
            # Used by RADIAL mode
            "radius": NumberField(positive=True),
        }),
        "video": SchemaField({
            "loop": BooleanField(initial=True),
            "autoplay": BooleanField(initial=True),
            "volume": AlphaField(initial=0, step=0.01),
        }),
        "flags": FlagsField(),
    },
    collection="tiles",
    version=2,
    migrations=[
        MigrationRule.rename("img", "texture.src", version=2),
        MigrationRule.move_into("tint", "texture", version=2),
    ],
    shims=[
        Shim("img", "texture.src", since=2),
        Shim("tint", "texture.tint", since=2),
    ],
)
