"""
Shared constants for the concrete document kinds.
"""

from enum import IntEnum


class TileOcclusionMode(IntEnum):
    """How an overhead tile reacts to tokens beneath it."""
    NONE = 0
    FADE = 1
    ROOF = 2
    RADIAL = 3
    VISION = 4


TILE_OCCLUSION_MODES = tuple(int(mode) for mode in TileOcclusionMode)

# Folder sort modes: alphabetical or manual
FOLDER_SORTING_MODES = ("a", "m")

# Document kinds a folder may contain
FOLDER_DOCUMENT_TYPES = ("Actor", "Item")

DEFAULT_ITEM_ICON = "icons/svg/item-bag.svg"
DEFAULT_ACTOR_ICON = "icons/svg/mystery-man.svg"
DEFAULT_EFFECT_ICON = "icons/svg/aura.svg"
