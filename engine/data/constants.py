"""
Constants shared by the generic field types.
"""

from __future__ import annotations

from enum import IntEnum


class PermissionLevel(IntEnum):
    """Document permission levels, ordered by access."""
    NONE = 0
    LIMITED = 1
    OBSERVER = 2
    OWNER = 3


# File extensions accepted per media category
FILE_CATEGORIES: dict[str, frozenset[str]] = {
    "IMAGE": frozenset({
        "apng", "avif", "bmp", "gif", "jpeg", "jpg", "png", "svg", "tiff", "webp",
    }),
    "VIDEO": frozenset({"m4v", "mp4", "ogv", "webm"}),
    "AUDIO": frozenset({
        "aac", "flac", "m4a", "mid", "mp3", "ogg", "opus", "wav", "webm",
    }),
    "TEXT": frozenset({"csv", "json", "md", "pdf", "tsv", "txt", "xml", "yaml", "yml"}),
}

# Key under which persisted documents record their schema generation
VERSION_KEY = "_version"
