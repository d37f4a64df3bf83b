"""
Resource module.

Exports:
- Database: top-level collections and data-pack loading
- WorldCollection: the collection of one top-level document kind
"""

from engine.resources.database import Database, WorldCollection

__all__ = [
    "Database",
    "WorldCollection",
]
