"""
Virtual tabletop framework module.

Provides the concrete document kinds built on top of the engine:
- Documents (ActiveEffect, Folder, Item, Actor, Tile)
- System templates (item and actor types, default type data)
- Constants (occlusion modes, folder sorting)
"""
