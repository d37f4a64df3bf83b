"""
Folder - groups top-level documents of one kind.
"""

from __future__ import annotations

from engine.data import (
    ColorField,
    DocumentIdField,
    DocumentModel,
    FlagsField,
    ForeignDocumentField,
    IntegerSortField,
    StringField,
)
from framework.constants import FOLDER_DOCUMENT_TYPES, FOLDER_SORTING_MODES


Folder = DocumentModel(
    "Folder",
    {
        "_id": DocumentIdField(),
        "name": StringField(required=True, blank=False),
        "type": StringField(
            required=True,
            choices=FOLDER_DOCUMENT_TYPES,
            validation_error="must be a document type which supports folders",
        ),
        "parent": ForeignDocumentField("Folder"),
        "sorting": StringField(
            required=True,
            initial="a",
            choices=FOLDER_SORTING_MODES,
            validation_error="must be 'a' (alphabetical) or 'm' (manual)",
        ),
        "sort": IntegerSortField(),
        "color": ColorField(),
        "flags": FlagsField(),
    },
    collection="folders",
)
