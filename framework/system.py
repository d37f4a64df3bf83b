"""
Game system templates.

A game system declares which Item and Actor types exist and the default
data object each type starts with. The format follows template.json:

    {
        "Item": {
            "types": ["weapon", "armor"],
            "templates": {"physical": {"weight": 0, "price": 0}},
            "weapon": {"templates": ["physical"], "damage": 0},
            "armor": {"templates": ["physical"], "armor": 10}
        },
        "Actor": {"types": ["character"], "character": {"level": 1}}
    }

Usage:
    template = SystemTemplate.from_file("systems/mysystem/template.json")
    template.item.type_data("weapon")   # {"weight": 0, "price": 0, "damage": 0}
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from engine.data.utils import merge_object


class DocumentTemplate(BaseModel):
    """
    Types and per-type data templates for one document kind.

    Attributes:
        types: Allowed values of the document's "type" field
        templates: Named fragments that type data can include
        data: Per-type data; a "templates" key lists fragments merged first
        images: Optional per-type default image
    """

    model_config = ConfigDict(frozen=True)

    types: list[str] = Field(default_factory=list)
    templates: dict[str, dict[str, Any]] = Field(default_factory=dict)
    data: dict[str, dict[str, Any]] = Field(default_factory=dict)
    images: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_type_sections(cls, values: Any) -> Any:
        # template.json stores each type's data as a sibling of "types"
        if not isinstance(values, Mapping) or "data" in values:
            return values
        types = values.get("types", [])
        known = {"types", "templates", "images"}
        result = {key: values[key] for key in known if key in values}
        result["data"] = {t: values[t] for t in types if isinstance(values.get(t), Mapping)}
        return result

    @model_validator(mode="after")
    def _check_references(self) -> DocumentTemplate:
        for type_name, data in self.data.items():
            if type_name not in self.types:
                raise ValueError(f"data defined for undeclared type '{type_name}'")
            for name in data.get("templates", []):
                if name not in self.templates:
                    raise ValueError(f"type '{type_name}' uses unknown template '{name}'")
        return self

    def type_data(self, type_name: str) -> dict[str, Any]:
        """Default data object for a type; {} for unknown types."""
        data = self.data.get(type_name)
        if data is None:
            return {}
        result: dict[str, Any] = {}
        for name in data.get("templates", []):
            merge_object(result, copy.deepcopy(self.templates[name]))
        merge_object(result, {k: v for k, v in data.items() if k != "templates"})
        return result

    def default_image(self, type_name: str, fallback: str | None = None) -> str | None:
        return self.images.get(type_name, fallback)


class SystemTemplate(BaseModel):
    """The Item and Actor templates of a game system."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item: DocumentTemplate = Field(default_factory=DocumentTemplate, alias="Item")
    actor: DocumentTemplate = Field(default_factory=DocumentTemplate, alias="Actor")

    @classmethod
    def from_file(cls, path: Path | str) -> SystemTemplate:
        """Load a template.json file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


DEFAULT_TEMPLATE = SystemTemplate.model_validate({
    "Item": {
        "types": ["weapon", "armor", "consumable", "spell", "feat"],
        "templates": {
            "physical": {"quantity": 1, "weight": 0, "price": 0},
        },
        "weapon": {"damage": 0},
        "armor": {"templates": ["physical"], "armor": 0},
        "consumable": {"templates": ["physical"], "uses": 1},
        "spell": {"level": 0, "cost": 0},
        "feat": {"requirements": ""},
        "images": {
            "weapon": "icons/svg/sword.svg",
            "armor": "icons/svg/shield.svg",
        },
    },
    "Actor": {
        "types": ["character", "npc"],
        "templates": {
            "base": {"health": {"value": 10, "max": 10}, "biography": ""},
        },
        "character": {"templates": ["base"], "level": 1, "experience": 0},
        "npc": {"templates": ["base"], "challenge": 0},
    },
})
