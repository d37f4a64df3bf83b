import pytest

from engine.data import DuplicateEmbeddedId, shim
from framework.documents.actor import ACTOR_TYPE_ERROR, Actor
from engine.data.errors import CustomValidationFailed

ITEM_A = "ItemA00000000000"
ITEM_B = "ItemB00000000000"
EFFECT_ID = "Effect0000000000"


def test_actor_data_from_template():
    hero = Actor.construct({"name": "Hero", "type": "character"})
    assert hero.data.level == 1
    assert hero.data.health.max == 10
    assert hero.img == "icons/svg/mystery-man.svg"


def test_actor_type_validated():
    with pytest.raises(CustomValidationFailed) as exc:
        Actor.construct({"name": "Hero", "type": "weapon"})
    assert exc.value.reason == ACTOR_TYPE_ERROR


def test_owned_items():
    hero = Actor.construct({
        "name": "Hero",
        "type": "character",
        "items": [
            {"_id": ITEM_A, "name": "Sword", "type": "weapon"},
            {"_id": ITEM_B, "name": "Mail", "type": "armor", "image": "icons/mail.png"},
        ],
    })
    # "items" collides with Mapping.items on properties
    items = hero["items"]
    assert len(items) == 2
    assert items[ITEM_A].data.damage == 0
    assert items[ITEM_B].img == "icons/mail.png"
    assert items[ITEM_A].parent is hero


def test_owned_item_duplicate_ids():
    with pytest.raises(DuplicateEmbeddedId) as exc:
        Actor.construct({
            "name": "Hero",
            "type": "character",
            "items": [
                {"_id": ITEM_A, "name": "Sword", "type": "weapon"},
                {"_id": ITEM_A, "name": "Axe", "type": "weapon"},
            ],
        })
    assert exc.value.path == "items.1"


def test_nested_effect_update_reaches_actor_source():
    hero = Actor.construct({
        "name": "Hero",
        "type": "character",
        "items": [{
            "_id": ITEM_A,
            "name": "Sword",
            "type": "weapon",
            "effects": [{"_id": EFFECT_ID, "name": "Sharp"}],
        }],
    })
    effect = hero["items"][ITEM_A].effects[EFFECT_ID]
    effect.update({"disabled": True})

    assert hero.source["items"][0]["effects"][0]["disabled"] is True


def test_create_owned_items():
    hero = Actor.construct({"name": "Hero", "type": "npc"})
    results = hero.create_embedded("items", [
        {"name": "Sword", "type": "weapon"},
        {"name": "Blaster", "type": "laser"},
    ])
    assert results[0].ok
    assert not results[1].ok
    assert len(hero["items"]) == 1
    assert hero.source["items"][0]["name"] == "Sword"


def test_shimmed_owned_items():
    hero = Actor.construct({
        "name": "Hero",
        "type": "character",
        "items": [{"_id": ITEM_A, "name": "Sword", "type": "weapon"}],
    })
    sword = shim(hero)["items"][ITEM_A]
    with pytest.warns(DeprecationWarning):
        sword.image = "icons/new.png"
    assert hero.source["items"][0]["img"] == "icons/new.png"
