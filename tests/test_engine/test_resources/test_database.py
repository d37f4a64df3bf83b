import pytest
import json
from engine.core.events import DataEvent
from engine.data.errors import ConstraintViolation, DataValidationError, TypeMismatch
from engine.resources.database import Database

SWORD_ID = "Sword00000000000"
AXE_ID = "Axe0000000000000"
FOLDER_ID = "Folder0000000000"


@pytest.fixture
def mock_db_path(tmp_path):
    # Setup mock directory structure in tmp_path
    schemas = tmp_path / "schemas"
    schemas.mkdir()

    database = tmp_path / "database"
    database.mkdir()
    (database / "items").mkdir()
    (database / "folders").mkdir()

    # Gate: items must cost something
    item_schema = {
        "type": "object",
        "required": ["_id", "data"],
        "properties": {
            "_id": {"type": "string"},
            "data": {
                "type": "object",
                "properties": {"price": {"type": "integer", "minimum": 1}},
            },
        },
    }
    with open(schemas / "item.schema.json", "w") as f:
        json.dump(item_schema, f)

    return tmp_path


@pytest.fixture
def db(mock_db_path, locked_registry, event_bus):
    return Database(mock_db_path, locked_registry, event_bus)


def write(path, data):
    with open(path, "w") as f:
        json.dump(data, f)


def test_load_all(mock_db_path, db):
    write(mock_db_path / "database" / "items" / "sword.json", [
        {"_id": SWORD_ID, "name": "Sword", "type": "weapon", "data": {"price": 100}},
    ])

    db.load_all()

    assert SWORD_ID in db["Item"]
    assert db["Item"][SWORD_ID].data.price == 100


def test_single_record_file(mock_db_path, db):
    write(mock_db_path / "database" / "folders" / "weapons.json",
          {"_id": FOLDER_ID, "name": "Weapons", "type": "Item"})

    db.load_all()

    assert db.lookup("Folder", FOLDER_ID).name == "Weapons"


def test_validation_error(mock_db_path, db):
    # Passes the document schema but not the on-disk gate
    write(mock_db_path / "database" / "items" / "broken.json", [
        {"_id": SWORD_ID, "name": "Free Sword", "type": "weapon", "data": {"price": 0}},
        {"_id": AXE_ID, "name": "Axe", "type": "weapon", "data": {"price": 5}},
    ])

    db.load_all()

    assert SWORD_ID not in db["Item"]  # Should be skipped due to validation error
    assert AXE_ID in db["Item"]


def test_invalid_documents_are_skipped(mock_db_path, db, caplog):
    write(mock_db_path / "database" / "items" / "bad.json", [
        {"_id": SWORD_ID, "name": "Sword", "type": "laser", "data": {"price": 1}},
        {"_id": AXE_ID, "name": "Axe", "type": "weapon", "data": {"price": 1}, "colour": "red"},
    ])
    (mock_db_path / "database" / "items" / "garbage.json").write_text("{not json")

    db.load_all()

    assert len(db["Item"]) == 0
    assert "game system" in caplog.text
    assert "unrecognized" in caplog.text
    assert "garbage.json" in caplog.text


def test_missing_schema(mock_db_path, db, caplog):
    write(mock_db_path / "database" / "items" / "sword.json",
          [{"_id": SWORD_ID, "name": "Sword", "type": "weapon", "data": {"price": 0}}])

    (mock_db_path / "schemas" / "item.schema.json").unlink()

    db.load_all()

    # Without an on-disk schema records load without the extra gate
    assert SWORD_ID in db["Item"]
    assert "No schema found" in caplog.text


def test_legacy_records_are_migrated(mock_db_path, db, event_bus):
    migrated = []
    event_bus.subscribe(DataEvent.DOCUMENT_MIGRATED, migrated.append)
    write(mock_db_path / "database" / "items" / "old.json", [
        {"_id": SWORD_ID, "_version": 1, "name": "Sword", "type": "weapon",
         "image": "icons/sword.png", "permissions": {"default": 2}, "data": {"price": 3}},
    ])

    db.load_all()

    sword = db["Item"][SWORD_ID]
    assert sword.img == "icons/sword.png"
    assert sword.permission.default == 2
    assert len(migrated) == 1


def test_load_publishes_counts(mock_db_path, db, event_bus):
    loaded = []
    event_bus.subscribe(DataEvent.DATA_LOADED, loaded.append)
    write(mock_db_path / "database" / "items" / "sword.json",
          [{"_id": SWORD_ID, "name": "Sword", "type": "weapon", "data": {"price": 1}}])

    db.load_all()

    assert loaded[0]["counts"]["items"] == 1


def test_foreign_reference_lookup(mock_db_path, db):
    write(mock_db_path / "database" / "folders" / "weapons.json",
          [{"_id": FOLDER_ID, "name": "Weapons", "type": "Item"}])
    write(mock_db_path / "database" / "items" / "sword.json",
          [{"_id": SWORD_ID, "name": "Sword", "type": "weapon", "folder": FOLDER_ID, "data": {"price": 1}}])
    db.load_all()

    sword = db["Item"][SWORD_ID]
    assert sword.resolve("folder", db.lookup) is db["Folder"][FOLDER_ID]

    db["Folder"].delete(FOLDER_ID)
    assert sword.resolve("folder", db.lookup) is None
    assert sword.folder == FOLDER_ID


def test_export_schemas(tmp_path, db):
    written = db.export_schemas(tmp_path / "out")
    names = sorted(path.name for path in written)
    assert "item.schema.json" in names
    assert "tile.schema.json" in names

    with open(tmp_path / "out" / "item.schema.json") as f:
        schema = json.load(f)
    assert schema["title"] == "Item"
    assert "name" in schema["required"]


def test_exported_schema_gates_loading(mock_db_path, db, locked_registry):
    db.export_schemas()
    write(mock_db_path / "database" / "items" / "sword.json",
          [{"_id": SWORD_ID, "name": "Sword", "type": "weapon"}])

    fresh = Database(mock_db_path, locked_registry)
    fresh.load_all()

    assert SWORD_ID in fresh["Item"]


def test_requires_locked_registry(mock_db_path, registry):
    with pytest.raises(RuntimeError):
        Database(mock_db_path, registry)


# Collections

def test_insert_assigns_id(db, event_bus):
    created = []
    event_bus.subscribe(DataEvent.DOCUMENT_CREATED, created.append)

    sword = db["Item"].insert({"name": "Sword", "type": "weapon"})

    assert len(sword.id) == 16
    assert db["Item"].get(sword.id) is sword
    assert created[0]["document"] is sword
    assert created[0]["collection"] == "items"


def test_insert_duplicate_id(db):
    db["Item"].insert({"_id": SWORD_ID, "name": "Sword", "type": "weapon"})
    with pytest.raises(ValueError):
        db["Item"].insert({"_id": SWORD_ID, "name": "Other", "type": "weapon"})


def test_insert_invalid(db):
    with pytest.raises(DataValidationError):
        db["Item"].insert({"name": "Sword", "type": "laser"})
    assert len(db["Item"]) == 0


def test_update_publishes_diff(db, event_bus):
    updated = []
    event_bus.subscribe(DataEvent.DOCUMENT_UPDATED, updated.append)
    db["Item"].insert({"_id": SWORD_ID, "name": "Sword", "type": "weapon"})

    assert db["Item"].update(SWORD_ID, {"name": "Long Sword"}) == {"name": "Long Sword"}
    assert db["Item"].update(SWORD_ID, {"name": "Long Sword"}) == {}

    assert len(updated) == 1
    assert updated[0]["diff"] == {"name": "Long Sword"}


def test_update_many_is_independent(db):
    items = db["Item"]
    items.insert({"_id": SWORD_ID, "name": "Sword", "type": "weapon"})
    items.insert({"_id": AXE_ID, "name": "Axe", "type": "weapon"})

    results = items.update_many([
        {"_id": SWORD_ID, "sort": 10},
        {"_id": AXE_ID, "sort": 1.5},
        {"_id": "Missing000000000", "sort": 1},
    ])

    assert results[0].ok
    assert isinstance(results[1].error, ConstraintViolation)
    assert not results[2].ok
    assert items[SWORD_ID].sort == 10
    assert items[AXE_ID].sort == 0


def test_delete(db, event_bus):
    deleted = []
    event_bus.subscribe(DataEvent.DOCUMENT_DELETED, deleted.append)
    db["Item"].insert({"_id": SWORD_ID, "name": "Sword", "type": "weapon"})

    db["Item"].delete(SWORD_ID)

    assert SWORD_ID not in db["Item"]
    assert len(deleted) == 1
    with pytest.raises(KeyError):
        db["Item"].delete(SWORD_ID)


def test_embedded_kinds_have_no_collection(db):
    assert "ActiveEffect" not in db
    assert db.lookup("ActiveEffect", SWORD_ID) is None
    with pytest.raises(KeyError):
        db["ActiveEffect"]


def test_update_many_reports_non_objects(db):
    db["Item"].insert({"_id": SWORD_ID, "name": "Sword", "type": "weapon"})

    results = db["Item"].update_many([None, {"_id": SWORD_ID, "sort": 4}])

    assert isinstance(results[0].error, TypeMismatch)
    assert results[1].ok
    assert db["Item"][SWORD_ID].sort == 4
