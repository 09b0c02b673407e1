import json
from pathlib import Path

from volleyuttak.models import Player
from volleyuttak.persistence import (
    POTENTIAL_KEY,
    SELECTION_KEY,
    MemoryStorage,
    SelectionPersistence,
    SqliteStorage,
)
from volleyuttak.selection import SelectionStore


def _populated_store(persistence: SelectionPersistence) -> SelectionStore:
    store = SelectionStore(on_change=persistence.save)
    store.assign_to_position(Player(name="Bjørn"), "Midt")
    store.assign_to_position(Player(name="Anna"), "Midt")
    store.assign_to_position(Player(name="Eva"), "Dia")
    store.add_to_potential(Player(name="Cecilie", desired_positions="Libero"))
    store.add_to_potential(Player(name="Ukjent Person"))
    store.move_potential("Cecilie", "Kant")
    return store


def test_round_trip_in_memory():
    persistence = SelectionPersistence(MemoryStorage(), namespace="coach")
    store = _populated_store(persistence)

    assert persistence.load() == store.snapshot()


def test_round_trip_sqlite(tmp_path: Path):
    persistence = SelectionPersistence(SqliteStorage(tmp_path / "state.sqlite"), namespace="coach")
    store = _populated_store(persistence)

    reopened = SelectionPersistence(SqliteStorage(tmp_path / "state.sqlite"), namespace="coach")
    assert reopened.load() == store.snapshot()


def test_namespaces_are_isolated():
    storage = MemoryStorage()
    _populated_store(SelectionPersistence(storage, namespace="coach"))
    assert SelectionPersistence(storage, namespace="other").load().is_empty


def test_stored_format_uses_fixed_keys():
    storage = MemoryStorage()
    _populated_store(SelectionPersistence(storage, namespace="coach"))

    selection = json.loads(storage.get("coach", SELECTION_KEY))
    potential = json.loads(storage.get("coach", POTENTIAL_KEY))
    assert selection["Midt"] == ["Bjørn", "Anna"]
    assert {"name": "Cecilie", "bucket": "Kant"} in potential


def test_invalid_json_loads_empty_state():
    storage = MemoryStorage()
    storage.set("coach", SELECTION_KEY, "{invalid json")
    storage.set("coach", POTENTIAL_KEY, "[\"Anna\"")

    snapshot = SelectionPersistence(storage, namespace="coach").load()
    assert snapshot.is_empty


def test_deeply_nested_json_loads_empty_state():
    storage = MemoryStorage()
    storage.set("coach", SELECTION_KEY, "[" * 200000)
    storage.set("coach", POTENTIAL_KEY, "[" * 200000)

    assert SelectionPersistence(storage, namespace="coach").load().is_empty


def test_wrong_shape_loads_empty_state():
    storage = MemoryStorage()
    storage.set("coach", SELECTION_KEY, json.dumps(["Anna"]))
    storage.set("coach", POTENTIAL_KEY, json.dumps({"Kant": ["Anna"]}))

    assert SelectionPersistence(storage, namespace="coach").load().is_empty


def test_legacy_potential_strings_are_regrouped():
    storage = MemoryStorage()
    storage.set("coach", POTENTIAL_KEY, json.dumps(["Anna", "Ghost", 42]))
    players = {"Anna": Player(name="Anna", desired_positions="Setter")}

    snapshot = SelectionPersistence(storage, namespace="coach").load(players.get)
    assert snapshot.potential["Legger"] == ("Anna",)
    assert snapshot.potential["Ukjent"] == ("Ghost",)


def test_sqlite_storage_upserts(tmp_path: Path):
    storage = SqliteStorage(tmp_path / "kv.sqlite")
    assert storage.get("coach", SELECTION_KEY) is None
    storage.set("coach", SELECTION_KEY, "1")
    storage.set("coach", SELECTION_KEY, "2")
    assert storage.get("coach", SELECTION_KEY) == "2"
