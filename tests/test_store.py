import pytest

from volleyuttak.config import POSITIONS, POTENTIAL_BUCKETS
from volleyuttak.models import Player
from volleyuttak.selection import SelectionStore, snapshot_from_groups
from volleyuttak.selection.store import Membership


def _all_names(store: SelectionStore) -> list[str]:
    return store.selected_names() + store.potential_names()


def _assert_disjoint(store: SelectionStore) -> None:
    names = _all_names(store)
    assert len(names) == len(set(names))


def test_assign_then_reassign_moves_player():
    store = SelectionStore()
    bjorn = Player(name="Bjørn")

    store.assign_to_position(bjorn, "Midt")
    assert store.selection()["Midt"] == ["Bjørn"]

    store.assign_to_position(bjorn, "Kant")
    assert store.selection()["Midt"] == []
    assert store.selection()["Kant"] == ["Bjørn"]


def test_add_to_potential_uses_first_mapped_position():
    store = SelectionStore()
    store.add_to_potential(Player(name="Cecilie", desired_positions="libero"))
    assert store.potential_groups()["Libero"] == ["Cecilie"]

    store.add_to_potential(Player(name="Nobody"))
    assert store.potential_groups()["Ukjent"] == ["Nobody"]


def test_move_same_position_is_noop():
    changes = []
    store = SelectionStore(on_change=changes.append)
    store.assign_to_position(Player(name="Anna"), "Dia")
    before = store.selection()

    assert store.move("Dia", "Anna", "Dia") is False
    assert store.selection() == before
    assert len(changes) == 1


def test_move_requires_name_in_source_position():
    store = SelectionStore()
    store.assign_to_position(Player(name="Anna"), "Dia")

    assert store.move("Kant", "Anna", "Libero") is False
    assert store.membership("Anna") == Membership("team", "Dia")

    assert store.move("Dia", "Anna", "Libero") is True
    assert store.selection()["Libero"] == ["Anna"]


def test_unassign_only_from_matching_position():
    store = SelectionStore()
    store.assign_to_position(Player(name="Anna"), "Dia")

    assert store.unassign("Kant", "Anna") is False
    assert store.unassign("Dia", "Anna") is True
    assert store.membership("Anna") is None


def test_team_and_potential_stay_disjoint():
    store = SelectionStore()
    eva = Player(name="Eva", desired_positions="Dia")

    store.add_to_potential(eva)
    store.assign_to_position(eva, "Midt")
    assert store.potential_names() == []
    _assert_disjoint(store)

    store.move_to_potential_from_selection(eva)
    assert store.selected_names() == []
    assert store.potential_groups()["Dia"] == ["Eva"]
    _assert_disjoint(store)

    store.move_to_potential_from_selection(eva, "Kant")
    assert store.potential_groups()["Kant"] == ["Eva"]
    assert store.potential_groups()["Dia"] == []


def test_move_potential_and_remove():
    store = SelectionStore()
    store.add_to_potential(Player(name="Anna", desired_positions="Libero"))

    store.move_potential("Anna", "Ukjent")
    assert store.potential_groups()["Ukjent"] == ["Anna"]
    assert store.remove_from_potential("Anna") is True
    assert store.remove_from_potential("Anna") is False
    assert store.potential_names() == []


def test_remove_from_potential_ignores_team_members():
    store = SelectionStore()
    store.assign_to_position(Player(name="Anna"), "Kant")
    assert store.remove_from_potential("Anna") is False
    assert store.selection()["Kant"] == ["Anna"]


def test_invalid_position_or_bucket_raises():
    store = SelectionStore()
    with pytest.raises(ValueError):
        store.assign_to_position(Player(name="Anna"), "Keeper")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        store.move_potential("Anna", "Keeper")  # type: ignore[arg-type]
    assert store.assigned_names() == set()


def test_reinserted_name_goes_to_end():
    store = SelectionStore()
    for name in ("A", "B", "C"):
        store.assign_to_position(Player(name=name), "Kant")
    store.assign_to_position(Player(name="A"), "Kant")
    assert store.selection()["Kant"] == ["B", "C", "A"]


def test_every_mutation_notifies_listener():
    snapshots = []
    store = SelectionStore(on_change=snapshots.append)
    store.assign_to_position(Player(name="Anna"), "Kant")
    store.add_to_potential(Player(name="Bo"))
    store.unassign("Kant", "Anna")

    assert len(snapshots) == 3
    assert snapshots[-1].selection["Kant"] == ()
    assert snapshots[-1].potential["Ukjent"] == ("Bo",)


def test_snapshot_has_every_group_and_restore_dedupes():
    store = SelectionStore()
    snapshot = store.snapshot()
    assert set(snapshot.selection) == set(POSITIONS)
    assert set(snapshot.potential) == set(POTENTIAL_BUCKETS)
    assert snapshot.is_empty

    store.restore(snapshot_from_groups({"Midt": ["Anna", "Anna"]}, {"Kant": ["Anna", "Bo"]}))
    assert store.selection()["Midt"] == ["Anna"]
    assert store.potential_groups()["Kant"] == ["Bo"]
    _assert_disjoint(store)
