import json

import pytest

from bracketforge.constants import TYPE_ROUND_ROBIN
from bracketforge.exceptions import EntityNotFoundException, TournamentNotFoundException
from bracketforge.models.tournament import Match, Tournament
from bracketforge.store import InMemoryStore, JsonFileStore


def test_transaction_rolls_back_on_error():
    store = InMemoryStore()
    with store.transaction():
        store.add_player("Kept", 1500)

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.add_player("Dropped", 1400)
            raise RuntimeError("boom")

    assert [p.name for p in store.list_players()] == ["Kept"]


def test_nested_transactions_roll_back_together():
    store = InMemoryStore()

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.add_player("Outer", 1500)
            with store.transaction():
                store.add_player("Inner", 1400)
            raise RuntimeError("boom")

    assert store.list_players() == []


def test_reads_return_copies():
    store = InMemoryStore()
    player = store.add_player("Alice", 1500)

    fetched = store.get_player(player.id)
    fetched.rating = 9999

    assert store.get_player(player.id).rating == 1500


def test_missing_entities_raise():
    store = InMemoryStore()

    with pytest.raises(EntityNotFoundException):
        store.get_player(42)
    with pytest.raises(TournamentNotFoundException):
        store.get_tournament(42)
    with pytest.raises(EntityNotFoundException):
        store.delete_match(42)


def test_delete_tournament_removes_its_rows():
    store = InMemoryStore()
    tournament = store.create_tournament(Tournament(name="Club", type=TYPE_ROUND_ROBIN))
    other = store.create_tournament(Tournament(name="Other", type=TYPE_ROUND_ROBIN))
    store.create_match(Match(tournament_id=tournament.id, member1_id=1, member2_id=2))
    store.create_match(Match(tournament_id=other.id, member1_id=1, member2_id=2))

    store.delete_tournament(tournament.id)

    assert store.find_tournament(tournament.id) is None
    assert store.list_matches(tournament.id) == []
    assert len(store.list_matches(other.id)) == 1


def test_json_store_persists_on_commit(tmp_path):
    path = tmp_path / "club.json"
    store = JsonFileStore(path)
    with store.transaction():
        store.add_player("Alice", 1500)
        store.create_tournament(Tournament(name="Club", type=TYPE_ROUND_ROBIN))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["tables"]["players"][0]["name"] == "Alice"

    reloaded = JsonFileStore(path)
    assert reloaded.get_player(1).name == "Alice"
    assert reloaded.get_tournament(1).name == "Club"
    with reloaded.transaction():
        assert reloaded.add_player("Bob", 1400).id == 2


def test_json_store_adds_extension(tmp_path):
    store = JsonFileStore(tmp_path / "club")

    assert store.path.suffix == ".json"
