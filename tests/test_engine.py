import random
from datetime import datetime

import pytest

from bracketforge.constants import (
    EVENT_CACHE_INVALIDATED,
    EVENT_MATCH_UPDATED,
    EVENT_TOURNAMENT_COMPLETED,
    EVENT_TOURNAMENT_CREATED,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    TYPE_MULTI_ROUND_ROBINS,
    TYPE_PLAYOFF,
    TYPE_ROUND_ROBIN,
    TYPE_SWISS,
)
from bracketforge.controllers import TournamentEngine
from bracketforge.exceptions import InvalidScoreException, TournamentStateException

WIN = {"player1Sets": 3, "player2Sets": 1}


def _names(events):
    return [name for name, _ in events]


# ========== Events ==========


def test_events_are_delivered_after_commit(engine, events, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b])
    assert events == [
        (EVENT_TOURNAMENT_CREATED, {"tournamentId": tournament.id, "type": TYPE_ROUND_ROBIN})
    ]
    events.clear()

    match = engine.store.list_matches(tournament.id)[0]
    engine.update_match(tournament.id, match.id, WIN)

    assert _names(events) == [
        EVENT_TOURNAMENT_COMPLETED,
        EVENT_CACHE_INVALIDATED,
        EVENT_MATCH_UPDATED,
    ]


def test_failed_update_emits_nothing(engine, events, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b])
    events.clear()
    match = engine.store.list_matches(tournament.id)[0]

    with pytest.raises(InvalidScoreException):
        engine.update_match(tournament.id, match.id, {"player1Sets": 2, "player2Sets": 2})

    assert events == []
    assert not engine.store.find_match(match.id).is_played


def test_failing_event_sink_does_not_undo_the_commit():
    def broken_sink(name, payload):
        raise RuntimeError("sink unavailable")

    engine = TournamentEngine(
        rng=random.Random(1), clock=lambda: datetime(2025, 1, 15), event_sink=broken_sink
    )
    a = engine.register_player("A", 1500).id
    b = engine.register_player("B", 1500).id

    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b])

    assert engine.get_tournament(tournament.id).name == "Club night"


def test_parent_notification_failure_keeps_the_match(engine, register, monkeypatch):
    a, b, c, d = register(("A", 1500), ("B", 1400), ("C", 1300), ("D", 1200))
    parent = engine.create_tournament(
        TYPE_MULTI_ROUND_ROBINS, "Leagues", [a, b, c, d], {"groups": [[a, b], [c, d]]}
    )
    group = engine.store.list_children(parent.id)[0]
    match = engine.store.list_matches(group.id)[0]

    def broken_propagation(child, depth=0):
        raise RuntimeError("parent unavailable")

    monkeypatch.setattr(engine.events, "propagate_completion", broken_propagation)
    outcome = engine.update_match(group.id, match.id, WIN)

    assert outcome.propagation_error == "parent unavailable"
    assert outcome.completed_tournament_ids == [group.id]
    assert engine.store.find_match(match.id).is_played
    assert engine.get_tournament(group.id).is_completed


# ========== Players and tournaments ==========


def test_register_player(engine):
    player = engine.register_player("Ada", 1650)

    assert engine.get_player(player.id).name == "Ada"
    assert engine.get_player_rating(player.id) == 1650
    assert engine.get_rating_history(player.id) == []
    assert [p.id for p in engine.list_players()] == [player.id]


def test_list_tournaments_by_status(engine, register):
    a, b = register(("A", 1500), ("B", 1500))
    finished = engine.create_tournament(TYPE_ROUND_ROBIN, "Finished", [a, b])
    running = engine.create_tournament(TYPE_ROUND_ROBIN, "Running", [a, b])
    match = engine.store.list_matches(finished.id)[0]
    engine.update_match(finished.id, match.id, WIN)

    assert [t.id for t in engine.list_tournaments(STATUS_COMPLETED)] == [finished.id]
    assert [t.id for t in engine.list_tournaments(STATUS_ACTIVE)] == [running.id]
    assert len(engine.list_tournaments()) == 2


def test_enrich_tournament(engine, register):
    a, b, c = register(("A", 1500), ("B", 1400), ("C", 1300))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b, c])

    data = engine.enrich_tournament(tournament.id)

    assert data["matchesRemaining"] == 3
    assert data["isComplete"] is False
    assert [row["ratingAtEntry"] for row in data["participants"]] == [1500, 1400, 1300]


# ========== Manual completion ==========


def test_complete_tournament_by_hand(engine, register):
    a, b, c = register(("A", 1500), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b, c])

    assert engine.complete_tournament(tournament.id) == [tournament.id]
    assert engine.get_tournament(tournament.id).is_completed
    with pytest.raises(TournamentStateException):
        engine.complete_tournament(tournament.id)


def test_completing_last_child_by_hand_completes_parent(engine, register):
    a, b, c, d = register(("A", 1500), ("B", 1400), ("C", 1300), ("D", 1200))
    parent = engine.create_tournament(
        TYPE_MULTI_ROUND_ROBINS, "Leagues", [a, b, c, d], {"groups": [[a, b], [c, d]]}
    )
    group1, group2 = engine.store.list_children(parent.id)

    assert engine.complete_tournament(group1.id) == [group1.id]
    assert engine.complete_tournament(group2.id) == [group2.id, parent.id]


# ========== Rankings and ratings ==========


def test_rankings_cover_completed_tournaments_only(engine, register):
    a, b, c = register(("A", 1500), ("B", 1500), ("C", 1500))
    finished = engine.create_tournament(TYPE_ROUND_ROBIN, "Finished", [a, b, c])
    for match in engine.store.list_matches(finished.id):
        engine.update_match(finished.id, match.id, WIN)
    # Unfinished tournaments do not count
    running = engine.create_tournament(TYPE_ROUND_ROBIN, "Running", [c, b, a])
    match = engine.store.list_matches(running.id)[0]
    engine.update_match(running.id, match.id, {"player1Sets": 3, "player2Sets": 0})

    rankings = engine.get_rankings()

    assert [(r.rank, r.member_id) for r in rankings] == [(1, a), (2, b), (3, c)]
    top = rankings[0]
    assert (top.wins, top.losses, top.sets_won, top.sets_lost) == (2, 0, 6, 2)
    assert top.score == pytest.approx(1.0)


def test_recalculate_all_ratings_is_stable(engine, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_PLAYOFF, "Cup", [a, b])
    slot = engine.store.list_bracket_matches(tournament.id)[0]
    engine.update_match(tournament.id, slot.id, WIN)
    before = {member_id: engine.get_player_rating(member_id) for member_id in (a, b)}

    assert engine.recalculate_all_ratings() == 1

    assert {member_id: engine.get_player_rating(member_id) for member_id in (a, b)} == before
    assert sorted(before.values()) == [1492, 1508]
    assert len(engine.store.list_rating_history(tournament_id=tournament.id)) == 2


def _ratings(engine, ids):
    return {member_id: engine.get_player_rating(member_id) for member_id in ids}


def test_recalculate_keeps_ratings_from_cancelled_playoff(engine, register):
    ids = register(("A", 1500), ("B", 1500), ("C", 1500), ("D", 1500))
    tournament = engine.create_tournament(
        TYPE_PLAYOFF, "Cup", ids, {"bracketPositions": list(ids)}
    )
    semi = next(s for s in engine.store.list_bracket_matches(tournament.id) if s.round == 2)
    engine.update_match(tournament.id, semi.id, {"player1Sets": 3, "player2Sets": 0})
    engine.cancel_tournament(tournament.id)
    before = _ratings(engine, ids)

    engine.recalculate_all_ratings()

    assert _ratings(engine, ids) == before
    assert sorted(before.values()) == [1492, 1500, 1500, 1508]
    assert len(engine.store.list_rating_history(tournament_id=tournament.id)) == 2


def test_recalculate_keeps_ratings_from_cancelled_swiss(engine, register):
    ids = register(("A", 1500), ("B", 1500), ("C", 1500), ("D", 1500))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})
    match = engine.store.list_matches(tournament.id)[0]
    engine.update_match(tournament.id, match.id, WIN)
    engine.cancel_tournament(tournament.id)
    before = _ratings(engine, ids)

    engine.recalculate_all_ratings()

    assert _ratings(engine, ids) == before
    assert before[match.member1_id] == 1508
    assert before[match.member2_id] == 1492


def test_recalculate_leaves_cancelled_round_robin_unrated(engine, register):
    a, b, c = register(("A", 1200), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club night", [a, b, c])
    match = engine.store.list_matches(tournament.id)[0]
    engine.update_match(tournament.id, match.id, WIN)
    engine.cancel_tournament(tournament.id)

    engine.recalculate_all_ratings()

    assert engine.store.list_rating_history(tournament_id=tournament.id) == []
    assert _ratings(engine, [a, b, c]) == {a: 1200, b: 1500, c: 1500}

def test_point_exchange_rules_through_engine(engine):
    rules = engine.add_point_exchange_rules([(0, 99999, 5, 5)], "2025-01-01")

    assert len(rules) == 1
    assert engine.ratings.point_exchange(0, False) == 5
