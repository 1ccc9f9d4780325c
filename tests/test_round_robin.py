import pytest

from bracketforge.constants import REASON_TOURNAMENT_COMPLETED, TYPE_ROUND_ROBIN
from bracketforge.exceptions import (
    InvalidScoreException,
    InvalidTournamentConfigException,
    MatchNotFoundException,
    MatchOwnershipException,
    TournamentStateException,
)


def _win(sets=(3, 0)):
    return {"player1Sets": sets[0], "player2Sets": sets[1]}


def test_creates_every_pairing(engine, register):
    ids = register(("A", 1500), ("B", 1500), ("C", 1500), ("D", 1500))

    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", ids)

    matches = engine.store.list_matches(tournament.id)
    assert len(matches) == 6
    pairs = {frozenset((m.member1_id, m.member2_id)) for m in matches}
    assert len(pairs) == 6
    assert engine.matches_remaining(tournament.id) == 6


def test_needs_two_players(engine, register):
    ids = register(("A", 1500))

    with pytest.raises(InvalidTournamentConfigException):
        engine.create_tournament(TYPE_ROUND_ROBIN, "Solo", ids)


def test_snapshots_ratings_at_entry(engine, register):
    ids = register(("A", 1500), ("B", None))

    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", ids)

    snapshots = {
        p.member_id: p.rating_at_entry for p in engine.store.list_participants(tournament.id)
    }
    assert snapshots == {ids[0]: 1500, ids[1]: None}


def test_even_match_leaves_ratings_unchanged(engine, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Pair", [a, b])
    match = engine.store.list_matches(tournament.id)[0]

    outcome = engine.update_match(tournament.id, match.id, _win((3, 1)))

    assert outcome.tournament_completed
    assert engine.get_tournament(tournament.id).is_completed
    assert engine.get_player_rating(a) == 1500
    assert engine.get_player_rating(b) == 1500
    assert engine.store.list_rating_history(tournament_id=tournament.id) == []


def test_matches_remaining_counts_down(engine, register):
    ids = register(("A", 1500), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", ids)
    first = engine.store.list_matches(tournament.id)[0]

    engine.update_match(tournament.id, first.id, _win())

    assert engine.matches_remaining(tournament.id) == 2
    assert not engine.is_complete(tournament.id)


def test_match_lookup_by_players_in_reverse_order(engine, register):
    a, b, c = register(("A", 1500), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", [a, b, c])

    outcome = engine.update_match(
        tournament.id,
        0,
        {"member1Id": b, "member2Id": a, "player1Sets": 3, "player2Sets": 1},
    )

    assert (outcome.match.member1_id, outcome.match.member2_id) == (a, b)
    assert (outcome.match.player1_sets, outcome.match.player2_sets) == (1, 3)
    assert outcome.match.winner_id == b


def test_invalid_scores_are_rejected(engine, register, events):
    ids = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", ids)
    match = engine.store.list_matches(tournament.id)[0]
    events.clear()

    with pytest.raises(InvalidScoreException):
        engine.update_match(tournament.id, match.id, _win((0, 0)))
    with pytest.raises(InvalidScoreException):
        engine.update_match(tournament.id, match.id, _win((2, 2)))

    assert not engine.store.find_match(match.id).is_played
    assert events == []


def test_unknown_and_foreign_matches(engine, register):
    ids = register(("A", 1500), ("B", 1500))
    first = engine.create_tournament(TYPE_ROUND_ROBIN, "First", ids)
    second = engine.create_tournament(TYPE_ROUND_ROBIN, "Second", ids)
    foreign = engine.store.list_matches(second.id)[0]

    with pytest.raises(MatchNotFoundException):
        engine.update_match(first.id, 999, _win())
    with pytest.raises(MatchOwnershipException):
        engine.update_match(first.id, foreign.id, _win())


def test_forfeit_completes_without_rating(engine, register):
    a, b = register(("A", 1500), ("B", 1200))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", [a, b])
    match = engine.store.list_matches(tournament.id)[0]

    outcome = engine.update_match(tournament.id, match.id, {"player1Forfeit": True})

    assert outcome.match.winner_id == b
    assert (outcome.match.player1_sets, outcome.match.player2_sets) == (0, 1)
    assert engine.get_player_rating(b) == 1200


def _play_upset_round_robin(engine, register):
    a, b, c = register(("A", 1200), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", [a, b, c])
    ab, ac, bc = engine.store.list_matches(tournament.id)
    engine.update_match(tournament.id, ab.id, _win())
    engine.update_match(tournament.id, ac.id, _win())
    engine.update_match(tournament.id, bc.id, _win())
    return tournament, (a, b, c), bc


def test_completion_writes_one_record_per_changed_player(engine, register):
    tournament, (a, b, c), _ = _play_upset_round_robin(engine, register)

    history = engine.store.list_rating_history(tournament_id=tournament.id)

    # A beat both 1500 players: large gain, perfect record, median opponent rating
    assert [(r.member_id, r.rating, r.rating_change) for r in history] == [(a, 1500, 300)]
    assert history[0].reason == REASON_TOURNAMENT_COMPLETED
    assert history[0].match_id is None
    assert engine.get_player_rating(b) == 1500
    assert engine.get_player_rating(c) == 1500


def test_correction_after_completion_is_idempotent(engine, register):
    tournament, (a, b, c), bc = _play_upset_round_robin(engine, register)

    engine.update_match(tournament.id, bc.id, _win((0, 3)))
    engine.update_match(tournament.id, bc.id, _win((0, 3)))

    history = engine.store.list_rating_history(tournament_id=tournament.id)
    assert len(history) == 1
    assert engine.get_player_rating(a) == 1500
    post_ratings = {
        p.member_id: p.post_rating for p in engine.store.list_participants(tournament.id)
    }
    assert post_ratings == {a: 1500, b: 1500, c: 1500}


def test_recalculate_all_ratings_reproduces_ledger(engine, register):
    tournament, (a, b, c), _ = _play_upset_round_robin(engine, register)

    assert engine.recalculate_all_ratings() == 1

    assert engine.get_player_rating(a) == 1500
    assert len(engine.store.list_rating_history(tournament_id=tournament.id)) == 1


def test_modify_before_play_rebuilds_matches(engine, register):
    a, b, c = register(("A", 1500), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", [a, b])

    engine.modify_tournament(tournament.id, name="Club II", participant_ids=[a, b, c])

    assert engine.get_tournament(tournament.id).name == "Club II"
    assert len(engine.store.list_matches(tournament.id)) == 3


def test_modify_after_play_is_rejected(engine, register):
    a, b, c = register(("A", 1500), ("B", 1500), ("C", 1500))
    tournament = engine.create_tournament(TYPE_ROUND_ROBIN, "Club", [a, b, c])
    match = engine.store.list_matches(tournament.id)[0]
    engine.update_match(tournament.id, match.id, _win())

    assert not engine.can_modify(tournament.id)
    with pytest.raises(TournamentStateException):
        engine.modify_tournament(tournament.id, participant_ids=[a, b])
