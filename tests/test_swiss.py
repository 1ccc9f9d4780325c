import pytest

from bracketforge.constants import REASON_MATCH_COMPLETED, TYPE_SWISS
from bracketforge.exceptions import NotReadyException
from bracketforge.models.tournament import Match
from bracketforge.pairing import PairingHistory, compute_standings, pair_round

WIN = {"player1Sets": 3, "player2Sets": 1}


def _ratings(*values):
    return {member_id: rating for member_id, rating in enumerate(values, start=1)}


def _played(member1_id, member2_id, winner_first=True, match_id=None):
    return Match(
        tournament_id=1,
        member1_id=member1_id,
        member2_id=member2_id,
        id=match_id,
        player1_sets=3 if winner_first else 0,
        player2_sets=0 if winner_first else 3,
        winner_id=member1_id if winner_first else member2_id,
    )


def _play_out(engine, tournament_id, max_updates=100):
    """Score every open match with player 1 winning until the tournament completes."""
    for _ in range(max_updates):
        if engine.get_tournament(tournament_id).is_completed:
            return
        open_matches = [m for m in engine.store.list_matches(tournament_id) if not m.is_played]
        assert open_matches, "tournament stalled with no open matches"
        engine.update_match(tournament_id, open_matches[0].id, WIN)
    raise AssertionError("tournament did not complete")


def test_first_round_pairs_top_half_against_bottom_half():
    standings = compute_standings(_ratings(2000, 1800, 1600, 1400), [])

    pairs, unpaired = pair_round(standings)

    assert pairs == [(1, 4), (2, 3)]
    assert unpaired == []


def test_standings_rank_points_then_rating():
    matches = [_played(4, 1, match_id=1), _played(2, 3, match_id=2)]

    standings = compute_standings(_ratings(2000, 1800, 1600, 1400), matches)

    assert [s.member_id for s in standings] == [2, 4, 1, 3]
    assert standings[0].points == 1
    assert standings[1].opponents == [1]


def test_standings_without_rating_tiebreak():
    standings = compute_standings(_ratings(1400, 2000), [], by_rating=False)

    assert [s.member_id for s in standings] == [1, 2]


def test_rematches_are_never_paired():
    history = PairingHistory()
    history.add_pairing(1, 4)
    history.add_pairing(2, 3)
    standings = compute_standings(_ratings(2000, 1800, 1600, 1400), [])

    pairs, _ = pair_round(standings, history)

    assert {frozenset(p) for p in pairs} & {frozenset((1, 4)), frozenset((2, 3))} == set()


def test_players_with_no_eligible_opponent_are_left_unpaired():
    history = PairingHistory()
    history.add_pairing(1, 2)
    standings = compute_standings(_ratings(1500, 1500), [])

    pairs, unpaired = pair_round(standings, history)

    assert pairs == []
    assert unpaired == [1, 2]


def test_engine_first_round(engine, register):
    ids = register(("A", 2000), ("B", 1800), ("C", 1600), ("D", 1400))

    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})

    pairs = {
        frozenset((m.member1_id, m.member2_id)) for m in engine.store.list_matches(tournament.id)
    }
    assert pairs == {frozenset((ids[0], ids[3])), frozenset((ids[1], ids[2]))}


@pytest.mark.parametrize("player_count", [4, 6, 8])
def test_no_rematches_over_three_rounds(engine, register, player_count):
    ids = register(*[(f"P{i}", 2000 - i * 50) for i in range(player_count)])
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})

    _play_out(engine, tournament.id)

    matches = engine.store.list_matches(tournament.id)
    pairs = [frozenset((m.member1_id, m.member2_id)) for m in matches]
    assert len(pairs) == len(set(pairs))
    state = engine.store.find_swiss_state(tournament.id)
    assert state.completed
    assert state.current_round <= 3
    assert engine.matches_remaining(tournament.id) == 0


def test_next_round_before_current_finishes_is_rejected(engine, register):
    ids = register(("A", 2000), ("B", 1800), ("C", 1600), ("D", 1400))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})

    with pytest.raises(NotReadyException):
        engine.handle_plugin_request(tournament.id, "POST", "next-round")


def test_round_completion_generates_next_round(engine, register):
    ids = register(("A", 2000), ("B", 1800), ("C", 1600), ("D", 1400))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})

    for match in engine.store.list_matches(tournament.id, round_number=1):
        engine.update_match(tournament.id, match.id, WIN)

    assert engine.store.find_swiss_state(tournament.id).current_round == 2
    assert len(engine.store.list_matches(tournament.id, round_number=2)) == 2


def test_swiss_rates_each_match(engine, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", [a, b], {"numberOfRounds": 1})
    match = engine.store.list_matches(tournament.id)[0]

    engine.update_match(tournament.id, match.id, WIN)

    history = engine.store.list_rating_history(match_id=match.id)
    assert {r.member_id: r.rating_change for r in history} == {a: 8, b: -8}
    assert all(r.reason == REASON_MATCH_COMPLETED for r in history)
    assert engine.get_tournament(tournament.id).is_completed


def test_two_players_finish_early_when_no_pairing_is_left(engine, register):
    a, b = register(("A", 1500), ("B", 1500))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", [a, b], {"numberOfRounds": 3})
    match = engine.store.list_matches(tournament.id)[0]

    outcome = engine.update_match(tournament.id, match.id, WIN)

    assert outcome.tournament_completed
    state = engine.store.find_swiss_state(tournament.id)
    assert state.total_rounds == 1
    assert state.completed


def test_standings_request(engine, register):
    ids = register(("A", 2000), ("B", 1800))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 1})

    standings = engine.handle_plugin_request(tournament.id, "GET", "standings")

    assert [row["memberId"] for row in standings] == ids


def test_completing_by_hand_closes_the_rounds(engine, register):
    ids = register(("A", 2000), ("B", 1800), ("C", 1600), ("D", 1400))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})

    engine.complete_tournament(tournament.id)

    state = engine.store.find_swiss_state(tournament.id)
    assert state.completed
    assert (state.current_round, state.total_rounds) == (1, 1)
    assert engine.is_complete(tournament.id)
    assert engine.matches_remaining(tournament.id) == 0


def test_cancel_closes_the_rounds(engine, register):
    ids = register(("A", 2000), ("B", 1800), ("C", 1600), ("D", 1400))
    tournament = engine.create_tournament(TYPE_SWISS, "Swiss", ids, {"numberOfRounds": 3})
    match = engine.store.list_matches(tournament.id, round_number=1)[0]
    engine.update_match(tournament.id, match.id, WIN)

    engine.cancel_tournament(tournament.id)

    state = engine.store.find_swiss_state(tournament.id)
    assert state.completed
    assert state.total_rounds == 1
    assert engine.matches_remaining(tournament.id) == 0
    assert engine.store.find_match(match.id).is_played
