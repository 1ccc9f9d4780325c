from bracketforge.rating import MatchOutcome, dampen, first_pass, multi_pass_recompute


def test_first_pass_uses_running_rating():
    results = [MatchOutcome(1500, True), MatchOutcome(1500, True)]

    # 1500 -> 1508 (diff 0), then diff 8 against the running rating is still 8 points
    assert first_pass(1500, results) == 1516


def test_first_pass_skips_unrated_opponents():
    results = [MatchOutcome(None, True), MatchOutcome(1500, False)]

    assert first_pass(1500, results) == 1492


def test_gain_below_floor_keeps_initial_rating():
    results = [MatchOutcome(1600, True)]

    assert dampen(1500, 1549, results) == 1500


def test_gain_at_floor_keeps_first_pass():
    results = [MatchOutcome(1600, True)]

    assert dampen(1500, 1550, results) == 1550
    assert dampen(1500, 1574, results) == 1574


def test_losses_never_move_rating_down():
    results = [MatchOutcome(1400, False), MatchOutcome(1400, False)]

    assert dampen(1500, 1460, results) == 1500


def test_large_gain_with_mixed_record_averages():
    results = [MatchOutcome(1700, True), MatchOutcome(1400, False)]

    # (1575 + (1700 + 1400) / 2) / 2 = 1562.5
    assert dampen(1500, 1575, results) == 1563


def test_large_gain_with_perfect_record_uses_median_opponent():
    results = [
        MatchOutcome(1400, True),
        MatchOutcome(1600, True),
        MatchOutcome(1500, True),
    ]

    assert dampen(1500, 1600, results) == 1500


def test_large_gain_against_single_opponent_is_capped():
    results = [MatchOutcome(1900, True)]

    assert dampen(1500, 1650, results) == 1600


def test_unrated_player_has_no_result():
    assert multi_pass_recompute(None, [MatchOutcome(1500, True)]) is None


def test_even_two_player_win_leaves_rating_unchanged():
    assert multi_pass_recompute(1500, [MatchOutcome(1500, True)]) == 1500
    assert multi_pass_recompute(1500, [MatchOutcome(1500, False)]) == 1500
