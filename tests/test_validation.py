import pytest

from bracketforge.exceptions import InvalidBracketPositionsException, InvalidScoreException
from bracketforge.models.tournament import ScoreInput
from bracketforge.utils.validation import (
    require_valid_bracket_positions,
    require_valid_score,
    validate_bracket_positions,
    validate_score,
)


def test_valid_score():
    result = validate_score({"player1Sets": 3, "player2Sets": 1})

    assert result
    assert result.sanitized_value.player1_sets == 3
    assert result.sanitized_value.player2_sets == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"player1Sets": 0, "player2Sets": 0},
        {"player1Sets": 2, "player2Sets": 2},
        {"player1Sets": -1, "player2Sets": 3},
        {"player1Sets": "three", "player2Sets": 1},
        {"player1Forfeit": True, "player2Forfeit": True},
    ],
)
def test_invalid_scores(payload):
    assert not validate_score(payload)
    with pytest.raises(InvalidScoreException):
        require_valid_score(payload)


def test_forfeit_is_normalized():
    score = require_valid_score(ScoreInput(player1_sets=3, player2_sets=0, player2_forfeit=True))

    assert score.player1_sets == 1
    assert score.player2_sets == 0
    assert score.player2_forfeit


def test_snake_case_payload():
    score = require_valid_score({"player1_sets": 1, "player2_sets": 3})

    assert (score.player1_sets, score.player2_sets) == (1, 3)


def test_valid_bracket_positions():
    result = validate_bracket_positions([1, 2, 3, 0], [1, 2, 3], 4)

    assert result
    assert result.sanitized_value == [1, 2, 3, None]


@pytest.mark.parametrize(
    "positions",
    [
        [1, 2, 3],
        [1, 1, 2, 3],
        [1, 2, 3, 4],
        [1, 2, None, None],
        None,
    ],
)
def test_invalid_bracket_positions(positions):
    with pytest.raises(InvalidBracketPositionsException):
        require_valid_bracket_positions(positions, [1, 2, 3], 4)
