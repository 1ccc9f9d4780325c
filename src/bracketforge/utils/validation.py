"""Validation utilities for BracketForge.

Score and bracket-position checks shared by the format plugins. Each check
has a ``validate_*`` form returning a ``ValidationResult`` and a
``require_*`` form raising the matching exception.
"""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from typing import Any, Dict, Iterable, Optional, Union

from bracketforge.constants import BYE
from bracketforge.exceptions import (
    InvalidBracketPositionsException,
    InvalidScoreException,
)
from bracketforge.models.tournament import ScoreInput
from bracketforge.type_hints import BracketPositions


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Any = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


# ========== Score Validation ==========


def validate_score(score: Union[ScoreInput, Dict[str, Any]]) -> ValidationResult:
    """Validate a submitted match score.

    A forfeit needs no set counts; the forfeiting side is recorded with
    0 sets and the other side with 1. Without a forfeit the set counts must
    be non-negative and differ, so ``0-0`` is rejected as well.

    Args:
        score: Score object or request payload

    Returns:
        ValidationResult whose sanitized value is the normalized ``ScoreInput``

    Example:
        >>> validate_score({"player1Sets": 3, "player2Sets": 1}).is_valid
        True
    """
    if isinstance(score, dict):
        score = ScoreInput.from_dict(score)

    if score.player1_forfeit and score.player2_forfeit:
        return ValidationResult(
            is_valid=False,
            error_message="Both players cannot forfeit the same match",
        )

    if score.is_forfeit:
        sanitized = ScoreInput(
            player1_sets=0 if score.player1_forfeit else 1,
            player2_sets=0 if score.player2_forfeit else 1,
            player1_forfeit=score.player1_forfeit,
            player2_forfeit=score.player2_forfeit,
            member1_id=score.member1_id,
            member2_id=score.member2_id,
        )
        return ValidationResult(is_valid=True, sanitized_value=sanitized)

    try:
        player1_sets = int(score.player1_sets)
        player2_sets = int(score.player2_sets)
    except (TypeError, ValueError):
        return ValidationResult(
            is_valid=False,
            error_message=(
                f"Set counts must be integers: "
                f"{score.player1_sets!r}-{score.player2_sets!r}"
            ),
        )

    if player1_sets < 0 or player2_sets < 0:
        return ValidationResult(
            is_valid=False,
            error_message=f"Set counts cannot be negative: {player1_sets}-{player2_sets}",
        )

    if player1_sets == player2_sets:
        return ValidationResult(
            is_valid=False,
            error_message=(
                f"Scores cannot be equal ({player1_sets}-{player2_sets}); "
                f"matches have no draws"
            ),
        )

    sanitized = ScoreInput(
        player1_sets=player1_sets,
        player2_sets=player2_sets,
        member1_id=score.member1_id,
        member2_id=score.member2_id,
    )
    return ValidationResult(is_valid=True, sanitized_value=sanitized)


def require_valid_score(score: Union[ScoreInput, Dict[str, Any]]) -> ScoreInput:
    """Validate a score and raise if invalid.

    Raises:
        InvalidScoreException: If the score is invalid
    """
    result = validate_score(score)
    if not result.is_valid:
        raise InvalidScoreException(result.error_message)
    return result.sanitized_value


# ========== Bracket Position Validation ==========


def validate_bracket_positions(
    positions: Optional[BracketPositions],
    participant_ids: Iterable[int],
    bracket_size: int,
) -> ValidationResult:
    """Validate an explicit first-round position list.

    The list must have one entry per bracket slot, contain every participant
    exactly once, use ``None`` (or the BYE marker) for the remaining slots and
    never put two BYEs in the same first-round match.

    Args:
        positions: Player ids in slot order
        participant_ids: Players entered in the tournament
        bracket_size: Expected number of slots

    Returns:
        ValidationResult whose sanitized value uses ``None`` for every BYE
    """
    if positions is None:
        return ValidationResult(
            is_valid=False, error_message="Bracket positions are required"
        )
    if len(positions) != bracket_size:
        return ValidationResult(
            is_valid=False,
            error_message=(
                f"Bracket positions must have {bracket_size} entries, "
                f"got {len(positions)}"
            ),
        )

    sanitized = [None if p in (None, BYE) else int(p) for p in positions]
    placed = [p for p in sanitized if p is not None]
    expected = set(participant_ids)

    if len(placed) != len(set(placed)):
        return ValidationResult(
            is_valid=False, error_message="A player appears more than once in the bracket"
        )
    if set(placed) != expected:
        missing = sorted(expected - set(placed))
        unknown = sorted(set(placed) - expected)
        return ValidationResult(
            is_valid=False,
            error_message=(
                f"Bracket positions do not match participants "
                f"(missing {missing}, unknown {unknown})"
            ),
        )
    for index in range(0, bracket_size, 2):
        if sanitized[index] is None and sanitized[index + 1] is None:
            return ValidationResult(
                is_valid=False,
                error_message=f"First-round match {index // 2 + 1} has two BYEs",
            )
    return ValidationResult(is_valid=True, sanitized_value=sanitized)


def require_valid_bracket_positions(
    positions: Optional[BracketPositions],
    participant_ids: Iterable[int],
    bracket_size: int,
) -> BracketPositions:
    """Validate bracket positions and raise if invalid.

    Raises:
        InvalidBracketPositionsException: If the positions are invalid
    """
    result = validate_bracket_positions(positions, participant_ids, bracket_size)
    if not result.is_valid:
        raise InvalidBracketPositionsException(result.error_message)
    return result.sanitized_value
