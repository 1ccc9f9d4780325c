"""Tournament-level rating recomputation.

Round robin tournaments are rated once, at completion, with a two pass
algorithm: pass 1 walks the matches in play order applying point exchanges
against a running rating, pass 2 dampens the result depending on how many
points were gained.
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

from dataclasses import dataclass
from typing import List, Optional, Sequence

from bracketforge.constants import (
    DAMPEN_AVERAGE_MIN,
    DAMPEN_FLOOR,
    MIN_RATING,
    SINGLE_OPPONENT_MAX_CHANGE,
)
from bracketforge.rating.point_exchange import (
    PointExchangeTable,
    default_table,
    round_half_up,
)


@dataclass(frozen=True)
class MatchOutcome:
    """One match from a player's point of view.

    Attributes
    ----------
    opponent_rating : int or None
        Opponent's rating snapshot; unrated opponents are ignored.
    won : bool
        Whether the player won.
    """

    opponent_rating: Optional[int]
    won: bool


def first_pass(
    initial_rating: int,
    results: Sequence[MatchOutcome],
    table: Optional[PointExchangeTable] = None,
) -> int:
    """Apply point exchanges sequentially against the running rating."""
    table = table or default_table()
    rating = initial_rating
    for result in results:
        if result.opponent_rating is None:
            continue
        rating += table.incremental_adjustment(rating, result.opponent_rating, result.won)
    return rating


def dampen(
    initial_rating: int, pass1_rating: int, results: Sequence[MatchOutcome]
) -> int:
    """Second pass: limit rating movement from small or lopsided samples.

    Args:
        initial_rating: Rating before the tournament
        pass1_rating: Rating after the first pass
        results: The player's match results

    Returns:
        Rating after dampening, before flooring
    """
    gained = pass1_rating - initial_rating
    if gained < DAMPEN_FLOOR:
        return initial_rating
    if gained < DAMPEN_AVERAGE_MIN:
        return pass1_rating

    # Large gain
    rated = [r for r in results if r.opponent_rating is not None]
    if not rated:
        return pass1_rating
    win_ratings = [r.opponent_rating for r in rated if r.won]
    loss_ratings = [r.opponent_rating for r in rated if not r.won]

    if win_ratings and loss_ratings:
        best_win = max(win_ratings)
        worst_loss = min(loss_ratings)
        return round_half_up((pass1_rating + (best_win + worst_loss) / 2) / 2)

    if len(rated) == 1:
        if loss_ratings:
            return min(pass1_rating, initial_rating)
        return max(
            initial_rating - SINGLE_OPPONENT_MAX_CHANGE,
            min(initial_rating + SINGLE_OPPONENT_MAX_CHANGE, pass1_rating),
        )

    opponent_ratings: List[int] = sorted(r.opponent_rating for r in rated)
    return opponent_ratings[len(opponent_ratings) // 2]


def multi_pass_recompute(
    initial_rating: Optional[int],
    results: Sequence[MatchOutcome],
    table: Optional[PointExchangeTable] = None,
) -> Optional[int]:
    """Rating after a tournament rated in bulk.

    Args:
        initial_rating: Rating snapshot at entry, ``None`` if unrated
        results: Match results in play order
        table: Point exchange table, the built-in one by default

    Returns:
        Final rating, or None for an unrated player (no change, no history)
    """
    if initial_rating is None:
        return None
    pass1_rating = first_pass(initial_rating, results, table)
    final_rating = dampen(initial_rating, pass1_rating, results)
    return max(MIN_RATING, round_half_up(final_rating))
