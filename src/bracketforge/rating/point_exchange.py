"""Point exchange table lookups.

The table maps the absolute rating difference between two players to the
points exchanged after their match: expected_points when the favourite
wins, upset_points when the lower-rated player wins.
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

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from bracketforge.constants import DEFAULT_POINT_EXCHANGE_TABLE
from bracketforge.exceptions import PointExchangeTableException
from bracketforge.models.rating import PointExchangeRule


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, matching published tables."""
    return int(math.floor(value + 0.5))


def is_upset(player_won: bool, rating_diff: int) -> bool:
    """Whether the lower-rated side won.

    Args:
        player_won: Whether the player won the match
        rating_diff: Opponent rating minus player rating

    Returns:
        True for an upset result
    """
    return (player_won and rating_diff > 0) or (not player_won and rating_diff < 0)


def validate_table(rules: Sequence[PointExchangeRule]) -> None:
    """Check that rules tile [0, inf) and that points move the right way.

    Raises:
        PointExchangeTableException: On gaps, overlaps or non-monotonic points
    """
    if not rules:
        raise PointExchangeTableException("Point exchange table is empty")
    if rules[0].min_diff != 0:
        raise PointExchangeTableException(
            f"First bracket must start at 0, starts at {rules[0].min_diff}"
        )
    for previous, current in zip(rules, rules[1:]):
        if current.min_diff != previous.max_diff + 1:
            raise PointExchangeTableException(
                f"Brackets {previous.min_diff}-{previous.max_diff} and "
                f"{current.min_diff}-{current.max_diff} are not contiguous"
            )
        if current.upset_points < previous.upset_points:
            raise PointExchangeTableException(
                f"Upset points decrease at difference {current.min_diff}"
            )
        if current.expected_points > previous.expected_points:
            raise PointExchangeTableException(
                f"Expected points increase at difference {current.min_diff}"
            )
    for rule in rules:
        if rule.max_diff < rule.min_diff:
            raise PointExchangeTableException(
                f"Bracket {rule.min_diff}-{rule.max_diff} is empty"
            )


class PointExchangeTable:
    """Ordered, validated set of point exchange brackets.

    The last bracket is open-ended: any difference above its maximum uses it.
    """

    def __init__(self, rules: Iterable[PointExchangeRule]) -> None:
        self.rules: List[PointExchangeRule] = sorted(rules, key=lambda r: r.min_diff)
        validate_table(self.rules)

    @classmethod
    def default(cls) -> "PointExchangeTable":
        return cls(
            PointExchangeRule(min_diff, max_diff, expected, upset)
            for min_diff, max_diff, expected, upset in DEFAULT_POINT_EXCHANGE_TABLE
        )

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[int, int, int, int]]) -> "PointExchangeTable":
        return cls(PointExchangeRule(*row) for row in rows)

    def rule_for(self, rating_diff: int) -> Optional[PointExchangeRule]:
        rating_diff = abs(rating_diff)
        for rule in self.rules:
            if rule.covers(rating_diff):
                return rule
        if rating_diff > self.rules[-1].max_diff:
            return self.rules[-1]
        return None

    def point_exchange(self, rating_diff: int, upset: bool) -> int:
        """Points exchanged for a rating difference and result type.

        Args:
            rating_diff: Rating difference; the sign is ignored
            upset: Whether the lower-rated player won

        Returns:
            Points exchanged, 0 if no bracket matches
        """
        rule = self.rule_for(rating_diff)
        if rule is None:
            return 0
        return rule.points(upset)

    def incremental_adjustment(
        self, player_rating: int, opponent_rating: int, player_won: bool
    ) -> int:
        """Signed rating change for one player after one match."""
        rating_diff = opponent_rating - player_rating
        points = self.point_exchange(rating_diff, is_upset(player_won, rating_diff))
        return points if player_won else -points


_DEFAULT_TABLE: Optional[PointExchangeTable] = None


def default_table() -> PointExchangeTable:
    global _DEFAULT_TABLE
    if _DEFAULT_TABLE is None:
        _DEFAULT_TABLE = PointExchangeTable.default()
    return _DEFAULT_TABLE


def point_exchange(
    rating_diff: int, upset: bool, table: Optional[PointExchangeTable] = None
) -> int:
    """Points exchanged using table or the built-in table."""
    return (table or default_table()).point_exchange(rating_diff, upset)


def incremental_adjustment(
    player_rating: int,
    opponent_rating: int,
    player_won: bool,
    table: Optional[PointExchangeTable] = None,
) -> int:
    """Signed single-match rating change using table or the built-in table."""
    return (table or default_table()).incremental_adjustment(
        player_rating, opponent_rating, player_won
    )
