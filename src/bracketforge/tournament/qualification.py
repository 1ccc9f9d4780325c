"""Preliminary group standings and final-stage qualification.

Both preliminary-with-final formats qualify players the same way: explicitly
auto-qualified players first, then every group winner, then wildcard seats
filled place by place across all groups, highest rating first.
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

import random
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence

from bracketforge.bracket.seeding import (
    bracket_size,
    fold_positions,
    generate_positions,
)
from bracketforge.models.tournament import Match
from bracketforge.type_hints import BracketPositions
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class GroupStanding:
    """
    A player's record within one preliminary group.

    Attributes
    ----------
    member_id : int
        Player.
    rating : int or None
        Rating snapshot at entry.
    wins, losses : int
        Match record, forfeits included.
    sets_won, sets_lost : int
        Sets from played matches; forfeits add none.
    """

    member_id: int
    rating: Optional[int] = None
    wins: int = 0
    losses: int = 0
    sets_won: int = 0
    sets_lost: int = 0

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost


def _compare_standings(a: GroupStanding, b: GroupStanding) -> int:
    """Wins, then set difference, then rating; all descending."""
    if a.wins != b.wins:
        return b.wins - a.wins
    if a.set_difference != b.set_difference:
        return b.set_difference - a.set_difference
    if (a.rating or 0) != (b.rating or 0):
        return (b.rating or 0) - (a.rating or 0)
    return a.member_id - b.member_id


def compute_group_standings(
    ratings: Dict[int, Optional[int]], matches: Iterable[Match]
) -> List[GroupStanding]:
    """Rank a group's players.

    Args:
        ratings: Rating snapshot of every group member, keyed by member id
        matches: The group's matches

    Returns:
        Standings, first place first
    """
    table = {member_id: GroupStanding(member_id, rating) for member_id, rating in ratings.items()}
    for match in matches:
        if match.is_bye or not match.is_played or match.winner_id is None:
            continue
        loser_id = match.opponent_of(match.winner_id)
        if match.winner_id in table:
            table[match.winner_id].wins += 1
        if loser_id in table:
            table[loser_id].losses += 1
        if match.is_forfeit:
            continue
        for member_id in (match.member1_id, match.member2_id):
            if member_id in table:
                table[member_id].sets_won += match.sets_for(member_id)
                table[member_id].sets_lost += match.sets_against(member_id)
    return sorted(table.values(), key=cmp_to_key(_compare_standings))


def build_qualified_list(
    group_standings: Sequence[Sequence[GroupStanding]],
    final_size: int,
    auto_qualified_ids: Sequence[int] = (),
) -> List[int]:
    """Choose the players who advance to the final stage.

    Args:
        group_standings: Standings of every preliminary group, in group order
        final_size: Seats in the final stage
        auto_qualified_ids: Players who skip the preliminaries

    Returns:
        Qualified member ids: auto-qualified, then group winners, then
        wildcards by rating
    """
    qualified: List[int] = []

    def add(member_id: int) -> None:
        if len(qualified) < final_size and member_id not in qualified:
            qualified.append(member_id)

    for member_id in auto_qualified_ids:
        add(member_id)
    for standings in group_standings:
        if standings:
            add(standings[0].member_id)

    place = 1
    deepest = max((len(standings) for standings in group_standings), default=0)
    while len(qualified) < final_size and place < deepest:
        candidates = [
            standings[place]
            for standings in group_standings
            if len(standings) > place and standings[place].member_id not in qualified
        ]
        candidates.sort(key=lambda s: (-(s.rating or 0), s.member_id))
        for candidate in candidates:
            add(candidate.member_id)
        place += 1

    logger.info(
        f"Qualified {len(qualified)} of {final_size} final seats from "
        f"{len(group_standings)} groups"
    )
    return qualified


def seed_final_positions(
    qualified: Sequence[int],
    ratings: Dict[int, Optional[int]],
    auto_qualified_ids: Iterable[int],
    group_winner_ids: Iterable[int],
    rng: Optional[random.Random] = None,
) -> BracketPositions:
    """First-round positions of a playoff final.

    Auto-qualified players are seeded first and group winners next, each by
    rating; everyone else is drawn at random behind them.

    Returns:
        Member ids by position, ``None`` for BYEs
    """
    rng = rng or random.Random()
    auto = set(auto_qualified_ids)
    winners = set(group_winner_ids) - auto

    def by_rating(members: Iterable[int]) -> List[int]:
        return sorted(members, key=lambda m: (-(ratings.get(m) or 0), m))

    order = by_rating(m for m in qualified if m in auto)
    order += by_rating(m for m in qualified if m in winners)
    rest = [m for m in qualified if m not in auto and m not in winners]
    rng.shuffle(rest)
    order += rest

    size = bracket_size(len(order))
    if size == len(order):
        return fold_positions(order)
    return generate_positions(order, size, rng=rng)
