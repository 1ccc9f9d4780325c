"""Swiss standings and round pairing."""

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

from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from bracketforge.models.tournament import Match
from bracketforge.type_hints import RoundSchedule
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class PairingHistory:
    """
    Tracks historical pairings to prevent repeat matches.

    Attributes
    ----------
    previous_matches : set of frozenset of int
        Member id pairs that have already met.
    """

    previous_matches: Set[frozenset] = field(default_factory=set)

    def add_pairing(self, player1_id: int, player2_id: int) -> None:
        """Record that two players have been paired."""
        self.previous_matches.add(frozenset({player1_id, player2_id}))

    def have_played(self, player1_id: int, player2_id: int) -> bool:
        """Check if two players have previously played each other."""
        return frozenset({player1_id, player2_id}) in self.previous_matches

    @classmethod
    def from_matches(cls, matches: Iterable[Match]) -> "PairingHistory":
        history = cls()
        for match in matches:
            if not match.is_bye:
                history.add_pairing(match.member1_id, match.member2_id)
        return history


@dataclass
class SwissStanding:
    """
    A player's position in the Swiss standings.

    Attributes
    ----------
    member_id : int
        Player.
    rating : int or None
        Rating snapshot at entry.
    points : int
        One point per win, forfeit wins included.
    wins : int
        Matches won.
    losses : int
        Matches lost.
    opponents : list of int
        Opponents already faced, in play order.
    """

    member_id: int
    rating: Optional[int] = None
    points: int = 0
    wins: int = 0
    losses: int = 0
    opponents: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memberId": self.member_id,
            "rating": self.rating,
            "points": self.points,
            "wins": self.wins,
            "losses": self.losses,
            "opponents": list(self.opponents),
        }


def compute_standings(
    ratings: Dict[int, Optional[int]],
    matches: Iterable[Match],
    by_rating: bool = True,
) -> List[SwissStanding]:
    """Rank players by points, then rating.

    Args:
        ratings: Rating snapshot of every participant, keyed by member id
        matches: Every match recorded in the tournament so far
        by_rating: Break point ties by rating; otherwise by member id only

    Returns:
        Standings, best first
    """
    table = {member_id: SwissStanding(member_id, rating) for member_id, rating in ratings.items()}
    for match in sorted(matches, key=lambda m: m.id or 0):
        if match.is_bye:
            continue
        for member_id in (match.member1_id, match.member2_id):
            if member_id in table:
                table[member_id].opponents.append(match.opponent_of(member_id))
        if not match.is_played or match.winner_id is None:
            continue
        loser_id = match.opponent_of(match.winner_id)
        if match.winner_id in table:
            table[match.winner_id].points += 1
            table[match.winner_id].wins += 1
        if loser_id in table:
            table[loser_id].losses += 1

    def rank_key(standing: SwissStanding) -> Tuple[int, int, int]:
        rating = (standing.rating or 0) if by_rating else 0
        return (-standing.points, -rating, standing.member_id)

    return sorted(table.values(), key=rank_key)


def pair_round(
    standings: List[SwissStanding],
    history: Optional[PairingHistory] = None,
) -> Tuple[RoundSchedule, List[int]]:
    """Greedy Swiss pairing.

    The best unpaired player meets the lowest-ranked eligible player of their
    own point group; when nobody there is eligible, the next lower groups are
    searched the same way. Players who already met are never eligible.

    Args:
        standings: Ranked standings (see ``compute_standings``)
        history: Previous pairings; rebuilt from the standings when omitted

    Returns:
        Tuple of (pairs, unpaired member ids)
    """
    if history is None:
        history = PairingHistory()
        for standing in standings:
            for opponent_id in standing.opponents:
                history.add_pairing(standing.member_id, opponent_id)

    groups = [
        [s.member_id for s in group]
        for _, group in groupby(standings, key=lambda s: s.points)
    ]
    group_of = {member_id: index for index, group in enumerate(groups) for member_id in group}
    paired: Set[int] = set()
    pairs: RoundSchedule = []
    unpaired: List[int] = []

    for standing in standings:
        player = standing.member_id
        if player in paired:
            continue
        paired.add(player)
        opponent = None
        for group in groups[group_of[player]:]:
            candidates = [
                m for m in group if m not in paired and not history.have_played(player, m)
            ]
            if candidates:
                opponent = candidates[-1]
                break
        if opponent is None:
            unpaired.append(player)
            continue
        paired.add(opponent)
        pairs.append((player, opponent))

    if unpaired:
        logger.warning(f"No eligible opponent for players {unpaired}; left unpaired this round")
    return pairs, unpaired


def round_complete(matches: Iterable[Match]) -> bool:
    """True when every match of the round has a decided result."""
    return all(match.is_bye or match.is_played for match in matches)
