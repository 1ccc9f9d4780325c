"""Player rankings across completed tournaments."""

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
from typing import Any, Dict, Iterable, List

from bracketforge.constants import (
    RANKING_SET_RATIO_WEIGHT,
    RANKING_UNBEATEN_SET_RATIO,
    RANKING_WIN_RATE_WEIGHT,
)
from bracketforge.models.tournament import Match


@dataclass
class RankingEntry:
    """
    A player's aggregated record.

    Attributes
    ----------
    member_id : int
        Player.
    wins, losses : int
        Match record.
    sets_won, sets_lost : int
        Set totals; a forfeit counts as one set.
    rank : int
        1-based position after sorting.
    """

    member_id: int
    wins: int = 0
    losses: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    rank: int = 0

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return self.wins / self.matches_played if self.matches_played else 0.0

    @property
    def set_ratio(self) -> float:
        if self.sets_lost > 0:
            return self.sets_won / self.sets_lost
        return RANKING_UNBEATEN_SET_RATIO if self.sets_won > 0 else 0

    @property
    def score(self) -> float:
        return (
            self.win_rate * RANKING_WIN_RATE_WEIGHT
            + min(self.set_ratio / 2, 1) * RANKING_SET_RATIO_WEIGHT
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "memberId": self.member_id,
            "wins": self.wins,
            "losses": self.losses,
            "matchesPlayed": self.matches_played,
            "score": round(self.score, 4),
        }


def compute_rankings(matches: Iterable[Match]) -> List[RankingEntry]:
    """Rank every player who played at least one decided match.

    BYEs are skipped. Sorted by score, then wins.
    """
    entries: Dict[int, RankingEntry] = {}

    def entry(member_id: int) -> RankingEntry:
        if member_id not in entries:
            entries[member_id] = RankingEntry(member_id)
        return entries[member_id]

    for match in matches:
        if match.is_bye or match.winner_id is None:
            continue
        winner = entry(match.winner_id)
        loser = entry(match.opponent_of(match.winner_id))
        winner.wins += 1
        loser.losses += 1
        if match.is_forfeit:
            winner.sets_won += 1
            loser.sets_lost += 1
        else:
            winner.sets_won += match.sets_for(winner.member_id)
            winner.sets_lost += match.sets_against(winner.member_id)
            loser.sets_won += match.sets_for(loser.member_id)
            loser.sets_lost += match.sets_against(loser.member_id)

    ranked = sorted(entries.values(), key=lambda e: (-e.score, -e.wins, e.member_id))
    for index, ranking in enumerate(ranked, start=1):
        ranking.rank = index
    return ranked
