"""Round robin format: everyone plays everyone once, rated in bulk at completion."""

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

from itertools import combinations
from typing import Any, Dict, List, Optional

from bracketforge.constants import TYPE_ROUND_ROBIN
from bracketforge.exceptions import MatchNotFoundException
from bracketforge.models.tournament import Match, ScoreInput, Tournament
from bracketforge.tournament.qualification import compute_group_standings
from bracketforge.utils import setup_logger

from .base import PluginContext, TournamentPlugin

logger = setup_logger(__name__)


class RoundRobinPlugin(TournamentPlugin):
    """All ``n(n-1)/2`` matches exist from creation."""

    tournament_type = TYPE_ROUND_ROBIN
    display_name = "Round Robin"

    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        for member1_id, member2_id in combinations(participant_ids, 2):
            ctx.store.create_match(
                Match(
                    tournament_id=tournament.id,
                    member1_id=member1_id,
                    member2_id=member2_id,
                    created_at=ctx.clock(),
                )
            )
        logger.debug(
            f"Round robin {tournament.id}: "
            f"{len(participant_ids) * (len(participant_ids) - 1) // 2} matches created"
        )

    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        if tournament.is_completed:
            return True
        matches = ctx.store.list_matches(tournament.id)
        return bool(matches) and all(match.is_played for match in matches)

    def matches_remaining(self, ctx: PluginContext, tournament: Tournament) -> int:
        if tournament.is_completed:
            return 0
        return sum(1 for match in ctx.store.list_matches(tournament.id) if not match.is_played)

    def resolve_match_id(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: Optional[ScoreInput] = None,
    ) -> Match:
        """Match id ``0`` looks the match up by its two players instead."""
        if match_id:
            return super().resolve_match_id(ctx, tournament, match_id, score)
        if score is None or score.member1_id is None or score.member2_id is None:
            raise MatchNotFoundException("Match not found: both players are required")
        wanted = {score.member1_id, score.member2_id}
        for match in ctx.store.list_matches(tournament.id):
            if {match.member1_id, match.member2_id} == wanted:
                return match
        raise MatchNotFoundException(
            f"Match not found between players {score.member1_id} and {score.member2_id}"
        )

    def record_score(self, ctx: PluginContext, match: Match, score: ScoreInput) -> Match:
        if score.member1_id is not None and score.member1_id == match.member2_id:
            score = ScoreInput(
                player1_sets=score.player2_sets,
                player2_sets=score.player1_sets,
                player1_forfeit=score.player2_forfeit,
                player2_forfeit=score.player1_forfeit,
                member1_id=score.member2_id,
                member2_id=score.member1_id,
            )
        return super().record_score(ctx, match, score)

    def on_tournament_completion_rating_calculation(
        self, ctx: PluginContext, tournament: Tournament
    ) -> None:
        ctx.ratings.create_round_robin_history(tournament)

    def standings(self, ctx: PluginContext, tournament: Tournament):
        ratings = {
            p.member_id: p.rating_at_entry for p in ctx.store.list_participants(tournament.id)
        }
        return compute_group_standings(ratings, ctx.store.list_matches(tournament.id))

    def enrich_tournament(self, ctx: PluginContext, tournament: Tournament) -> Dict[str, Any]:
        data = super().enrich_tournament(ctx, tournament)
        data["standings"] = [
            {
                "memberId": s.member_id,
                "wins": s.wins,
                "losses": s.losses,
                "setDifference": s.set_difference,
            }
            for s in self.standings(ctx, tournament)
        ]
        return data

    def get_printable_view(self, ctx: PluginContext, tournament: Tournament) -> str:
        """Results grid: row player's sets against column player."""
        standings = self.standings(ctx, tournament)
        order = [s.member_id for s in standings]
        cells: Dict[tuple, str] = {}
        for match in ctx.store.list_matches(tournament.id):
            if not match.is_played:
                continue
            for member_id in (match.member1_id, match.member2_id):
                opponent_id = match.opponent_of(member_id)
                if match.is_forfeit:
                    cells[(member_id, opponent_id)] = "W/F" if match.winner_id == member_id else "L/F"
                else:
                    cells[(member_id, opponent_id)] = (
                        f"{match.sets_for(member_id)}-{match.sets_against(member_id)}"
                    )

        lines = [f"{tournament.name} (Round Robin)", ""]
        header = " " * 22 + "".join(f"{index + 1:>6}" for index in range(len(order)))
        lines.append(header + "   W-L")
        for index, standing in enumerate(standings):
            row = f"{index + 1:>2}. {self.player_name(ctx, standing.member_id):<18}"
            for opponent_id in order:
                if opponent_id == standing.member_id:
                    row += f"{'X':>6}"
                else:
                    row += f"{cells.get((standing.member_id, opponent_id), ''):>6}"
            lines.append(row + f"   {standing.wins}-{standing.losses}")
        return "\n".join(lines)
