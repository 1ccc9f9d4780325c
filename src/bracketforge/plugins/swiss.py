"""Swiss format: rounds are paired one at a time from the current standings."""

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

from typing import Any, Dict, List, Optional

from bracketforge.constants import METHOD_GET, METHOD_POST, TYPE_SWISS
from bracketforge.exceptions import NotReadyException, TournamentStateException
from bracketforge.models.tournament import (
    LifecycleResult,
    Match,
    MatchCompletedEvent,
    StateChangeResult,
    SwissConfig,
    SwissState,
    Tournament,
)
from bracketforge.pairing import (
    PairingHistory,
    SwissStanding,
    compute_standings,
    pair_round,
    round_complete,
)
from bracketforge.type_hints import RequestMethod
from bracketforge.utils import setup_logger

from .base import PluginContext, TournamentPlugin

logger = setup_logger(__name__)


class SwissPlugin(TournamentPlugin):
    """Swiss system without rematches, rated per match."""

    tournament_type = TYPE_SWISS
    display_name = "Swiss"

    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        config = SwissConfig.from_dict(tournament.config)
        tournament.config = {**tournament.config, **config.to_dict()}
        ctx.store.update_tournament(tournament)
        ctx.store.save_swiss_state(
            SwissState(
                tournament_id=tournament.id,
                total_rounds=config.number_of_rounds,
                pair_by_rating=config.pair_by_rating,
            )
        )
        self.generate_next_round(ctx, tournament)

    def get_state(self, ctx: PluginContext, tournament: Tournament) -> SwissState:
        state = ctx.store.find_swiss_state(tournament.id)
        if state is None:
            raise TournamentStateException(f"Swiss tournament {tournament.id} has no round state")
        return state

    # ========== Rounds ==========

    def standings(self, ctx: PluginContext, tournament: Tournament) -> List[SwissStanding]:
        state = self.get_state(ctx, tournament)
        ratings = {
            p.member_id: p.rating_at_entry for p in ctx.store.list_participants(tournament.id)
        }
        return compute_standings(
            ratings, ctx.store.list_matches(tournament.id), state.pair_by_rating
        )

    def generate_next_round(self, ctx: PluginContext, tournament: Tournament) -> List[Match]:
        """Pair and store the next round.

        Raises:
            NotReadyException: If every round is already generated or the
                current round is unfinished
        """
        state = self.get_state(ctx, tournament)
        if state.current_round >= state.total_rounds:
            raise NotReadyException(
                f"All {state.total_rounds} rounds of tournament {tournament.id} "
                f"have already been generated"
            )
        if state.current_round > 0 and not round_complete(
            ctx.store.list_matches(tournament.id, round_number=state.current_round)
        ):
            raise NotReadyException(
                f"Round {state.current_round} of tournament {tournament.id} is not finished"
            )

        matches = ctx.store.list_matches(tournament.id)
        standings = self.standings(ctx, tournament)
        pairs, unpaired = pair_round(standings, PairingHistory.from_matches(matches))
        if not pairs:
            logger.warning(f"Swiss {tournament.id}: no rematch-free pairing left")
            return []
        round_number = state.current_round + 1
        created = [
            ctx.store.create_match(
                Match(
                    tournament_id=tournament.id,
                    member1_id=member1_id,
                    member2_id=member2_id,
                    round_number=round_number,
                    created_at=ctx.clock(),
                )
            )
            for member1_id, member2_id in pairs
        ]
        state.current_round = round_number
        ctx.store.save_swiss_state(state)
        logger.info(
            f"Swiss {tournament.id}: round {round_number}/{state.total_rounds} paired, "
            f"{len(created)} matches, {len(unpaired)} unpaired"
        )
        return created

    # ========== State ==========

    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return tournament.is_completed or self.get_state(ctx, tournament).completed

    def matches_remaining(self, ctx: PluginContext, tournament: Tournament) -> int:
        if tournament.is_completed:
            return 0
        state = self.get_state(ctx, tournament)
        unplayed = sum(
            1 for match in ctx.store.list_matches(tournament.id) if not match.is_played
        )
        if state.completed:
            return unplayed
        per_round = len(ctx.store.list_participants(tournament.id)) // 2
        return unplayed + state.rounds_left * per_round

    def on_match_completed(
        self, ctx: PluginContext, event: MatchCompletedEvent
    ) -> StateChangeResult:
        """Close the round when its last result arrives.

        The last round completes the tournament; any earlier round triggers
        pairing of the next one.
        """
        tournament = event.tournament
        state = self.get_state(ctx, tournament)
        if state.completed or event.match.round_number != state.current_round:
            return StateChangeResult()
        round_matches = ctx.store.list_matches(tournament.id, round_number=state.current_round)
        if not round_complete(round_matches):
            return StateChangeResult()

        if state.current_round >= state.total_rounds:
            return self._finish(ctx, state)
        created = self.generate_next_round(ctx, tournament)
        if not created:
            logger.warning(
                f"Swiss {tournament.id}: finishing early after round {state.current_round}"
            )
            state.total_rounds = state.current_round
            return self._finish(ctx, state)
        return StateChangeResult(message=f"Round {state.current_round + 1} generated")

    def close_rounds(self, ctx: PluginContext, tournament: Tournament) -> None:
        """Stop at the current round; later rounds are never paired."""
        state = self.get_state(ctx, tournament)
        if state.completed:
            return
        state.total_rounds = state.current_round
        state.completed = True
        ctx.store.save_swiss_state(state)
        logger.info(f"Swiss {tournament.id}: closed after round {state.current_round}")

    def on_manual_completion(self, ctx: PluginContext, tournament: Tournament) -> None:
        self.close_rounds(ctx, tournament)

    def on_cancel(self, ctx: PluginContext, tournament: Tournament) -> LifecycleResult:
        self.close_rounds(ctx, tournament)
        return LifecycleResult(keep_matches=True)

    def _finish(self, ctx: PluginContext, state: SwissState) -> StateChangeResult:
        state.completed = True
        ctx.store.save_swiss_state(state)
        return StateChangeResult(
            should_mark_complete=True, message=f"All {state.total_rounds} rounds completed"
        )

    def on_match_rating_calculation(
        self, ctx: PluginContext, tournament: Tournament, match: Match
    ) -> None:
        ctx.ratings.rescore_match(tournament, match)

    # ========== Display ==========

    def enrich_tournament(self, ctx: PluginContext, tournament: Tournament) -> Dict[str, Any]:
        data = super().enrich_tournament(ctx, tournament)
        data["swiss"] = self.get_state(ctx, tournament).to_dict()
        data["standings"] = [s.to_dict() for s in self.standings(ctx, tournament)]
        return data

    def get_printable_view(self, ctx: PluginContext, tournament: Tournament) -> str:
        state = self.get_state(ctx, tournament)
        lines = [
            f"{tournament.name} (Swiss, round {state.current_round} of {state.total_rounds})",
            "",
        ]
        for round_number in range(1, state.current_round + 1):
            lines.append(f"Round {round_number}")
            for match in ctx.store.list_matches(tournament.id, round_number=round_number):
                result = f"{match.player1_sets}-{match.player2_sets}" if match.is_played else "vs"
                lines.append(
                    f"  [{match.id:>3}] {self.player_name(ctx, match.member1_id):<24} "
                    f"{result:^7} {self.player_name(ctx, match.member2_id)}"
                )
        lines.append("")
        lines.append("Standings")
        for index, standing in enumerate(self.standings(ctx, tournament), start=1):
            lines.append(
                f"  {index:>2}. {self.player_name(ctx, standing.member_id):<24} "
                f"{standing.points} pts"
            )
        return "\n".join(lines)

    # ========== Plugin requests ==========

    def handle_plugin_request(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        method: RequestMethod,
        resource: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """``POST next-round`` pairs the next round; ``GET standings`` ranks players."""
        if method == METHOD_POST and resource == "next-round":
            return [match.to_dict() for match in self.generate_next_round(ctx, tournament)]
        if method == METHOD_GET and resource == "standings":
            return [standing.to_dict() for standing in self.standings(ctx, tournament)]
        return super().handle_plugin_request(ctx, tournament, method, resource, payload)
