"""Completion and parent propagation for tournaments.

This module reacts to decided matches and completed child tournaments: it
asks the owning plugin what the event means, marks tournaments completed,
runs completion ratings and walks up the parent chain. Events for the
external sink are queued here and delivered by the engine after commit.
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

from typing import Any, Dict, List, Optional, Tuple

from bracketforge.constants import (
    EVENT_CACHE_INVALIDATED,
    EVENT_CHILD_TOURNAMENT_COMPLETED,
    EVENT_TOURNAMENT_COMPLETED,
    MAX_PARENT_DEPTH,
)
from bracketforge.models.tournament import (
    Match,
    MatchCompletedEvent,
    StateChangeResult,
    Tournament,
)
from bracketforge.plugins import PluginContext
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)


class TournamentEventService:
    """Routes state-change notifications to plugins.

    This class is responsible for:
    - Asking a plugin whether a decided match completes its tournament
    - Marking tournaments completed exactly once and rating them
    - Notifying parent tournaments, bounded by ``MAX_PARENT_DEPTH``
    - Queueing events for the external sink
    """

    def __init__(self, ctx: PluginContext) -> None:
        self.ctx = ctx
        self.pending_events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, name: str, payload: Dict[str, Any]) -> None:
        self.pending_events.append((name, payload))

    def drain_events(self) -> List[Tuple[str, Dict[str, Any]]]:
        events, self.pending_events = self.pending_events, []
        return events

    def discard_events(self) -> None:
        self.pending_events = []

    # ========== Match events ==========

    def handle_match_completed(
        self,
        tournament: Tournament,
        match: Match,
        bracket_match_id: Optional[int] = None,
    ) -> StateChangeResult:
        """Let the plugin react to a decided match and complete the tournament if asked.

        Args:
            tournament: Tournament owning the match
            match: The scored match
            bracket_match_id: Bracket slot of the match, if any

        Returns:
            The plugin's state change
        """
        plugin = self.ctx.registry.get(tournament.type)
        event = MatchCompletedEvent(
            tournament=tournament,
            match=match,
            winner_id=match.winner_id,
            bracket_match_id=bracket_match_id,
        )
        result = plugin.on_match_completed(self.ctx, event)
        if result.should_mark_complete:
            self.complete_tournament(tournament.id)
        return result

    # ========== Completion ==========

    def complete_tournament(self, tournament_id: int) -> bool:
        """Mark a tournament completed and run its completion rating.

        Returns:
            True if the tournament changed state, False if it was already completed
        """
        tournament = self.ctx.store.get_tournament(tournament_id)
        if not tournament.mark_completed(self.ctx.clock()):
            logger.debug(f"Tournament {tournament_id} already completed")
            return False
        self.ctx.store.update_tournament(tournament)

        plugin = self.ctx.registry.get(tournament.type)
        plugin.on_tournament_completion_rating_calculation(self.ctx, tournament)
        self.record_post_ratings(tournament)

        logger.info(f"Tournament {tournament.id} '{tournament.name}' completed")
        self.emit(
            EVENT_TOURNAMENT_COMPLETED,
            {"tournamentId": tournament.id, "parentId": tournament.parent_id},
        )
        self.emit(EVENT_CACHE_INVALIDATED, {"tournamentId": tournament.id})
        return True

    def record_post_ratings(self, tournament: Tournament) -> None:
        for participant in self.ctx.store.list_participants(tournament.id):
            participant.post_rating = self.ctx.ratings.get_post_tournament_rating(
                tournament.id, participant.member_id
            )
            self.ctx.store.update_participant(participant)

    def propagate_completion(self, child: Tournament, depth: int = 0) -> List[int]:
        """Notify the parent chain that ``child`` completed.

        Args:
            child: A tournament that just completed
            depth: Current nesting level

        Returns:
            Ids of ancestors completed as a result
        """
        if child.parent_id is None:
            return []
        if depth >= MAX_PARENT_DEPTH:
            logger.warning(
                f"Tournament {child.id}: parent chain deeper than {MAX_PARENT_DEPTH}; "
                f"propagation stopped"
            )
            return []

        parent = self.ctx.store.get_tournament(child.parent_id)
        plugin = self.ctx.registry.get(parent.type)
        result = plugin.on_child_tournament_completed(self.ctx, parent, child)
        self.emit(
            EVENT_CHILD_TOURNAMENT_COMPLETED,
            {
                "tournamentId": parent.id,
                "childTournamentId": child.id,
                "createdTournamentId": result.created_tournament_id,
            },
        )
        if result.message:
            logger.info(f"Tournament {parent.id}: {result.message}")

        completed: List[int] = []
        if result.should_mark_complete and self.complete_tournament(parent.id):
            completed.append(parent.id)
            parent = self.ctx.store.get_tournament(parent.id)
            completed.extend(self.propagate_completion(parent, depth + 1))
        return completed
