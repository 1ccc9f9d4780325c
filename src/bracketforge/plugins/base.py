"""Format plugin interface.

Every tournament format implements ``TournamentPlugin``. Plugins are
stateless: everything they need arrives through the ``PluginContext`` passed
as the first argument of each operation, and all durable state lives in the
store.
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
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from bracketforge.exceptions import (
    ByeMatchException,
    InvalidTournamentConfigException,
    MatchNotFoundException,
    MatchOwnershipException,
    TournamentStateException,
    UnsupportedPluginRequestException,
)
from bracketforge.models.tournament import (
    LifecycleResult,
    Match,
    MatchCompletedEvent,
    MatchUpdateResult,
    Participant,
    ScoreInput,
    StateChangeResult,
    Tournament,
    TournamentSpec,
)
from bracketforge.store import TournamentStore
from bracketforge.type_hints import RequestMethod
from bracketforge.utils import setup_logger
from bracketforge.utils.validation import require_valid_score

if TYPE_CHECKING:
    from bracketforge.bracket import BracketService
    from bracketforge.plugins.registry import PluginRegistry
    from bracketforge.rating import RatingService

logger = setup_logger(__name__)


@dataclass
class PluginContext:
    """
    Collaborators shared by every plugin call.

    Attributes
    ----------
    store : TournamentStore
        Persistence port.
    registry : PluginRegistry
        Plugin lookup, used by compound formats to drive their children.
    ratings : RatingService
        Rating ledger.
    bracket : BracketService
        Bracket structure service.
    rng : random.Random
        Random source for draws.
    clock : callable
        Returns the current naive UTC datetime.
    """

    store: TournamentStore
    registry: "PluginRegistry"
    ratings: "RatingService"
    bracket: "BracketService"
    rng: random.Random
    clock: Callable[[], datetime]


class TournamentPlugin(ABC):
    """Base class of all tournament formats."""

    tournament_type: str = ""
    display_name: str = ""
    is_basic: bool = True
    #: Formats this format may create as children
    child_types: Tuple[str, ...] = ()

    # ========== Creation ==========

    def create_tournament(self, ctx: PluginContext, spec: TournamentSpec) -> Tournament:
        """Create the tournament, its participants and its initial structure.

        Raises:
            InvalidTournamentConfigException: If the participants or config are invalid
            EntityNotFoundException: If a participant is not a registered player
        """
        tournament = self.create_record(ctx, spec)
        self.build_structure(ctx, tournament, list(spec.participant_ids))
        logger.info(
            f"Created {self.tournament_type} tournament {tournament.id} "
            f"'{tournament.name}' with {len(spec.participant_ids)} players"
        )
        return ctx.store.get_tournament(tournament.id)

    def create_record(self, ctx: PluginContext, spec: TournamentSpec) -> Tournament:
        """Store the tournament row and snapshot every participant's rating."""
        participant_ids = list(spec.participant_ids)
        if len(participant_ids) != len(set(participant_ids)):
            raise InvalidTournamentConfigException("A player is listed more than once")
        self.validate_participants(participant_ids)
        if spec.parent_id is not None:
            self._check_parent(ctx, spec.parent_id)

        players = [ctx.store.get_player(member_id) for member_id in participant_ids]
        tournament = ctx.store.create_tournament(
            Tournament(
                name=spec.name,
                type=self.tournament_type,
                parent_id=spec.parent_id,
                group_number=spec.group_number,
                config=dict(spec.config or {}),
                created_at=ctx.clock(),
            )
        )
        ctx.store.add_participants(
            Participant(
                tournament_id=tournament.id,
                member_id=player.id,
                rating_at_entry=player.rating,
            )
            for player in players
        )
        return tournament

    def _check_parent(self, ctx: PluginContext, parent_id: int) -> None:
        parent = ctx.store.get_tournament(parent_id)
        parent_plugin = ctx.registry.get(parent.type)
        if parent_plugin.is_basic or self.tournament_type not in parent_plugin.child_types:
            raise InvalidTournamentConfigException(
                f"A {parent.type} tournament cannot own a {self.tournament_type} child"
            )

    def validate_participants(self, participant_ids: List[int]) -> None:
        if len(participant_ids) < 2:
            raise InvalidTournamentConfigException(
                f"{self.tournament_type} needs at least 2 players, got {len(participant_ids)}"
            )

    @abstractmethod
    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        """Create the format's matches, bracket slots or child tournaments."""

    # ========== State ==========

    @abstractmethod
    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool: ...

    @abstractmethod
    def matches_remaining(self, ctx: PluginContext, tournament: Tournament) -> int: ...

    def has_played_matches(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return any(match.is_played for match in ctx.store.list_matches(tournament.id))

    def can_delete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return not self.has_played_matches(ctx, tournament)

    def can_cancel(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return True

    def can_modify(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return not tournament.is_completed and not self.has_played_matches(ctx, tournament)

    def modify_tournament(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        name: Optional[str] = None,
        participant_ids: Optional[List[int]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Tournament:
        """Rename or re-enter a tournament before play starts.

        Replacing participants or config rebuilds the structure from scratch
        with fresh rating snapshots.

        Raises:
            TournamentStateException: If a match has already been played
        """
        if not self.can_modify(ctx, tournament):
            raise TournamentStateException(
                f"Tournament {tournament.id} cannot be modified - matches have already been played"
            )
        if name:
            tournament.name = name
        if config is not None:
            tournament.config = dict(config)
        ctx.store.update_tournament(tournament)

        if participant_ids is not None or config is not None:
            if participant_ids is None:
                participant_ids = [p.member_id for p in ctx.store.list_participants(tournament.id)]
            if len(participant_ids) != len(set(participant_ids)):
                raise InvalidTournamentConfigException("A player is listed more than once")
            self.validate_participants(participant_ids)
            ctx.store.delete_matches(tournament.id)
            ctx.store.delete_bracket_matches(tournament.id)
            ctx.store.delete_participants(tournament.id)
            ctx.store.add_participants(
                Participant(
                    tournament_id=tournament.id,
                    member_id=member_id,
                    rating_at_entry=ctx.store.get_player(member_id).rating,
                )
                for member_id in participant_ids
            )
            self.build_structure(ctx, tournament, participant_ids)
        logger.info(f"Modified tournament {tournament.id}")
        return ctx.store.get_tournament(tournament.id)

    # ========== Matches ==========

    def resolve_match_id(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: Optional[ScoreInput] = None,
    ) -> Match:
        """Map an externally visible match identifier to a Match row.

        Raises:
            MatchNotFoundException: If there is no such match
            MatchOwnershipException: If the match belongs to another tournament
        """
        match = ctx.store.find_match(match_id)
        if match is None:
            raise MatchNotFoundException(f"Match not found: {match_id}")
        if match.tournament_id != tournament.id:
            raise MatchOwnershipException(
                f"Match {match_id} does not belong to this tournament ({tournament.id})"
            )
        return match

    def update_match(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: ScoreInput,
    ) -> MatchUpdateResult:
        """Validate and record a score.

        Raises:
            InvalidScoreException: If the score is invalid
            ByeMatchException: If the match is a BYE
        """
        score = require_valid_score(score)
        match = self.resolve_match_id(ctx, tournament, match_id, score)
        match = self.record_score(ctx, match, score)
        return MatchUpdateResult(match=match, bracket_match_id=match.bracket_match_id)

    def record_score(self, ctx: PluginContext, match: Match, score: ScoreInput) -> Match:
        if match.is_bye:
            raise ByeMatchException(f"Match {match.id} is a BYE and cannot be scored")
        match.apply_score(score)
        match.updated_at = ctx.clock()
        logger.debug(
            f"Match {match.id}: {match.member1_id} {match.player1_sets}-"
            f"{match.player2_sets} {match.member2_id}, winner {match.winner_id}"
        )
        return ctx.store.update_match(match)

    # ========== Events ==========

    def on_match_completed(
        self, ctx: PluginContext, event: MatchCompletedEvent
    ) -> StateChangeResult:
        return StateChangeResult(
            should_mark_complete=self.is_complete(ctx, event.tournament)
        )

    def on_child_tournament_completed(
        self, ctx: PluginContext, parent: Tournament, child: Tournament
    ) -> StateChangeResult:
        return StateChangeResult()

    def on_cancel(self, ctx: PluginContext, tournament: Tournament) -> LifecycleResult:
        return LifecycleResult(keep_matches=True)

    def on_delete(self, ctx: PluginContext, tournament: Tournament) -> LifecycleResult:
        return LifecycleResult(keep_matches=False)

    def on_manual_completion(self, ctx: PluginContext, tournament: Tournament) -> None:
        """Close format state before a tournament is completed by hand."""

    # ========== Ratings ==========

    def on_match_rating_calculation(
        self, ctx: PluginContext, tournament: Tournament, match: Match
    ) -> None:
        """Rate a single match. Formats rated in bulk leave this empty."""

    def on_tournament_completion_rating_calculation(
        self, ctx: PluginContext, tournament: Tournament
    ) -> None:
        """Rate the whole tournament. Formats rated per match leave this empty."""

    def replay_ratings(self, ctx: PluginContext, tournament: Tournament) -> None:
        """Re-apply this tournament's ratings after the ledger was reset.

        Played matches are replayed even for cancelled tournaments, since
        per-match formats rated them while the tournament was running.
        """
        for match in ctx.store.list_matches(tournament.id):
            if match.is_played and not match.is_bye:
                self.on_match_rating_calculation(ctx, tournament, match)
        if tournament.is_completed and not tournament.cancelled:
            self.on_tournament_completion_rating_calculation(ctx, tournament)

    # ========== Display ==========

    def participant_rows(self, ctx: PluginContext, tournament: Tournament) -> List[Dict[str, Any]]:
        rows = []
        for participant in ctx.store.list_participants(tournament.id):
            player = ctx.store.find_player(participant.member_id)
            rows.append(
                {
                    "memberId": participant.member_id,
                    "name": player.name if player else f"#{participant.member_id}",
                    "ratingAtEntry": participant.rating_at_entry,
                    "postRating": ctx.ratings.get_post_tournament_rating(
                        tournament.id, participant.member_id
                    ),
                }
            )
        return rows

    def enrich_tournament(self, ctx: PluginContext, tournament: Tournament) -> Dict[str, Any]:
        """Tournament data with participants and progress for display."""
        data = tournament.to_dict()
        data["participants"] = self.participant_rows(ctx, tournament)
        data["isComplete"] = self.is_complete(ctx, tournament)
        data["matchesRemaining"] = self.matches_remaining(ctx, tournament)
        return data

    def player_name(self, ctx: PluginContext, member_id: Optional[int]) -> str:
        if not member_id:
            return "BYE"
        player = ctx.store.find_player(member_id)
        return player.name if player else f"#{member_id}"

    def get_schedule(self, ctx: PluginContext, tournament: Tournament) -> List[Dict[str, Any]]:
        """Matches in play order with player names."""
        schedule = []
        for match in ctx.store.list_matches(tournament.id):
            entry = match.to_dict()
            entry["player1"] = self.player_name(ctx, match.member1_id)
            entry["player2"] = self.player_name(ctx, match.member2_id)
            entry["played"] = match.is_played
            schedule.append(entry)
        return schedule

    def get_printable_view(self, ctx: PluginContext, tournament: Tournament) -> str:
        """Plain text summary suitable for printing."""
        lines = [f"{tournament.name} ({self.display_name or tournament.type})", ""]
        for entry in self.get_schedule(ctx, tournament):
            result = (
                f"{entry['player1_sets']}-{entry['player2_sets']}"
                if entry["played"]
                else "vs"
            )
            lines.append(f"  {entry['player1']:<24} {result:^7} {entry['player2']}")
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
        """Format-specific operations outside the common contract.

        Raises:
            UnsupportedPluginRequestException: For any request the format does not know
        """
        raise UnsupportedPluginRequestException(
            f"Unknown resource for {self.tournament_type}: {method} {resource}"
        )
