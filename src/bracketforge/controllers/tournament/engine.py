"""Tournament engine: the entry point used by routing layers and the console.

Every mutating operation runs inside one store transaction. Events for the
optional sink are delivered only after that transaction commits, and a
failure while notifying a parent tournament never rolls back the child
change that triggered it.
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
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from bracketforge.bracket import BracketService
from bracketforge.constants import (
    EVENT_MATCH_UPDATED,
    EVENT_TOURNAMENT_COMPLETED,
    EVENT_TOURNAMENT_CREATED,
)
from bracketforge.exceptions import TournamentStateException
from bracketforge.models import Player
from bracketforge.models.rating import PointExchangeRule, RatingHistory
from bracketforge.models.tournament import (
    LifecycleResult,
    MatchUpdateOutcome,
    ScoreInput,
    Tournament,
    TournamentSpec,
)
from bracketforge.plugins import PluginContext, PluginRegistry, TournamentPlugin, default_registry
from bracketforge.rating import RatingService
from bracketforge.store import InMemoryStore, TournamentStore
from bracketforge.tournament.rankings import RankingEntry, compute_rankings
from bracketforge.type_hints import EventSink, RequestMethod
from bracketforge.utils import setup_logger
from bracketforge.utils.dates import utcnow

from .event_service import TournamentEventService

logger = setup_logger(__name__)


class TournamentEngine:
    """Facade over the store, the plugins and the rating ledger."""

    def __init__(
        self,
        store: Optional[TournamentStore] = None,
        registry: Optional[PluginRegistry] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Persistence port, a fresh in-memory store by default
            registry: Format plugins, every built-in format by default
            rng: Random source for bracket draws
            clock: Returns the current naive UTC datetime
            event_sink: Called as ``sink(name, payload)`` after each commit
        """
        self.store = store if store is not None else InMemoryStore()
        self.registry = registry or default_registry()
        self.event_sink = event_sink
        self.ctx = PluginContext(
            store=self.store,
            registry=self.registry,
            ratings=RatingService(self.store, clock),
            bracket=BracketService(self.store),
            rng=rng or random.Random(),
            clock=clock,
        )
        self.events = TournamentEventService(self.ctx)

    @property
    def ratings(self) -> RatingService:
        return self.ctx.ratings

    # ========== Transactions and events ==========

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            with self.store.transaction():
                yield
        except BaseException:
            self.events.discard_events()
            raise
        self._flush_events()

    def _flush_events(self) -> None:
        for name, payload in self.events.drain_events():
            if self.event_sink is None:
                continue
            try:
                self.event_sink(name, payload)
            except Exception:
                logger.exception(f"Event sink failed for {name} {payload}")

    def _plugin_for(self, tournament_id: int) -> Tuple[Tournament, TournamentPlugin]:
        tournament = self.store.get_tournament(tournament_id)
        return tournament, self.registry.get(tournament.type)

    # ========== Players ==========

    def register_player(self, name: str, rating: Optional[int] = None) -> Player:
        with self._transaction():
            player = self.store.add_player(name, rating)
        logger.info(f"Registered player {player.id} '{name}' rated {rating}")
        return player

    def get_player(self, player_id: int) -> Player:
        return self.store.get_player(player_id)

    def list_players(self) -> List[Player]:
        return self.store.list_players()

    def get_player_rating(self, player_id: int) -> Optional[int]:
        return self.ratings.get_player_rating(player_id)

    def get_rating_history(self, player_id: int) -> List[RatingHistory]:
        return self.store.list_rating_history(member_id=player_id)

    # ========== Tournaments ==========

    def create_tournament(
        self,
        tournament_type: str,
        name: str,
        participant_ids: Iterable[int],
        config: Optional[Dict[str, Any]] = None,
    ) -> Tournament:
        """Create a tournament of any registered format.

        Raises:
            UnknownTournamentTypeException: If the format is not registered
            InvalidTournamentConfigException: If participants or config are invalid
        """
        plugin = self.registry.get(tournament_type)
        with self._transaction():
            tournament = plugin.create_tournament(
                self.ctx,
                TournamentSpec(name=name, participant_ids=list(participant_ids), config=config or {}),
            )
            self.events.emit(
                EVENT_TOURNAMENT_CREATED,
                {"tournamentId": tournament.id, "type": tournament.type},
            )
        return tournament

    def get_tournament(self, tournament_id: int) -> Tournament:
        return self.store.get_tournament(tournament_id)

    def list_tournaments(self, status: Optional[str] = None) -> List[Tournament]:
        return self.store.list_tournaments(status)

    def modify_tournament(
        self,
        tournament_id: int,
        name: Optional[str] = None,
        participant_ids: Optional[List[int]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Tournament:
        with self._transaction():
            tournament, plugin = self._plugin_for(tournament_id)
            return plugin.modify_tournament(self.ctx, tournament, name, participant_ids, config)

    # ========== Matches ==========

    def update_match(
        self,
        tournament_id: int,
        match_id: int,
        score: Union[ScoreInput, Dict[str, Any]],
    ) -> MatchUpdateOutcome:
        """Record a score and apply everything that follows from it.

        The match, its ratings and the owning tournament's completion are
        committed together. Parent tournaments are notified afterwards in a
        separate transaction; a failure there is logged and reported in
        ``propagation_error``.

        Args:
            tournament_id: Tournament owning the match
            match_id: Match id, bracket slot id for playoffs, or 0 to look the
                match up by the player ids in ``score``
            score: Score object or request payload

        Returns:
            The update outcome

        Raises:
            InvalidScoreException: If the score is invalid
            MatchNotFoundException: If the match does not exist
            MatchOwnershipException: If the match belongs to another tournament
            CompoundMatchUpdateException: If the tournament owns no matches
            TournamentStateException: If the tournament was cancelled
        """
        if isinstance(score, dict):
            score = ScoreInput.from_dict(score)

        with self._transaction():
            tournament, plugin = self._plugin_for(tournament_id)
            if tournament.cancelled:
                raise TournamentStateException(
                    f"Tournament {tournament_id} was cancelled; scores are frozen"
                )
            was_completed = tournament.is_completed
            update = plugin.update_match(self.ctx, tournament, match_id, score)
            plugin.on_match_rating_calculation(self.ctx, tournament, update.match)
            if was_completed:
                # Correction after completion: re-run bulk ratings in place
                plugin.on_tournament_completion_rating_calculation(self.ctx, tournament)
                self.events.record_post_ratings(tournament)
                state_change = None
            else:
                state_change = self.events.handle_match_completed(
                    tournament, update.match, update.bracket_match_id
                )
            self.events.emit(
                EVENT_MATCH_UPDATED,
                {"tournamentId": tournament.id, "matchId": update.match.id},
            )
            tournament = self.store.get_tournament(tournament_id)

        outcome = MatchUpdateOutcome(match=update.match, state_change=state_change)
        if not was_completed and tournament.is_completed:
            outcome.completed_tournament_ids.append(tournament.id)
            self._propagate(tournament, outcome)
        return outcome

    def _propagate(self, tournament: Tournament, outcome: MatchUpdateOutcome) -> None:
        if tournament.parent_id is None:
            return
        try:
            with self._transaction():
                completed = self.events.propagate_completion(tournament)
        except Exception as exc:
            logger.exception(
                f"Tournament {tournament.id} completed but notifying parent "
                f"{tournament.parent_id} failed"
            )
            outcome.propagation_error = str(exc)
            return
        outcome.completed_tournament_ids.extend(completed)

    # ========== Lifecycle ==========

    def complete_tournament(self, tournament_id: int) -> List[int]:
        """Complete a tournament by hand, rating it as if play had finished.

        Returns:
            Ids of every tournament completed, the given one first

        Raises:
            TournamentStateException: If the tournament is already completed
        """
        with self._transaction():
            tournament = self.store.get_tournament(tournament_id)
            if tournament.is_completed:
                raise TournamentStateException(f"Tournament {tournament_id} is already completed")
            self.registry.get(tournament.type).on_manual_completion(self.ctx, tournament)
            self.events.complete_tournament(tournament_id)
            tournament = self.store.get_tournament(tournament_id)
        outcome = MatchUpdateOutcome(match=None, completed_tournament_ids=[tournament_id])
        self._propagate(tournament, outcome)
        if outcome.propagation_error:
            logger.warning(f"Tournament {tournament_id}: {outcome.propagation_error}")
        return outcome.completed_tournament_ids

    def cancel_tournament(self, tournament_id: int) -> LifecycleResult:
        """Stop a tournament without rating it.

        Played matches stay for the record; child tournaments are cancelled too.

        Raises:
            TournamentStateException: If completed already or the format forbids it
        """
        with self._transaction():
            tournament = self.store.get_tournament(tournament_id)
            if tournament.is_completed:
                raise TournamentStateException(f"Tournament {tournament_id} is already completed")
            return self._cancel(tournament)

    def _cancel(self, tournament: Tournament) -> LifecycleResult:
        plugin = self.registry.get(tournament.type)
        if not plugin.can_cancel(self.ctx, tournament):
            raise TournamentStateException(f"Tournament {tournament.id} cannot be cancelled")
        for child in self.store.list_children(tournament.id):
            if not child.is_completed:
                self._cancel(child)
        result = plugin.on_cancel(self.ctx, tournament)
        if not result.keep_matches:
            for match in self.store.list_matches(tournament.id):
                if not match.is_played:
                    self.store.delete_match(match.id)
        tournament.cancelled = True
        tournament.mark_completed(self.ctx.clock())
        self.store.update_tournament(tournament)
        self.events.emit(
            EVENT_TOURNAMENT_COMPLETED,
            {"tournamentId": tournament.id, "parentId": tournament.parent_id, "cancelled": True},
        )
        logger.info(f"Tournament {tournament.id} cancelled")
        return result

    def delete_tournament(self, tournament_id: int) -> None:
        """Delete a tournament, its children and the ratings it produced.

        Raises:
            TournamentStateException: If the format forbids deletion
        """
        with self._transaction():
            tournament, plugin = self._plugin_for(tournament_id)
            if not plugin.can_delete(self.ctx, tournament):
                raise TournamentStateException(
                    f"Cannot delete tournament {tournament_id} with played matches. "
                    f"Use cancel instead."
                )
            self._delete(tournament)

    def _delete(self, tournament: Tournament) -> None:
        for child in self.store.list_children(tournament.id):
            self._delete(child)
        plugin = self.registry.get(tournament.type)
        plugin.on_delete(self.ctx, tournament)
        self.ratings.delete_tournament_history(tournament.id)
        self.store.delete_tournament(tournament.id)
        logger.info(f"Tournament {tournament.id} deleted")

    # ========== Plugin requests ==========

    def handle_plugin_request(
        self,
        tournament_id: int,
        method: RequestMethod,
        resource: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        with self._transaction():
            tournament, plugin = self._plugin_for(tournament_id)
            return plugin.handle_plugin_request(self.ctx, tournament, method, resource, payload)

    # ========== Queries ==========

    def is_complete(self, tournament_id: int) -> bool:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.is_complete(self.ctx, tournament)

    def matches_remaining(self, tournament_id: int) -> int:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.matches_remaining(self.ctx, tournament)

    def can_delete(self, tournament_id: int) -> bool:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.can_delete(self.ctx, tournament)

    def can_cancel(self, tournament_id: int) -> bool:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.can_cancel(self.ctx, tournament)

    def can_modify(self, tournament_id: int) -> bool:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.can_modify(self.ctx, tournament)

    def enrich_tournament(self, tournament_id: int) -> Dict[str, Any]:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.enrich_tournament(self.ctx, tournament)

    def get_schedule(self, tournament_id: int) -> List[Dict[str, Any]]:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.get_schedule(self.ctx, tournament)

    def get_printable_view(self, tournament_id: int) -> str:
        tournament, plugin = self._plugin_for(tournament_id)
        return plugin.get_printable_view(self.ctx, tournament)

    def get_rankings(self) -> List[RankingEntry]:
        """Rankings over every match of every completed tournament."""
        matches = []
        for tournament in self.store.list_tournaments():
            if tournament.is_completed:
                matches.extend(self.store.list_matches(tournament.id))
        return compute_rankings(matches)

    # ========== Ratings ==========

    def add_point_exchange_rules(
        self,
        rows: Iterable[Tuple[int, int, int, int]],
        effective_from: Union[date, str],
    ) -> List[PointExchangeRule]:
        with self._transaction():
            return self.ratings.add_rules(rows, effective_from)

    def recalculate_all_ratings(self) -> int:
        """Rebuild every rating from scratch.

        The ledger is reset to starting ratings, then each tournament is
        replayed in creation order from its entry snapshots.

        Returns:
            Number of tournaments replayed
        """
        with self._transaction():
            self.ratings.reset_ledger()
            replayed = 0
            for tournament in self.store.list_tournaments():
                plugin = self.registry.get(tournament.type)
                plugin.replay_ratings(self.ctx, tournament)
                if tournament.is_completed:
                    self.events.record_post_ratings(tournament)
                replayed += 1
        logger.info(f"Recalculated ratings from {replayed} tournaments")
        return replayed
