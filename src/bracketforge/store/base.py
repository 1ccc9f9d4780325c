"""Persistence port used by the tournament engine.

The engine never holds live object graphs between calls: everything is
addressed by identifier and read back through this interface. Reads return
copies, so a change is only stored once the matching update_* call is made.
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

from abc import ABC, abstractmethod
from typing import ContextManager, Iterable, List, Optional

from bracketforge.exceptions import EntityNotFoundException, TournamentNotFoundException
from bracketforge.models import Player
from bracketforge.models.rating import PointExchangeRule, RatingHistory
from bracketforge.models.tournament import (
    BracketMatch,
    Match,
    Participant,
    SwissState,
    Tournament,
)


class TournamentStore(ABC):
    """Transactional store for tournaments and everything they own."""

    # ========== Transactions ==========

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Group writes so they are applied atomically.

        Transactions nest; only the outermost one commits. Any exception
        leaving the outermost block rolls every write back.
        """

    # ========== Players ==========

    @abstractmethod
    def add_player(self, name: str, rating: Optional[int] = None) -> Player: ...

    @abstractmethod
    def find_player(self, player_id: int) -> Optional[Player]: ...

    @abstractmethod
    def update_player(self, player: Player) -> Player: ...

    @abstractmethod
    def list_players(self) -> List[Player]: ...

    # ========== Tournaments ==========

    @abstractmethod
    def create_tournament(self, tournament: Tournament) -> Tournament: ...

    @abstractmethod
    def find_tournament(self, tournament_id: int) -> Optional[Tournament]: ...

    @abstractmethod
    def update_tournament(self, tournament: Tournament) -> Tournament: ...

    @abstractmethod
    def delete_tournament(self, tournament_id: int) -> None:
        """Delete a tournament with its participants, matches and bracket slots."""

    @abstractmethod
    def list_tournaments(self, status: Optional[str] = None) -> List[Tournament]:
        """All tournaments ordered by creation time, optionally filtered by status."""

    @abstractmethod
    def list_children(self, parent_id: int) -> List[Tournament]:
        """Child tournaments of a compound tournament ordered by id."""

    # ========== Participants ==========

    @abstractmethod
    def add_participants(self, participants: Iterable[Participant]) -> None: ...

    @abstractmethod
    def list_participants(self, tournament_id: int) -> List[Participant]: ...

    @abstractmethod
    def update_participant(self, participant: Participant) -> Participant: ...

    @abstractmethod
    def delete_participants(self, tournament_id: int) -> None: ...

    # ========== Matches ==========

    @abstractmethod
    def create_match(self, match: Match) -> Match: ...

    @abstractmethod
    def find_match(self, match_id: int) -> Optional[Match]: ...

    @abstractmethod
    def update_match(self, match: Match) -> Match: ...

    @abstractmethod
    def delete_match(self, match_id: int) -> None: ...

    @abstractmethod
    def delete_matches(self, tournament_id: int) -> None: ...

    @abstractmethod
    def list_matches(
        self, tournament_id: int, round_number: Optional[int] = None
    ) -> List[Match]: ...

    # ========== Bracket ==========

    @abstractmethod
    def create_bracket_match(self, bracket_match: BracketMatch) -> BracketMatch: ...

    @abstractmethod
    def find_bracket_match(self, bracket_match_id: int) -> Optional[BracketMatch]: ...

    @abstractmethod
    def update_bracket_match(self, bracket_match: BracketMatch) -> BracketMatch: ...

    @abstractmethod
    def list_bracket_matches(self, tournament_id: int) -> List[BracketMatch]:
        """Bracket slots ordered by round descending (first round first), then position."""

    @abstractmethod
    def delete_bracket_matches(self, tournament_id: int) -> None: ...

    # ========== Swiss ==========

    @abstractmethod
    def save_swiss_state(self, state: SwissState) -> SwissState: ...

    @abstractmethod
    def find_swiss_state(self, tournament_id: int) -> Optional[SwissState]: ...

    # ========== Rating History ==========

    @abstractmethod
    def add_rating_history(self, record: RatingHistory) -> RatingHistory: ...

    @abstractmethod
    def list_rating_history(
        self,
        member_id: Optional[int] = None,
        tournament_id: Optional[int] = None,
        match_id: Optional[int] = None,
    ) -> List[RatingHistory]:
        """History records matching every given filter, oldest first."""

    @abstractmethod
    def delete_rating_history(self, record_ids: Iterable[int]) -> None: ...

    # ========== Point Exchange Rules ==========

    @abstractmethod
    def add_point_exchange_rule(self, rule: PointExchangeRule) -> PointExchangeRule: ...

    @abstractmethod
    def list_point_exchange_rules(self) -> List[PointExchangeRule]: ...

    # ========== Lookups ==========

    def get_player(self, player_id: int) -> Player:
        player = self.find_player(player_id)
        if player is None:
            raise EntityNotFoundException(f"Player {player_id} not found")
        return player

    def get_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.find_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFoundException(f"Tournament {tournament_id} not found")
        return tournament

    def find_participant(
        self, tournament_id: int, member_id: int
    ) -> Optional[Participant]:
        for participant in self.list_participants(tournament_id):
            if participant.member_id == member_id:
                return participant
        return None
