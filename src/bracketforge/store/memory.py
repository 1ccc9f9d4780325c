"""In-memory transactional store."""

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

import copy
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from bracketforge.exceptions import EntityNotFoundException, TransactionException
from bracketforge.models import Player
from bracketforge.models.rating import PointExchangeRule, RatingHistory
from bracketforge.models.tournament import (
    BracketMatch,
    Match,
    Participant,
    SwissState,
    Tournament,
)
from bracketforge.store.base import TournamentStore
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)

TABLES = (
    "players",
    "tournaments",
    "participants",
    "matches",
    "bracket_matches",
    "swiss_states",
    "rating_history",
    "point_exchange_rules",
)


class InMemoryStore(TournamentStore):
    """Dictionary-backed store with snapshot rollback.

    Every read returns a deep copy and every write stores one, so callers
    cannot mutate stored state by accident.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[Any, Any]] = {name: {} for name in TABLES}
        self._next_ids: Dict[str, int] = {name: 1 for name in TABLES}
        self._depth = 0
        self._snapshot: Optional[Tuple[Dict[str, Dict[Any, Any]], Dict[str, int]]] = None

    # ========== Transactions ==========

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth == 0:
            self._snapshot = (copy.deepcopy(self._tables), dict(self._next_ids))
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._snapshot = None
            self._on_commit()

    def _rollback(self) -> None:
        if self._snapshot is None:
            raise TransactionException("No snapshot to roll back to")
        self._tables, self._next_ids = self._snapshot
        self._snapshot = None
        logger.debug("Transaction rolled back")

    def _on_commit(self) -> None:
        """Hook for subclasses that persist committed state."""

    # ========== Internal helpers ==========

    def _insert(self, table: str, entity: Any) -> Any:
        entity = copy.deepcopy(entity)
        entity.id = self._next_ids[table]
        self._next_ids[table] += 1
        self._tables[table][entity.id] = entity
        return copy.deepcopy(entity)

    def _find(self, table: str, key: Any) -> Any:
        entity = self._tables[table].get(key)
        return copy.deepcopy(entity) if entity is not None else None

    def _replace(self, table: str, key: Any, entity: Any) -> Any:
        if key not in self._tables[table]:
            raise EntityNotFoundException(f"{table} entry {key} not found")
        self._tables[table][key] = copy.deepcopy(entity)
        return copy.deepcopy(entity)

    def _select(self, table: str, **filters: Any) -> List[Any]:
        rows = [
            row
            for row in self._tables[table].values()
            if all(getattr(row, name) == value for name, value in filters.items())
        ]
        return copy.deepcopy(rows)

    # ========== Players ==========

    def add_player(self, name: str, rating: Optional[int] = None) -> Player:
        return self._insert("players", Player(id=0, name=name, rating=rating))

    def find_player(self, player_id: int) -> Optional[Player]:
        return self._find("players", player_id)

    def update_player(self, player: Player) -> Player:
        return self._replace("players", player.id, player)

    def list_players(self) -> List[Player]:
        return sorted(self._select("players"), key=lambda p: p.id)

    # ========== Tournaments ==========

    def create_tournament(self, tournament: Tournament) -> Tournament:
        return self._insert("tournaments", tournament)

    def find_tournament(self, tournament_id: int) -> Optional[Tournament]:
        return self._find("tournaments", tournament_id)

    def update_tournament(self, tournament: Tournament) -> Tournament:
        return self._replace("tournaments", tournament.id, tournament)

    def delete_tournament(self, tournament_id: int) -> None:
        if tournament_id not in self._tables["tournaments"]:
            raise EntityNotFoundException(f"Tournament {tournament_id} not found")
        self.delete_participants(tournament_id)
        self.delete_matches(tournament_id)
        self.delete_bracket_matches(tournament_id)
        self._tables["swiss_states"].pop(tournament_id, None)
        del self._tables["tournaments"][tournament_id]

    def list_tournaments(self, status: Optional[str] = None) -> List[Tournament]:
        rows = self._select("tournaments")
        if status is not None:
            rows = [row for row in rows if row.status == status]
        return sorted(rows, key=lambda t: (t.created_at, t.id))

    def list_children(self, parent_id: int) -> List[Tournament]:
        return sorted(self._select("tournaments", parent_id=parent_id), key=lambda t: t.id)

    # ========== Participants ==========

    def add_participants(self, participants: Iterable[Participant]) -> None:
        for participant in participants:
            key = (participant.tournament_id, participant.member_id)
            if key in self._tables["participants"]:
                raise TransactionException(
                    f"Player {participant.member_id} already entered in "
                    f"tournament {participant.tournament_id}"
                )
            self._tables["participants"][key] = copy.deepcopy(participant)

    def list_participants(self, tournament_id: int) -> List[Participant]:
        return self._select("participants", tournament_id=tournament_id)

    def update_participant(self, participant: Participant) -> Participant:
        key = (participant.tournament_id, participant.member_id)
        return self._replace("participants", key, participant)

    def delete_participants(self, tournament_id: int) -> None:
        table = self._tables["participants"]
        for key in [k for k in table if k[0] == tournament_id]:
            del table[key]

    # ========== Matches ==========

    def create_match(self, match: Match) -> Match:
        return self._insert("matches", match)

    def find_match(self, match_id: int) -> Optional[Match]:
        return self._find("matches", match_id)

    def update_match(self, match: Match) -> Match:
        return self._replace("matches", match.id, match)

    def delete_match(self, match_id: int) -> None:
        if self._tables["matches"].pop(match_id, None) is None:
            raise EntityNotFoundException(f"Match {match_id} not found")

    def delete_matches(self, tournament_id: int) -> None:
        table = self._tables["matches"]
        for key in [k for k, m in table.items() if m.tournament_id == tournament_id]:
            del table[key]

    def list_matches(
        self, tournament_id: int, round_number: Optional[int] = None
    ) -> List[Match]:
        rows = self._select("matches", tournament_id=tournament_id)
        if round_number is not None:
            rows = [row for row in rows if row.round_number == round_number]
        return sorted(rows, key=lambda m: m.id)

    # ========== Bracket ==========

    def create_bracket_match(self, bracket_match: BracketMatch) -> BracketMatch:
        return self._insert("bracket_matches", bracket_match)

    def find_bracket_match(self, bracket_match_id: int) -> Optional[BracketMatch]:
        return self._find("bracket_matches", bracket_match_id)

    def update_bracket_match(self, bracket_match: BracketMatch) -> BracketMatch:
        return self._replace("bracket_matches", bracket_match.id, bracket_match)

    def list_bracket_matches(self, tournament_id: int) -> List[BracketMatch]:
        rows = self._select("bracket_matches", tournament_id=tournament_id)
        return sorted(rows, key=lambda b: (-b.round, b.position))

    def delete_bracket_matches(self, tournament_id: int) -> None:
        table = self._tables["bracket_matches"]
        for key in [k for k, b in table.items() if b.tournament_id == tournament_id]:
            del table[key]

    # ========== Swiss ==========

    def save_swiss_state(self, state: SwissState) -> SwissState:
        self._tables["swiss_states"][state.tournament_id] = copy.deepcopy(state)
        return copy.deepcopy(state)

    def find_swiss_state(self, tournament_id: int) -> Optional[SwissState]:
        return self._find("swiss_states", tournament_id)

    # ========== Rating History ==========

    def add_rating_history(self, record: RatingHistory) -> RatingHistory:
        return self._insert("rating_history", record)

    def list_rating_history(
        self,
        member_id: Optional[int] = None,
        tournament_id: Optional[int] = None,
        match_id: Optional[int] = None,
    ) -> List[RatingHistory]:
        filters = {
            name: value
            for name, value in (
                ("member_id", member_id),
                ("tournament_id", tournament_id),
                ("match_id", match_id),
            )
            if value is not None
        }
        return sorted(self._select("rating_history", **filters), key=lambda r: r.id)

    def delete_rating_history(self, record_ids: Iterable[int]) -> None:
        table = self._tables["rating_history"]
        for record_id in record_ids:
            table.pop(record_id, None)

    # ========== Point Exchange Rules ==========

    def add_point_exchange_rule(self, rule: PointExchangeRule) -> PointExchangeRule:
        return self._insert("point_exchange_rules", rule)

    def list_point_exchange_rules(self) -> List[PointExchangeRule]:
        return sorted(self._select("point_exchange_rules"), key=lambda r: r.id)

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize every table to plain data."""
        return {
            "next_ids": dict(self._next_ids),
            "tables": {
                name: [row.to_dict() for row in self._tables[name].values()]
                for name in TABLES
            },
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace all state with previously serialized data."""
        loaders = {
            "players": Player.from_dict,
            "tournaments": Tournament.from_dict,
            "participants": Participant.from_dict,
            "matches": Match.from_dict,
            "bracket_matches": BracketMatch.from_dict,
            "swiss_states": SwissState.from_dict,
            "rating_history": RatingHistory.from_dict,
            "point_exchange_rules": PointExchangeRule.from_dict,
        }
        tables: Dict[str, Dict[Any, Any]] = {name: {} for name in TABLES}
        for name, rows in data.get("tables", {}).items():
            for row in rows:
                entity = loaders[name](row)
                tables[name][self._key_for(name, entity)] = entity
        self._tables = tables
        self._next_ids = {name: 1 for name in TABLES}
        self._next_ids.update(data.get("next_ids", {}))

    @staticmethod
    def _key_for(table: str, entity: Any) -> Any:
        if table == "participants":
            return (entity.tournament_id, entity.member_id)
        if table == "swiss_states":
            return entity.tournament_id
        return entity.id
