"""Store-backed rating service.

Applies rating changes to players and keeps the rating history ledger.
A player's current rating always equals their starting rating plus the sum
of ``rating_change`` over their history records, so deleting a record and
reverting its change restores the previous state exactly. This is what makes
re-scoring a match idempotent.
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

from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from bracketforge.constants import (
    MIN_RATING,
    REASON_MATCH_COMPLETED,
    REASON_PLAYOFF_MATCH_COMPLETED,
    REASON_TOURNAMENT_COMPLETED,
    TYPE_PLAYOFF,
)
from bracketforge.models.rating import PointExchangeRule, RatingHistory
from bracketforge.models.tournament import Match, Tournament
from bracketforge.rating.calculator import MatchOutcome, multi_pass_recompute
from bracketforge.rating.point_exchange import PointExchangeTable, default_table
from bracketforge.store import TournamentStore
from bracketforge.utils import setup_logger
from bracketforge.utils.dates import parse_date, utcnow

logger = setup_logger(__name__)


def rated_results(
    matches: Iterable[Match], member_id: int, ratings: Dict[int, Optional[int]]
) -> List[MatchOutcome]:
    """A player's rateable results in play order.

    BYE, forfeited and unplayed matches are not rated.
    """
    results = []
    for match in sorted(matches, key=lambda m: m.id or 0):
        if match.is_bye or match.is_forfeit or not match.is_played:
            continue
        if not match.involves(member_id):
            continue
        opponent_id = match.opponent_of(member_id)
        results.append(
            MatchOutcome(
                opponent_rating=ratings.get(opponent_id),
                won=match.winner_id == member_id,
            )
        )
    return results


class RatingService:
    """Applies and reverts rating changes through the store."""

    def __init__(
        self,
        store: TournamentStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.clock = clock

    # ========== Point Exchange Rules ==========

    def add_rules(
        self,
        rows: Iterable[Tuple[int, int, int, int]],
        effective_from: "date | str",
    ) -> List[PointExchangeRule]:
        """Store a complete effective-dated table.

        Raises:
            PointExchangeTableException: If the rows do not form a valid table
        """
        effective = parse_date(effective_from)
        table = PointExchangeTable.from_rows(rows)
        stored = [
            self.store.add_point_exchange_rule(
                PointExchangeRule(
                    min_diff=rule.min_diff,
                    max_diff=rule.max_diff,
                    expected_points=rule.expected_points,
                    upset_points=rule.upset_points,
                    effective_from=effective,
                )
            )
            for rule in table.rules
        ]
        logger.info(f"Stored {len(stored)} point exchange rules effective {effective}")
        return stored

    def load_rules(self, as_of: Optional["date | datetime"] = None) -> PointExchangeTable:
        """The table in force on ``as_of``.

        Picks the latest effective date not after ``as_of``; falls back to the
        built-in table when no stored rule applies yet.
        """
        day = parse_date(as_of) if as_of is not None else self.clock().date()
        rules = [
            rule
            for rule in self.store.list_point_exchange_rules()
            if rule.effective_from is not None and rule.effective_from <= day
        ]
        if not rules:
            return default_table()
        latest = max(rule.effective_from for rule in rules)
        return PointExchangeTable(r for r in rules if r.effective_from == latest)

    def point_exchange(
        self, rating_diff: int, upset: bool, as_of: Optional["date | datetime"] = None
    ) -> int:
        return self.load_rules(as_of).point_exchange(rating_diff, upset)

    # ========== Ratings ==========

    def get_player_rating(self, member_id: int) -> Optional[int]:
        player = self.store.find_player(member_id)
        return player.rating if player else None

    def get_post_tournament_rating(
        self, tournament_id: int, member_id: int
    ) -> Optional[int]:
        """Rating a player left a tournament with.

        The latest history record of the tournament wins; without one the
        entry snapshot is returned.
        """
        records = self.store.list_rating_history(
            member_id=member_id, tournament_id=tournament_id
        )
        if records:
            return records[-1].rating
        participant = self.store.find_participant(tournament_id, member_id)
        return participant.rating_at_entry if participant else None

    def _apply(
        self,
        member_id: int,
        change: int,
        reason: str,
        tournament_id: Optional[int],
        match_id: Optional[int],
        fallback_rating: int,
    ) -> RatingHistory:
        player = self.store.get_player(member_id)
        current = player.rating if player.rating is not None else fallback_rating
        new_rating = max(MIN_RATING, current + change)
        player.rating = new_rating
        self.store.update_player(player)
        return self.store.add_rating_history(
            RatingHistory(
                member_id=member_id,
                rating=new_rating,
                rating_change=new_rating - current,
                reason=reason,
                tournament_id=tournament_id,
                match_id=match_id,
                timestamp=self.clock(),
            )
        )

    def _revert(self, records: Iterable[RatingHistory]) -> int:
        records = list(records)
        for record in reversed(records):
            player = self.store.find_player(record.member_id)
            if player is not None and player.rating is not None:
                player.rating -= record.rating_change
                self.store.update_player(player)
        self.store.delete_rating_history(r.id for r in records)
        return len(records)

    # ========== Incremental (per match) ==========

    def delete_match_history(self, match_id: int) -> int:
        """Revert and delete every history record written for a match."""
        removed = self._revert(self.store.list_rating_history(match_id=match_id))
        if removed:
            logger.debug(f"Reverted {removed} rating records for match {match_id}")
        return removed

    def adjust_ratings_for_match(
        self, tournament: Tournament, match: Match
    ) -> Optional[Tuple[RatingHistory, RatingHistory]]:
        """Apply one match's point exchange using the entry snapshots.

        Returns:
            The two history records, or None when the match is not rated
            (BYE, forfeit, unplayed, or an unrated player)
        """
        if match.is_bye or match.is_forfeit or match.winner_id is None:
            return None
        first = self.store.find_participant(tournament.id, match.member1_id)
        second = self.store.find_participant(tournament.id, match.member2_id)
        if first is None or second is None:
            logger.warning(
                f"Match {match.id} players are not participants of tournament "
                f"{tournament.id}; skipping rating"
            )
            return None
        if first.rating_at_entry is None or second.rating_at_entry is None:
            logger.debug(f"Match {match.id} involves an unrated player; no rating change")
            return None

        table = self.load_rules(match.updated_at or match.created_at)
        player1_won = match.winner_id == match.member1_id
        change1 = table.incremental_adjustment(
            first.rating_at_entry, second.rating_at_entry, player1_won
        )
        reason = (
            REASON_PLAYOFF_MATCH_COMPLETED
            if tournament.type == TYPE_PLAYOFF
            else REASON_MATCH_COMPLETED
        )
        record1 = self._apply(
            match.member1_id, change1, reason, tournament.id, match.id, first.rating_at_entry
        )
        record2 = self._apply(
            match.member2_id, -change1, reason, tournament.id, match.id, second.rating_at_entry
        )
        logger.debug(
            f"Match {match.id}: {match.member1_id} {record1.rating_change:+d}, "
            f"{match.member2_id} {record2.rating_change:+d}"
        )
        return record1, record2

    def rescore_match(
        self, tournament: Tournament, match: Match
    ) -> Optional[Tuple[RatingHistory, RatingHistory]]:
        """Delete prior history for the match, then rate it again."""
        self.delete_match_history(match.id)
        return self.adjust_ratings_for_match(tournament, match)

    # ========== Bulk (per tournament) ==========

    def calculate_round_robin_ratings(self, tournament: Tournament) -> Dict[int, int]:
        """Final ratings of every rated participant, keyed by member id."""
        participants = self.store.list_participants(tournament.id)
        ratings = {p.member_id: p.rating_at_entry for p in participants}
        matches = self.store.list_matches(tournament.id)
        table = self.load_rules(tournament.completed_at or self.clock())
        final: Dict[int, int] = {}
        for participant in participants:
            rating = multi_pass_recompute(
                participant.rating_at_entry,
                rated_results(matches, participant.member_id, ratings),
                table,
            )
            if rating is not None:
                final[participant.member_id] = rating
        return final

    def create_round_robin_history(self, tournament: Tournament) -> List[RatingHistory]:
        """Write one tournament-level record per participant whose rating changed.

        Existing tournament-level records are reverted first, so calling this
        again after a score correction never duplicates records.
        """
        existing = [
            record
            for record in self.store.list_rating_history(tournament_id=tournament.id)
            if record.match_id is None and record.reason == REASON_TOURNAMENT_COMPLETED
        ]
        self._revert(existing)

        created = []
        entry = {
            p.member_id: p.rating_at_entry
            for p in self.store.list_participants(tournament.id)
        }
        for member_id, final_rating in self.calculate_round_robin_ratings(tournament).items():
            change = final_rating - entry[member_id]
            if change == 0:
                continue
            created.append(
                self._apply(
                    member_id,
                    change,
                    REASON_TOURNAMENT_COMPLETED,
                    tournament.id,
                    None,
                    entry[member_id],
                )
            )
        logger.info(
            f"Round robin {tournament.id} rated: {len(created)} rating changes recorded"
        )
        return created

    # ========== Maintenance ==========

    def delete_tournament_history(self, tournament_id: int) -> int:
        """Revert and delete every history record of a tournament."""
        return self._revert(self.store.list_rating_history(tournament_id=tournament_id))

    def reset_ledger(self) -> int:
        """Revert every recorded change and clear the history.

        Returns:
            Number of records removed
        """
        by_member: Dict[int, List[RatingHistory]] = defaultdict(list)
        for record in self.store.list_rating_history():
            by_member[record.member_id].append(record)
        removed = 0
        for records in by_member.values():
            removed += self._revert(records)
        logger.info(f"Rating ledger reset, {removed} records removed")
        return removed
