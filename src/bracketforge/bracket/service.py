"""Single-elimination bracket structure and advancement.

Slots reference each other by id through the store: every slot except the
final stores the id of the next-round slot its winner moves into. Round 1 is
the final, so a slot at round ``r`` and position ``p`` feeds round ``r - 1``
at position ``(p - 1) // 2 + 1``; odd positions fill slot 1 of that match,
even positions slot 2.
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
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bracketforge.constants import BYE
from bracketforge.exceptions import (
    BracketAdvancementException,
    EntityNotFoundException,
    InvalidBracketPositionsException,
    MatchNotFoundException,
    MatchOwnershipException,
    TournamentStateException,
)
from bracketforge.models.tournament import BracketMatch, Match
from bracketforge.store import TournamentStore
from bracketforge.type_hints import BracketPositions
from bracketforge.utils import setup_logger
from bracketforge.utils.validation import require_valid_bracket_positions

from .seeding import bracket_rounds, bracket_size, generate_positions, seed

logger = setup_logger(__name__)


class BracketService:
    """Creates bracket trees and moves winners through them."""

    def __init__(self, store: TournamentStore) -> None:
        self.store = store

    # ========== Creation ==========

    def create_bracket(
        self,
        tournament_id: int,
        participant_ids: Iterable[int],
        positions: BracketPositions,
    ) -> List[BracketMatch]:
        """Build every slot of the bracket and resolve first-round BYEs.

        Args:
            tournament_id: Owning tournament
            participant_ids: Players entered; ``positions`` must contain each once
            positions: First-round positions, ``None`` for BYEs

        Returns:
            All slots, first round first

        Raises:
            InvalidBracketPositionsException: If the positions do not fit the field
        """
        participant_ids = list(participant_ids)
        size = bracket_size(len(participant_ids))
        if size < 2:
            raise InvalidBracketPositionsException("A bracket needs at least two players")
        positions = require_valid_bracket_positions(positions, participant_ids, size)
        rounds = bracket_rounds(size)

        # Final first so every slot knows its next-round slot id
        by_round: Dict[int, List[BracketMatch]] = {}
        for round_number in range(1, rounds + 1):
            slots = []
            for position in range(1, 2 ** (round_number - 1) + 1):
                next_id = None
                if round_number > 1:
                    next_id = by_round[round_number - 1][(position - 1) // 2].id
                slots.append(
                    self.store.create_bracket_match(
                        BracketMatch(
                            tournament_id=tournament_id,
                            round=round_number,
                            position=position,
                            next_match_id=next_id,
                        )
                    )
                )
            by_round[round_number] = slots

        self._fill_first_round(by_round[rounds], positions)
        logger.info(
            f"Created bracket for tournament {tournament_id}: {size} slots, "
            f"{rounds} rounds, {positions.count(None)} BYEs"
        )
        return self.store.list_bracket_matches(tournament_id)

    def _fill_first_round(
        self, first_round: List[BracketMatch], positions: BracketPositions
    ) -> None:
        for slot in first_round:
            first, second = positions[2 * (slot.position - 1) : 2 * slot.position]
            if first is None and second is not None:
                first, second = second, first
            slot.member1_id = BYE if first is None else first
            slot.member2_id = BYE if second is None else second
            self.store.update_bracket_match(slot)
        for slot in first_round:
            self._resolve_bye(self.store.find_bracket_match(slot.id))
        self._ensure_matches(first_round[0].tournament_id)

    def _resolve_bye(self, slot: BracketMatch) -> None:
        """Advance a BYE slot's occupant, recursing through all-BYE ancestors."""
        if slot.winner_id is not None:
            return
        if slot.is_double_bye:
            winner = BYE
        else:
            winner = slot.bye_occupant
            if winner is None:
                return
        slot.winner_id = winner
        self.store.update_bracket_match(slot)
        logger.debug(f"Bracket slot {slot.id}: {winner} advances on a BYE")
        if slot.next_match_id is None:
            return
        next_slot = self._place(slot, winner)
        self._resolve_bye(next_slot)

    def _place(self, slot: BracketMatch, member_id: Optional[int]) -> BracketMatch:
        """Write ``member_id`` into the next-round slot fed by ``slot``."""
        next_slot = self.store.find_bracket_match(slot.next_match_id)
        if next_slot is None:
            raise EntityNotFoundException(f"Bracket match {slot.next_match_id} not found")
        if slot.next_slot == 1:
            next_slot.member1_id = member_id
        else:
            next_slot.member2_id = member_id
        if next_slot.match_id is not None:
            match = self.store.find_match(next_slot.match_id)
            if match is not None:
                match.member1_id = next_slot.member1_id
                match.member2_id = next_slot.member2_id
                self.store.update_match(match)
        return self.store.update_bracket_match(next_slot)

    def _ensure_matches(self, tournament_id: int) -> List[Match]:
        """Create the Match row for every slot whose two players are known."""
        created = []
        for slot in self.store.list_bracket_matches(tournament_id):
            if slot.match_id is not None or not slot.is_ready:
                continue
            match = self.store.create_match(
                Match(
                    tournament_id=tournament_id,
                    member1_id=slot.member1_id,
                    member2_id=slot.member2_id,
                    bracket_match_id=slot.id,
                )
            )
            slot.match_id = match.id
            self.store.update_bracket_match(slot)
            created.append(match)
        return created

    # ========== Advancement ==========

    def advance_winner(
        self, tournament_id: int, bracket_match_id: int, winner_id: int
    ) -> bool:
        """Record a slot winner and move them into the next round.

        Re-advancing the same winner changes nothing. A different winner may
        replace the previous one only while the next-round match is unplayed.

        Returns:
            True if this slot is the final, meaning the tournament is decided

        Raises:
            MatchOwnershipException: If the slot belongs to another tournament
            BracketAdvancementException: If the previous winner already played on
        """
        slot = self.get_slot(tournament_id, bracket_match_id)
        if winner_id not in (slot.member1_id, slot.member2_id) or winner_id == BYE:
            raise BracketAdvancementException(
                f"Player {winner_id} is not in bracket match {bracket_match_id}"
            )
        if slot.winner_id == winner_id:
            logger.debug(f"Bracket slot {slot.id}: winner {winner_id} already advanced")
            return slot.is_final

        if slot.winner_id is not None and slot.next_match_id is not None:
            next_slot = self.store.find_bracket_match(slot.next_match_id)
            if next_slot is not None and self._slot_played(next_slot):
                raise BracketAdvancementException(
                    f"Cannot change winner of bracket match {slot.id}: "
                    f"player {slot.winner_id} has already played the next round"
                )

        slot.winner_id = winner_id
        self.store.update_bracket_match(slot)
        if slot.is_final:
            logger.info(f"Bracket final decided for tournament {tournament_id}: winner {winner_id}")
            return True
        self._resolve_bye(self._place(slot, winner_id))
        self._ensure_matches(tournament_id)
        return False

    def _slot_played(self, slot: BracketMatch) -> bool:
        if slot.winner_id is not None:
            return True
        if slot.match_id is None:
            return False
        match = self.store.find_match(slot.match_id)
        return match is not None and match.is_played

    # ========== Reseeding and manual positions ==========

    def reseed(
        self,
        tournament_id: int,
        num_seeds: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> BracketPositions:
        """Recompute first-round positions from current player ratings.

        Raises:
            TournamentStateException: If the tournament is completed or play started
        """
        self._require_active(tournament_id)
        entries = []
        for participant in self.store.list_participants(tournament_id):
            player = self.store.find_player(participant.member_id)
            entries.append((participant.member_id, player.rating if player else None))
        size = bracket_size(len(entries))
        positions = generate_positions(seed(entries), size, num_seeds, rng)
        self.update_positions(tournament_id, positions)
        logger.info(f"Reseeded bracket for tournament {tournament_id}")
        return positions

    def update_positions(
        self, tournament_id: int, positions: BracketPositions
    ) -> List[BracketMatch]:
        """Replace the first-round assignments; later rounds are cleared.

        Raises:
            InvalidBracketPositionsException: If the positions do not fit the field
            TournamentStateException: If the tournament is completed or play started
        """
        self._require_active(tournament_id)
        participant_ids = [p.member_id for p in self.store.list_participants(tournament_id)]
        size = bracket_size(len(participant_ids))
        positions = require_valid_bracket_positions(positions, participant_ids, size)

        slots = self.store.list_bracket_matches(tournament_id)
        if any(self._slot_played(slot) for slot in slots if not slot.is_bye):
            raise TournamentStateException(
                f"Cannot change bracket positions of tournament {tournament_id} "
                f"after matches have been played"
            )
        for slot in slots:
            if slot.match_id is not None:
                self.store.delete_match(slot.match_id)
            slot.member1_id = None
            slot.member2_id = None
            slot.match_id = None
            slot.winner_id = None
            self.store.update_bracket_match(slot)

        first_round_number = bracket_rounds(size)
        first_round = [s for s in slots if s.round == first_round_number]
        self._fill_first_round(first_round, positions)
        return self.store.list_bracket_matches(tournament_id)

    def _require_active(self, tournament_id: int) -> None:
        tournament = self.store.get_tournament(tournament_id)
        if tournament.is_completed:
            raise TournamentStateException(
                f"Tournament {tournament_id} is completed; its bracket cannot change"
            )

    # ========== Queries ==========

    def get_slot(self, tournament_id: int, bracket_match_id: int) -> BracketMatch:
        """Load a slot and check it belongs to the tournament.

        Raises:
            MatchNotFoundException: If the slot does not exist
            MatchOwnershipException: If it belongs to another tournament
        """
        slot = self.store.find_bracket_match(bracket_match_id)
        if slot is None:
            raise MatchNotFoundException(f"Bracket match {bracket_match_id} not found")
        if slot.tournament_id != tournament_id:
            raise MatchOwnershipException(
                f"Bracket match {bracket_match_id} does not belong to tournament "
                f"{tournament_id}"
            )
        return slot

    def final_slot(self, tournament_id: int) -> Optional[BracketMatch]:
        for slot in self.store.list_bracket_matches(tournament_id):
            if slot.is_final:
                return slot
        return None

    def preview(
        self,
        entries: Iterable[Tuple[int, Optional[int]]],
        num_seeds: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> Dict[str, Any]:
        """Positions a bracket would get, without writing anything."""
        seeded = seed(entries)
        size = bracket_size(len(seeded))
        return {
            "positions": generate_positions(seeded, size, num_seeds, rng),
            "bracketSize": size,
        }

    def get_bracket(self, tournament_id: int) -> Dict[str, Any]:
        """The bracket as plain data, rounds from first to final."""
        slots = self.store.list_bracket_matches(tournament_id)
        rounds = max((slot.round for slot in slots), default=0)
        entries = []
        for slot in slots:
            entry = slot.to_dict()
            match = self.store.find_match(slot.match_id) if slot.match_id else None
            entry["match"] = match.to_dict() if match else None
            entries.append(entry)
        return {
            "tournamentId": tournament_id,
            "rounds": rounds,
            "bracketSize": 2 ** rounds if rounds else 0,
            "matches": entries,
        }
