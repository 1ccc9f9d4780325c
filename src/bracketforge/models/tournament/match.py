"""Match, bracket slot and score data classes."""

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

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from bracketforge.constants import BYE
from bracketforge.utils.dates import parse_datetime, to_iso, utcnow


@dataclass
class ScoreInput:
    """Score submitted for a match.

    Attributes
    ----------
    player1_sets : int
        Sets won by player 1.
    player2_sets : int
        Sets won by player 2.
    player1_forfeit : bool
        Player 1 forfeited.
    player2_forfeit : bool
        Player 2 forfeited.
    member1_id : int or None
        Player 1, only needed when creating a match ad hoc.
    member2_id : int or None
        Player 2, only needed when creating a match ad hoc.
    """

    player1_sets: int = 0
    player2_sets: int = 0
    player1_forfeit: bool = False
    player2_forfeit: bool = False
    member1_id: Optional[int] = None
    member2_id: Optional[int] = None

    @property
    def is_forfeit(self) -> bool:
        return self.player1_forfeit or self.player2_forfeit

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreInput":
        """Build from a request payload (camelCase or snake_case keys)."""

        def pick(snake: str, camel: str, default: Any) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            player1_sets=pick("player1_sets", "player1Sets", 0),
            player2_sets=pick("player2_sets", "player2Sets", 0),
            player1_forfeit=bool(pick("player1_forfeit", "player1Forfeit", False)),
            player2_forfeit=bool(pick("player2_forfeit", "player2Forfeit", False)),
            member1_id=pick("member1_id", "member1Id", None),
            member2_id=pick("member2_id", "member2Id", None),
        )


@dataclass
class Match:
    """A single best-of-N result between two participants.

    Attributes
    ----------
    tournament_id : int
        Owning tournament.
    member1_id : int
        Player 1.
    member2_id : int or None
        Player 2; ``BYE`` or ``None`` marks a BYE.
    player1_sets, player2_sets : int
        Set counts. ``0-0`` without a forfeit means not yet played.
    player1_forfeit, player2_forfeit : bool
        At most one may be true.
    winner_id : int or None
        Derived winner once scored.
    round_number : int or None
        Swiss round the match belongs to.
    bracket_match_id : int or None
        Bracket slot this match was played for.
    """

    tournament_id: int
    member1_id: int
    member2_id: Optional[int]
    id: Optional[int] = None
    player1_sets: int = 0
    player2_sets: int = 0
    player1_forfeit: bool = False
    player2_forfeit: bool = False
    winner_id: Optional[int] = None
    round_number: Optional[int] = None
    bracket_match_id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_bye(self) -> bool:
        return self.member1_id == BYE or self.member2_id in (BYE, None)

    @property
    def is_forfeit(self) -> bool:
        return self.player1_forfeit or self.player2_forfeit

    @property
    def is_played(self) -> bool:
        """A match is played once it has a forfeit or distinguishable set scores."""
        return self.is_forfeit or self.player1_sets != self.player2_sets

    def involves(self, member_id: int) -> bool:
        return member_id in (self.member1_id, self.member2_id)

    def opponent_of(self, member_id: int) -> Optional[int]:
        if member_id == self.member1_id:
            return self.member2_id
        if member_id == self.member2_id:
            return self.member1_id
        return None

    def determine_winner(self) -> Optional[int]:
        """Winner by forfeit first, then by sets. None when not decided."""
        if self.player1_forfeit:
            return self.member2_id
        if self.player2_forfeit:
            return self.member1_id
        if self.player1_sets > self.player2_sets:
            return self.member1_id
        if self.player2_sets > self.player1_sets:
            return self.member2_id
        return None

    def sets_for(self, member_id: int) -> int:
        return self.player1_sets if member_id == self.member1_id else self.player2_sets

    def sets_against(self, member_id: int) -> int:
        return self.player2_sets if member_id == self.member1_id else self.player1_sets

    def apply_score(self, score: ScoreInput) -> None:
        """Write an already validated score and derive the winner."""
        self.player1_sets = score.player1_sets
        self.player2_sets = score.player2_sets
        self.player1_forfeit = score.player1_forfeit
        self.player2_forfeit = score.player2_forfeit
        self.winner_id = self.determine_winner()
        self.updated_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize match to dictionary."""
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "member1_id": self.member1_id,
            "member2_id": self.member2_id,
            "player1_sets": self.player1_sets,
            "player2_sets": self.player2_sets,
            "player1_forfeit": self.player1_forfeit,
            "player2_forfeit": self.player2_forfeit,
            "winner_id": self.winner_id,
            "round_number": self.round_number,
            "bracket_match_id": self.bracket_match_id,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        """Deserialize match from dictionary."""
        return cls(
            id=data.get("id"),
            tournament_id=data["tournament_id"],
            member1_id=data["member1_id"],
            member2_id=data.get("member2_id"),
            player1_sets=data.get("player1_sets", 0),
            player2_sets=data.get("player2_sets", 0),
            player1_forfeit=data.get("player1_forfeit", False),
            player2_forfeit=data.get("player2_forfeit", False),
            winner_id=data.get("winner_id"),
            round_number=data.get("round_number"),
            bracket_match_id=data.get("bracket_match_id"),
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
            updated_at=parse_datetime(data.get("updated_at")),
        )


@dataclass
class BracketMatch:
    """A slot in a single-elimination tree.

    Round 1 is the final; the highest round number is the first round.

    Attributes
    ----------
    tournament_id : int
        Owning bracket tournament.
    round : int
        Round number counting down to the final (round 1).
    position : int
        1-indexed position within the round.
    member1_id, member2_id : int or None
        Occupants. ``None`` means not decided yet, ``BYE`` means no opponent.
    next_match_id : int or None
        Slot the winner advances into; ``None`` for the final.
    match_id : int or None
        Played match for this slot.
    winner_id : int or None
        Decided winner, including BYE auto-advances.
    """

    tournament_id: int
    round: int
    position: int
    id: Optional[int] = None
    member1_id: Optional[int] = None
    member2_id: Optional[int] = None
    next_match_id: Optional[int] = None
    match_id: Optional[int] = None
    winner_id: Optional[int] = None

    @property
    def is_final(self) -> bool:
        return self.round == 1

    @property
    def is_bye(self) -> bool:
        return self.member1_id == BYE or self.member2_id == BYE

    @property
    def is_double_bye(self) -> bool:
        return self.member1_id == BYE and self.member2_id == BYE

    @property
    def is_ready(self) -> bool:
        """Both occupants are real players."""
        return self.member1_id not in (None, BYE) and self.member2_id not in (None, BYE)

    @property
    def bye_occupant(self) -> Optional[int]:
        """The player who advances through this BYE slot, if present."""
        if self.member1_id == BYE and self.member2_id not in (None, BYE):
            return self.member2_id
        if self.member2_id == BYE and self.member1_id not in (None, BYE):
            return self.member1_id
        return None

    @property
    def next_slot(self) -> int:
        """Slot of the next-round match fed by this one: odd positions feed slot 1."""
        return 1 if self.position % 2 == 1 else 2

    def to_dict(self) -> Dict[str, Any]:
        """Serialize bracket slot to dictionary."""
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "round": self.round,
            "position": self.position,
            "member1_id": self.member1_id,
            "member2_id": self.member2_id,
            "next_match_id": self.next_match_id,
            "match_id": self.match_id,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketMatch":
        """Deserialize bracket slot from dictionary."""
        return cls(
            id=data.get("id"),
            tournament_id=data["tournament_id"],
            round=data["round"],
            position=data["position"],
            member1_id=data.get("member1_id"),
            member2_id=data.get("member2_id"),
            next_match_id=data.get("next_match_id"),
            match_id=data.get("match_id"),
            winner_id=data.get("winner_id"),
        )
