"""Tournament and participant data classes."""

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

from bracketforge.constants import STATUS_ACTIVE, STATUS_COMPLETED
from bracketforge.utils.dates import parse_datetime, to_iso, utcnow


@dataclass
class Tournament:
    """A competition instance of one format.

    Attributes
    ----------
    id : int or None
        Store-assigned identifier, ``None`` until created.
    name : str
        Display name.
    type : str
        Format identifier, one of the ``TYPE_*`` constants.
    status : str
        ``ACTIVE`` or ``COMPLETED``. Moves to ``COMPLETED`` exactly once.
    parent_id : int or None
        Owning compound tournament, ``None`` for top-level tournaments.
    group_number : int or None
        Position among sibling children; ``None`` for a final stage.
    config : dict
        Format-specific configuration blob.
    created_at : datetime
        Creation timestamp.
    completed_at : datetime or None
        Completion timestamp.
    cancelled : bool
        Completed by cancellation rather than by play; no ratings applied.
    """

    name: str
    type: str
    id: Optional[int] = None
    status: str = STATUS_ACTIVE
    parent_id: Optional[int] = None
    group_number: Optional[int] = None
    config: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    cancelled: bool = False

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_child(self) -> bool:
        return self.parent_id is not None

    def mark_completed(self, when: Optional[datetime] = None) -> bool:
        """Transition to COMPLETED.

        Returns:
            True if the status changed, False if it was already completed.
        """
        if self.is_completed:
            return False
        self.status = STATUS_COMPLETED
        self.completed_at = when or utcnow()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize tournament to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "parent_id": self.parent_id,
            "group_number": self.group_number,
            "config": self.config,
            "created_at": to_iso(self.created_at),
            "completed_at": to_iso(self.completed_at),
            "cancelled": self.cancelled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tournament":
        """Deserialize tournament from dictionary."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            type=data["type"],
            status=data.get("status", STATUS_ACTIVE),
            parent_id=data.get("parent_id"),
            group_number=data.get("group_number"),
            config=data.get("config", {}),
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
            completed_at=parse_datetime(data.get("completed_at")),
            cancelled=data.get("cancelled", False),
        )


@dataclass
class Participant:
    """A player's entry in a tournament.

    Attributes
    ----------
    tournament_id : int
        Tournament entered.
    member_id : int
        Player entered.
    rating_at_entry : int or None
        Rating snapshot taken when the tournament was created.
    post_rating : int or None
        Rating after the tournament, filled in for display once completed.
    """

    tournament_id: int
    member_id: int
    rating_at_entry: Optional[int] = None
    post_rating: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize participant to dictionary."""
        return {
            "tournament_id": self.tournament_id,
            "member_id": self.member_id,
            "rating_at_entry": self.rating_at_entry,
            "post_rating": self.post_rating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Deserialize participant from dictionary."""
        return cls(
            tournament_id=data["tournament_id"],
            member_id=data["member_id"],
            rating_at_entry=data.get("rating_at_entry"),
            post_rating=data.get("post_rating"),
        )
