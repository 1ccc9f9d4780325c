"""Rating history audit record."""

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

from bracketforge.utils.dates import parse_datetime, to_iso, utcnow


@dataclass
class RatingHistory:
    """
    One applied rating change.

    Round robin tournaments write one record per player per tournament
    with no match; incremental formats write one record per player per match.

    Attributes
    ----------
    member_id : int
        Player whose rating changed.
    tournament_id : int or None
        Tournament the change came from.
    match_id : int or None
        Match the change came from, None for tournament-level changes.
    rating : int
        Rating after the change.
    rating_change : int
        Signed delta applied.
    reason : str
        One of the REASON_* constants.
    timestamp : datetime
        When the change was recorded.
    """

    member_id: int
    rating: int
    rating_change: int
    reason: str
    tournament_id: Optional[int] = None
    match_id: Optional[int] = None
    id: Optional[int] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize history record to dictionary."""
        return {
            "id": self.id,
            "member_id": self.member_id,
            "tournament_id": self.tournament_id,
            "match_id": self.match_id,
            "rating": self.rating,
            "rating_change": self.rating_change,
            "reason": self.reason,
            "timestamp": to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RatingHistory":
        """Deserialize history record from dictionary."""
        return cls(
            id=data.get("id"),
            member_id=data["member_id"],
            tournament_id=data.get("tournament_id"),
            match_id=data.get("match_id"),
            rating=data["rating"],
            rating_change=data["rating_change"],
            reason=data["reason"],
            timestamp=parse_datetime(data.get("timestamp")) or utcnow(),
        )
