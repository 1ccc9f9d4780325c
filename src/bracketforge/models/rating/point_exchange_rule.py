"""Point exchange table row."""

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

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from bracketforge.utils.dates import parse_date, to_iso


@dataclass
class PointExchangeRule:
    """
    Points exchanged for one band of rating differences.

    Attributes
    ----------
    min_diff : int
        Smallest absolute rating difference covered (inclusive).
    max_diff : int
        Largest absolute rating difference covered (inclusive).
    expected_points : int
        Points when the higher-rated player wins.
    upset_points : int
        Points when the lower-rated player wins.
    effective_from : date or None
        First day the rule applies; None for the built-in table.
    """

    min_diff: int
    max_diff: int
    expected_points: int
    upset_points: int
    effective_from: Optional[date] = None
    id: Optional[int] = None

    def covers(self, rating_diff: int) -> bool:
        return self.min_diff <= rating_diff <= self.max_diff

    def points(self, is_upset: bool) -> int:
        return self.upset_points if is_upset else self.expected_points

    def to_dict(self) -> Dict[str, Any]:
        """Serialize rule to dictionary."""
        return {
            "id": self.id,
            "min_diff": self.min_diff,
            "max_diff": self.max_diff,
            "expected_points": self.expected_points,
            "upset_points": self.upset_points,
            "effective_from": to_iso(self.effective_from),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PointExchangeRule":
        """Deserialize rule from dictionary."""
        return cls(
            id=data.get("id"),
            min_diff=data["min_diff"],
            max_diff=data["max_diff"],
            expected_points=data["expected_points"],
            upset_points=data["upset_points"],
            effective_from=parse_date(data.get("effective_from")),
        )
