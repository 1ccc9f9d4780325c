"""Data model for Swiss tournament progress."""

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
from typing import Any, Dict


@dataclass
class SwissState:
    """
    Tracks round progression of a Swiss tournament.

    Attributes
    ----------
    tournament_id : int
        Owning Swiss tournament.
    total_rounds : int
        Configured number of rounds.
    current_round : int
        Last round generated; 0 before the first round exists.
    completed : bool
        Set once the last round is fully decided.
    pair_by_rating : bool
        Break point ties by rating when ranking standings.
    """

    tournament_id: int
    total_rounds: int
    current_round: int = 0
    completed: bool = False
    pair_by_rating: bool = True

    @property
    def rounds_left(self) -> int:
        return max(0, self.total_rounds - self.current_round)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize Swiss state to dictionary."""
        return {
            "tournament_id": self.tournament_id,
            "total_rounds": self.total_rounds,
            "current_round": self.current_round,
            "completed": self.completed,
            "pair_by_rating": self.pair_by_rating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwissState":
        """Deserialize Swiss state from dictionary."""
        return cls(
            tournament_id=data["tournament_id"],
            total_rounds=data["total_rounds"],
            current_round=data.get("current_round", 0),
            completed=data.get("completed", False),
            pair_by_rating=data.get("pair_by_rating", True),
        )
