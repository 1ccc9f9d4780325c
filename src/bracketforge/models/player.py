"""Player data class."""

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
from typing import Any, Dict, Optional


@dataclass
class Player:
    """A registered player.

    Attributes
    ----------
    id : int
        Store-assigned identifier. ``0`` is reserved for the BYE marker.
    name : str
        Display name.
    rating : int or None
        Current rating; ``None`` for an unrated player.
    """

    id: int
    name: str
    rating: Optional[int] = None

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize player to dictionary."""
        return {"id": self.id, "name": self.name, "rating": self.rating}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Deserialize player from dictionary."""
        return cls(id=data["id"], name=data["name"], rating=data.get("rating"))
