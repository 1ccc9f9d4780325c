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
from typing import Any, Dict, List, Optional

from bracketforge.constants import (
    DEFAULT_PLAYOFF_FINAL_SIZE,
    DEFAULT_SWISS_ROUNDS,
)
from bracketforge.exceptions import InvalidTournamentConfigException
from bracketforge.type_hints import BracketPositions


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data``; blobs use camelCase or snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class SwissConfig:
    """Swiss tournament settings.

    Attributes
    ----------
    number_of_rounds : int
        Rounds to play before the tournament completes.
    pair_by_rating : bool
        Break point ties by rating in the standings.
    """

    number_of_rounds: int = DEFAULT_SWISS_ROUNDS
    pair_by_rating: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "numberOfRounds": self.number_of_rounds,
            "pairByRating": self.pair_by_rating,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SwissConfig":
        """Deserialize configuration from dictionary."""
        data = data or {}
        rounds = int(
            _pick(data, "numberOfRounds", "number_of_rounds", default=DEFAULT_SWISS_ROUNDS)
        )
        if rounds < 1:
            raise InvalidTournamentConfigException(
                f"numberOfRounds must be at least 1, got {rounds}"
            )
        return cls(
            number_of_rounds=rounds,
            pair_by_rating=bool(_pick(data, "pairByRating", "pair_by_rating", default=True)),
        )


@dataclass
class PlayoffConfig:
    """Bracket tournament settings.

    Attributes
    ----------
    bracket_positions : list of int or None, optional
        Explicit first-round positions; ``None`` entries are BYEs.
    num_seeds : int, optional
        Number of seeded players; defaults to the largest allowed.
    """

    bracket_positions: Optional[BracketPositions] = None
    num_seeds: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        data: Dict[str, Any] = {}
        if self.bracket_positions is not None:
            data["bracketPositions"] = list(self.bracket_positions)
        if self.num_seeds is not None:
            data["numSeeds"] = self.num_seeds
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlayoffConfig":
        """Deserialize configuration from dictionary."""
        data = data or {}
        positions = _pick(data, "bracketPositions", "bracket_positions")
        num_seeds = _pick(data, "numSeeds", "num_seeds", "numSeeded")
        return cls(
            bracket_positions=list(positions) if positions is not None else None,
            num_seeds=int(num_seeds) if num_seeds is not None else None,
        )


@dataclass
class PreliminaryConfig:
    """Settings shared by the preliminary-with-final formats.

    Attributes
    ----------
    groups : list of list of int
        Member ids of each preliminary group.
    final_size : int
        Number of seats in the final stage.
    auto_qualified_count : int
        Number of players who skip the preliminaries; must match the member list.
    auto_qualified_member_ids : list of int
        Players who skip the preliminaries.
    """

    groups: List[List[int]] = field(default_factory=list)
    final_size: int = DEFAULT_PLAYOFF_FINAL_SIZE
    auto_qualified_count: int = 0
    auto_qualified_member_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "groups": [list(group) for group in self.groups],
            "finalSize": self.final_size,
            "autoQualifiedCount": self.auto_qualified_count,
            "autoQualifiedMemberIds": list(self.auto_qualified_member_ids),
        }

    @classmethod
    def from_dict(
        cls, data: Optional[Dict[str, Any]], default_final_size: int
    ) -> "PreliminaryConfig":
        """Deserialize configuration from dictionary.

        Args:
            data: Configuration blob
            default_final_size: Final size used when the blob names none

        Raises:
            InvalidTournamentConfigException: If groups are missing or sizes invalid
        """
        data = data or {}
        groups = [list(group) for group in _pick(data, "groups", default=[])]
        final_size = int(
            _pick(
                data,
                "finalSize",
                "final_size",
                "playoffBracketSize",
                "finalRoundRobinSize",
                default=default_final_size,
            )
        )
        auto_ids = list(
            _pick(data, "autoQualifiedMemberIds", "auto_qualified_member_ids", default=[])
        )
        auto_count = int(
            _pick(data, "autoQualifiedCount", "auto_qualified_count", default=len(auto_ids))
        )
        if not groups or any(len(group) < 2 for group in groups):
            raise InvalidTournamentConfigException(
                "Preliminary formats need at least one group of two or more players"
            )
        if final_size < 2:
            raise InvalidTournamentConfigException(
                f"Final size must be at least 2, got {final_size}"
            )
        if auto_count != len(auto_ids):
            raise InvalidTournamentConfigException(
                f"autoQualifiedCount is {auto_count} but {len(auto_ids)} "
                f"auto-qualified players are listed"
            )
        if len(auto_ids) > final_size:
            raise InvalidTournamentConfigException(
                "More auto-qualified players than seats in the final"
            )
        return cls(
            groups=groups,
            final_size=final_size,
            auto_qualified_count=auto_count,
            auto_qualified_member_ids=auto_ids,
        )
