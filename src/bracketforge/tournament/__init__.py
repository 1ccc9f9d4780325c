"""Cross-tournament standings: qualification and rankings."""

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

from bracketforge.tournament.qualification import (
    GroupStanding,
    build_qualified_list,
    compute_group_standings,
    seed_final_positions,
)
from bracketforge.tournament.rankings import RankingEntry, compute_rankings

__all__ = [
    "GroupStanding",
    "RankingEntry",
    "build_qualified_list",
    "compute_group_standings",
    "compute_rankings",
    "seed_final_positions",
]
