"""Single-elimination bracket generation and advancement."""

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

from bracketforge.bracket.seeding import (
    bracket_rounds,
    bracket_size,
    fold_positions,
    generate_positions,
    max_seeds,
    seed,
    seed_pattern,
    seed_positions,
    validate_num_seeds,
)
from bracketforge.bracket.service import BracketService

__all__ = [
    "BracketService",
    "bracket_rounds",
    "bracket_size",
    "fold_positions",
    "generate_positions",
    "max_seeds",
    "seed",
    "seed_pattern",
    "seed_positions",
    "validate_num_seeds",
]
