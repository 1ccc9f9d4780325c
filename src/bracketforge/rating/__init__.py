"""Rating engine: point exchange, bulk recomputation and the rating ledger."""

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

from bracketforge.rating.calculator import (
    MatchOutcome,
    dampen,
    first_pass,
    multi_pass_recompute,
)
from bracketforge.rating.point_exchange import (
    PointExchangeTable,
    default_table,
    incremental_adjustment,
    is_upset,
    point_exchange,
)
from bracketforge.rating.service import RatingService, rated_results

__all__ = [
    "MatchOutcome",
    "PointExchangeTable",
    "RatingService",
    "dampen",
    "default_table",
    "first_pass",
    "incremental_adjustment",
    "is_upset",
    "multi_pass_recompute",
    "point_exchange",
    "rated_results",
]
