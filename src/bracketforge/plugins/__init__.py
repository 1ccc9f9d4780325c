"""Tournament format plugins."""

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

from bracketforge.plugins.base import PluginContext, TournamentPlugin
from bracketforge.plugins.compound import CompoundTournamentPlugin
from bracketforge.plugins.multi_round_robins import MultiRoundRobinsPlugin
from bracketforge.plugins.playoff import PlayoffPlugin
from bracketforge.plugins.preliminary import (
    PreliminaryWithFinalPlayoffPlugin,
    PreliminaryWithFinalPlugin,
    PreliminaryWithFinalRoundRobinPlugin,
)
from bracketforge.plugins.registry import PluginRegistry, default_registry
from bracketforge.plugins.round_robin import RoundRobinPlugin
from bracketforge.plugins.swiss import SwissPlugin

__all__ = [
    "CompoundTournamentPlugin",
    "MultiRoundRobinsPlugin",
    "PlayoffPlugin",
    "PluginContext",
    "PluginRegistry",
    "PreliminaryWithFinalPlayoffPlugin",
    "PreliminaryWithFinalPlugin",
    "PreliminaryWithFinalRoundRobinPlugin",
    "RoundRobinPlugin",
    "SwissPlugin",
    "TournamentPlugin",
    "default_registry",
]
