"""Lookup of format plugins by tournament type."""

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

from types import MappingProxyType
from typing import Iterable, List, Mapping

from bracketforge.exceptions import PluginException, UnknownTournamentTypeException

from .base import TournamentPlugin
from .multi_round_robins import MultiRoundRobinsPlugin
from .playoff import PlayoffPlugin
from .preliminary import (
    PreliminaryWithFinalPlayoffPlugin,
    PreliminaryWithFinalRoundRobinPlugin,
)
from .round_robin import RoundRobinPlugin
from .swiss import SwissPlugin


class PluginRegistry:
    """Immutable mapping of tournament type to plugin."""

    def __init__(self, plugins: Iterable[TournamentPlugin]) -> None:
        table = {}
        for plugin in plugins:
            if plugin.tournament_type in table:
                raise PluginException(
                    f"Duplicate plugin for tournament type {plugin.tournament_type}"
                )
            table[plugin.tournament_type] = plugin
        self._plugins: Mapping[str, TournamentPlugin] = MappingProxyType(table)

    def get(self, tournament_type: str) -> TournamentPlugin:
        """Plugin for a tournament type.

        Raises:
            UnknownTournamentTypeException: If no plugin handles the type
        """
        try:
            return self._plugins[tournament_type]
        except KeyError:
            raise UnknownTournamentTypeException(
                f"No plugin registered for tournament type {tournament_type}"
            ) from None

    def has(self, tournament_type: str) -> bool:
        return tournament_type in self._plugins

    def types(self) -> List[str]:
        return list(self._plugins)

    def all(self) -> List[TournamentPlugin]:
        return list(self._plugins.values())

    def basic(self) -> List[TournamentPlugin]:
        return [plugin for plugin in self._plugins.values() if plugin.is_basic]

    def compound(self) -> List[TournamentPlugin]:
        return [plugin for plugin in self._plugins.values() if not plugin.is_basic]

    def __contains__(self, tournament_type: object) -> bool:
        return tournament_type in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)


def default_registry() -> PluginRegistry:
    """Registry holding every built-in format."""
    return PluginRegistry(
        [
            RoundRobinPlugin(),
            PlayoffPlugin(),
            SwissPlugin(),
            MultiRoundRobinsPlugin(),
            PreliminaryWithFinalPlayoffPlugin(),
            PreliminaryWithFinalRoundRobinPlugin(),
        ]
    )
