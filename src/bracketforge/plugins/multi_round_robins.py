"""Several independent round robin groups under one tournament."""

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

from typing import Any, Dict, List

from bracketforge.constants import TYPE_MULTI_ROUND_ROBINS, TYPE_ROUND_ROBIN
from bracketforge.exceptions import InvalidTournamentConfigException
from bracketforge.models.tournament import Tournament, TournamentSpec

from .base import PluginContext
from .compound import CompoundTournamentPlugin, parse_groups


def snake_groups(ordered_ids: List[int], group_count: int) -> List[List[int]]:
    """Deal players into groups in snake order: 1-2-3-3-2-1-1-2-3..."""
    groups: List[List[int]] = [[] for _ in range(group_count)]
    for index, member_id in enumerate(ordered_ids):
        lap, offset = divmod(index, group_count)
        groups[offset if lap % 2 == 0 else group_count - 1 - offset].append(member_id)
    return groups


class MultiRoundRobinsPlugin(CompoundTournamentPlugin):
    """Round robin groups with no final phase; complete when every group is."""

    tournament_type = TYPE_MULTI_ROUND_ROBINS
    display_name = "Multiple Round Robins"
    child_types = (TYPE_ROUND_ROBIN,)

    def create_tournament(self, ctx: PluginContext, spec: TournamentSpec) -> Tournament:
        config = dict(spec.config or {})
        if not config.get("groups"):
            config["groups"] = self._split(ctx, list(spec.participant_ids), config)
        groups = parse_groups(config)
        members = [member_id for group in groups for member_id in group]
        if spec.participant_ids and set(spec.participant_ids) != set(members):
            raise InvalidTournamentConfigException(
                "Groups must contain exactly the tournament's participants"
            )
        spec = TournamentSpec(
            name=spec.name,
            participant_ids=members,
            config=config,
            parent_id=spec.parent_id,
            group_number=spec.group_number,
        )
        return super().create_tournament(ctx, spec)

    def _split(
        self, ctx: PluginContext, participant_ids: List[int], config: Dict[str, Any]
    ) -> List[List[int]]:
        group_count = int(config.get("numberOfGroups") or config.get("number_of_groups") or 0)
        if group_count < 1:
            raise InvalidTournamentConfigException(
                "Either groups or numberOfGroups is required"
            )
        ratings = {member_id: ctx.store.get_player(member_id).rating for member_id in participant_ids}
        ordered = sorted(participant_ids, key=lambda m: (-(ratings[m] or 0), m))
        return snake_groups(ordered, group_count)

    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        self.create_groups(ctx, tournament, parse_groups(tournament.config), TYPE_ROUND_ROBIN)
