"""Base of formats that own child tournaments instead of matches."""

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

from typing import Any, Dict, List, Optional

from bracketforge.exceptions import (
    CompoundMatchUpdateException,
    InvalidTournamentConfigException,
    TournamentStateException,
)
from bracketforge.models.tournament import (
    LifecycleResult,
    Match,
    MatchCompletedEvent,
    MatchUpdateResult,
    ScoreInput,
    StateChangeResult,
    Tournament,
    TournamentSpec,
)
from bracketforge.utils import setup_logger

from .base import PluginContext, TournamentPlugin

logger = setup_logger(__name__)


def parse_groups(config: Dict[str, Any]) -> List[List[int]]:
    """Read the ``groups`` list of a compound config.

    Raises:
        InvalidTournamentConfigException: If groups are missing, too small or overlap
    """
    groups = [[int(member_id) for member_id in group] for group in config.get("groups") or []]
    if not groups:
        raise InvalidTournamentConfigException("At least one group is required")
    for index, group in enumerate(groups, start=1):
        if len(group) < 2:
            raise InvalidTournamentConfigException(
                f"Group {index} needs at least 2 players, got {len(group)}"
            )
    members = [member_id for group in groups for member_id in group]
    if len(members) != len(set(members)):
        raise InvalidTournamentConfigException("A player is listed in more than one group")
    return groups


class CompoundTournamentPlugin(TournamentPlugin):
    """Drives child tournaments and aggregates their state."""

    is_basic = False

    # ========== Children ==========

    def children(self, ctx: PluginContext, tournament: Tournament) -> List[Tournament]:
        return ctx.store.list_children(tournament.id)

    def create_child(
        self,
        ctx: PluginContext,
        parent: Tournament,
        child_type: str,
        name: str,
        participant_ids: List[int],
        config: Optional[Dict[str, Any]] = None,
        group_number: Optional[int] = None,
    ) -> Tournament:
        plugin = ctx.registry.get(child_type)
        child = plugin.create_tournament(
            ctx,
            TournamentSpec(
                name=name,
                participant_ids=participant_ids,
                config=config or {},
                parent_id=parent.id,
                group_number=group_number,
            ),
        )
        logger.info(f"Tournament {parent.id}: created {child_type} child {child.id} '{name}'")
        return child

    def create_groups(
        self,
        ctx: PluginContext,
        parent: Tournament,
        groups: List[List[int]],
        child_type: str,
    ) -> List[Tournament]:
        return [
            self.create_child(
                ctx,
                parent,
                child_type,
                f"{parent.name} - Group {index + 1}",
                group,
                group_number=index + 1,
            )
            for index, group in enumerate(groups)
        ]

    # ========== State ==========

    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        if tournament.is_completed:
            return True
        children = self.children(ctx, tournament)
        return bool(children) and all(child.is_completed for child in children)

    def matches_remaining(self, ctx: PluginContext, tournament: Tournament) -> int:
        if tournament.is_completed:
            return 0
        total = 0
        for child in self.children(ctx, tournament):
            if child.is_completed:
                continue
            total += ctx.registry.get(child.type).matches_remaining(ctx, child)
        return total

    def has_played_matches(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return any(
            ctx.registry.get(child.type).has_played_matches(ctx, child)
            for child in self.children(ctx, tournament)
        )

    def can_delete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        return all(
            ctx.registry.get(child.type).can_delete(ctx, child)
            for child in self.children(ctx, tournament)
        )

    def modify_tournament(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        name: Optional[str] = None,
        participant_ids: Optional[List[int]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Tournament:
        """Only renaming is supported; groups are fixed once children exist."""
        if participant_ids is not None or config is not None:
            raise TournamentStateException(
                f"Tournament {tournament.id} owns child tournaments; modify the groups instead"
            )
        return super().modify_tournament(ctx, tournament, name)

    def on_delete(self, ctx: PluginContext, tournament: Tournament) -> LifecycleResult:
        return LifecycleResult(keep_matches=False, message="Child tournaments deleted")

    # ========== Matches ==========

    def resolve_match_id(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: Optional[ScoreInput] = None,
    ) -> Match:
        raise self._owns_no_matches(tournament)

    def update_match(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: ScoreInput,
    ) -> MatchUpdateResult:
        """Compound tournaments own no matches.

        Raises:
            CompoundMatchUpdateException: Always
        """
        raise self._owns_no_matches(tournament)

    @staticmethod
    def _owns_no_matches(tournament: Tournament) -> CompoundMatchUpdateException:
        return CompoundMatchUpdateException(
            f"Tournament {tournament.id} is a {tournament.type} tournament; "
            f"matches belong to its child tournaments"
        )

    # ========== Events ==========

    def on_match_completed(
        self, ctx: PluginContext, event: MatchCompletedEvent
    ) -> StateChangeResult:
        return StateChangeResult()

    def on_child_tournament_completed(
        self, ctx: PluginContext, parent: Tournament, child: Tournament
    ) -> StateChangeResult:
        return StateChangeResult(should_mark_complete=self.is_complete(ctx, parent))

    # ========== Display ==========

    def enrich_tournament(self, ctx: PluginContext, tournament: Tournament) -> Dict[str, Any]:
        data = super().enrich_tournament(ctx, tournament)
        data["children"] = [
            ctx.registry.get(child.type).enrich_tournament(ctx, child)
            for child in self.children(ctx, tournament)
        ]
        return data

    def get_schedule(self, ctx: PluginContext, tournament: Tournament) -> List[Dict[str, Any]]:
        schedule = []
        for child in self.children(ctx, tournament):
            for entry in ctx.registry.get(child.type).get_schedule(ctx, child):
                entry["childTournamentId"] = child.id
                entry["childTournamentName"] = child.name
                schedule.append(entry)
        return schedule

    def get_printable_view(self, ctx: PluginContext, tournament: Tournament) -> str:
        sections = [f"{tournament.name} ({self.display_name or tournament.type})"]
        for child in self.children(ctx, tournament):
            sections.append(ctx.registry.get(child.type).get_printable_view(ctx, child))
        return "\n\n".join(sections)
