"""Preliminary round robin groups followed by a final stage.

When the last group finishes, the qualified players (auto-qualified first,
then group winners, then the best-rated runners-up) enter a final child
tournament: a playoff bracket or a round robin depending on the format.
"""

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

from abc import abstractmethod
from typing import Any, Dict, List, Optional

from bracketforge.constants import (
    DEFAULT_PLAYOFF_FINAL_SIZE,
    DEFAULT_ROUND_ROBIN_FINAL_SIZE,
    METHOD_GET,
    METHOD_POST,
    TYPE_PLAYOFF,
    TYPE_PRELIMINARY_WITH_FINAL_PLAYOFF,
    TYPE_PRELIMINARY_WITH_FINAL_ROUND_ROBIN,
    TYPE_ROUND_ROBIN,
)
from bracketforge.exceptions import InvalidTournamentConfigException, NotReadyException
from bracketforge.models.tournament import (
    PreliminaryConfig,
    StateChangeResult,
    Tournament,
    TournamentSpec,
)
from bracketforge.tournament.qualification import (
    GroupStanding,
    build_qualified_list,
    compute_group_standings,
    seed_final_positions,
)
from bracketforge.type_hints import RequestMethod
from bracketforge.utils import setup_logger

from .base import PluginContext
from .compound import CompoundTournamentPlugin

logger = setup_logger(__name__)


class PreliminaryWithFinalPlugin(CompoundTournamentPlugin):
    """Shared logic of both preliminary-with-final formats."""

    final_type: str = ""
    final_suffix: str = "Final"
    default_final_size: int = DEFAULT_PLAYOFF_FINAL_SIZE

    def config(self, tournament: Tournament) -> PreliminaryConfig:
        return PreliminaryConfig.from_dict(tournament.config, self.default_final_size)

    def create_tournament(self, ctx: PluginContext, spec: TournamentSpec) -> Tournament:
        config = PreliminaryConfig.from_dict(spec.config, self.default_final_size)
        members = [member_id for group in config.groups for member_id in group]
        if len(members) != len(set(members)):
            raise InvalidTournamentConfigException("A player is listed in more than one group")
        members += [m for m in config.auto_qualified_member_ids if m not in members]
        if spec.participant_ids and set(spec.participant_ids) != set(members):
            raise InvalidTournamentConfigException(
                "Groups and auto-qualified players must be exactly the tournament's participants"
            )
        if config.final_size > len(members):
            raise InvalidTournamentConfigException(
                f"Final size {config.final_size} exceeds the {len(members)} participants"
            )
        spec = TournamentSpec(
            name=spec.name,
            participant_ids=members,
            config={**(spec.config or {}), **config.to_dict()},
            parent_id=spec.parent_id,
            group_number=spec.group_number,
        )
        return super().create_tournament(ctx, spec)

    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        self.create_groups(ctx, tournament, self.config(tournament).groups, TYPE_ROUND_ROBIN)

    # ========== Phases ==========

    def preliminaries(self, ctx: PluginContext, tournament: Tournament) -> List[Tournament]:
        return [c for c in self.children(ctx, tournament) if c.group_number is not None]

    def final_phase(self, ctx: PluginContext, tournament: Tournament) -> Optional[Tournament]:
        for child in self.children(ctx, tournament):
            if child.group_number is None:
                return child
        return None

    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        if tournament.is_completed:
            return True
        final = self.final_phase(ctx, tournament)
        return final is not None and super().is_complete(ctx, tournament)

    def group_standings(
        self, ctx: PluginContext, tournament: Tournament
    ) -> List[List[GroupStanding]]:
        standings = []
        for group in sorted(self.preliminaries(ctx, tournament), key=lambda c: c.group_number):
            ratings = {
                p.member_id: p.rating_at_entry for p in ctx.store.list_participants(group.id)
            }
            standings.append(compute_group_standings(ratings, ctx.store.list_matches(group.id)))
        return standings

    def on_child_tournament_completed(
        self, ctx: PluginContext, parent: Tournament, child: Tournament
    ) -> StateChangeResult:
        if child.group_number is None:
            return StateChangeResult(
                should_mark_complete=self.is_complete(ctx, parent),
                message=f"{self.final_suffix} completed",
            )
        pending = [c for c in self.preliminaries(ctx, parent) if not c.is_completed]
        if pending:
            return StateChangeResult(message=f"Waiting for {len(pending)} preliminary groups")
        if self.final_phase(ctx, parent) is not None:
            return StateChangeResult()
        final = self.create_final_phase(ctx, parent)
        return StateChangeResult(
            message=f"{self.final_suffix} created", created_tournament_id=final.id
        )

    def create_final_phase(self, ctx: PluginContext, parent: Tournament) -> Tournament:
        """Qualify players and create the final child tournament.

        Raises:
            NotReadyException: If a preliminary group is unfinished or the final exists
        """
        groups = self.preliminaries(ctx, parent)
        if not groups or any(not group.is_completed for group in groups):
            raise NotReadyException(
                f"Tournament {parent.id}: every preliminary group must complete first"
            )
        if self.final_phase(ctx, parent) is not None:
            raise NotReadyException(f"Tournament {parent.id} already has a final phase")

        config = self.config(parent)
        standings = self.group_standings(ctx, parent)
        qualified = build_qualified_list(
            standings, config.final_size, config.auto_qualified_member_ids
        )
        ratings: Dict[int, Optional[int]] = {
            p.member_id: p.rating_at_entry for p in ctx.store.list_participants(parent.id)
        }
        for group in standings:
            ratings.update({s.member_id: s.rating for s in group})
        group_winners = [group[0].member_id for group in standings if group]
        return self.create_final(ctx, parent, qualified, ratings, group_winners)

    @abstractmethod
    def create_final(
        self,
        ctx: PluginContext,
        parent: Tournament,
        qualified: List[int],
        ratings: Dict[int, Optional[int]],
        group_winners: List[int],
    ) -> Tournament:
        """Create the final-stage child tournament from the qualified players."""

    def handle_plugin_request(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        method: RequestMethod,
        resource: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """``GET qualification`` previews the qualified list; ``POST final`` creates the final."""
        if method == METHOD_GET and resource == "qualification":
            config = self.config(tournament)
            standings = self.group_standings(ctx, tournament)
            return {
                "groups": [[s.member_id for s in group] for group in standings],
                "qualified": build_qualified_list(
                    standings, config.final_size, config.auto_qualified_member_ids
                ),
            }
        if method == METHOD_POST and resource == "final":
            return self.create_final_phase(ctx, tournament).to_dict()
        return super().handle_plugin_request(ctx, tournament, method, resource, payload)


class PreliminaryWithFinalPlayoffPlugin(PreliminaryWithFinalPlugin):
    """Groups followed by a seeded single-elimination final."""

    tournament_type = TYPE_PRELIMINARY_WITH_FINAL_PLAYOFF
    display_name = "Preliminary with Final Playoff"
    child_types = (TYPE_ROUND_ROBIN, TYPE_PLAYOFF)
    final_type = TYPE_PLAYOFF
    final_suffix = "Playoff"
    default_final_size = DEFAULT_PLAYOFF_FINAL_SIZE

    def create_final(
        self,
        ctx: PluginContext,
        parent: Tournament,
        qualified: List[int],
        ratings: Dict[int, Optional[int]],
        group_winners: List[int],
    ) -> Tournament:
        positions = seed_final_positions(
            qualified,
            ratings,
            self.config(parent).auto_qualified_member_ids,
            group_winners,
            ctx.rng,
        )
        return self.create_child(
            ctx,
            parent,
            TYPE_PLAYOFF,
            f"{parent.name} - {self.final_suffix}",
            qualified,
            config={"bracketPositions": positions},
        )


class PreliminaryWithFinalRoundRobinPlugin(PreliminaryWithFinalPlugin):
    """Groups followed by a final round robin."""

    tournament_type = TYPE_PRELIMINARY_WITH_FINAL_ROUND_ROBIN
    display_name = "Preliminary with Final Round Robin"
    child_types = (TYPE_ROUND_ROBIN,)
    final_type = TYPE_ROUND_ROBIN
    final_suffix = "Final"
    default_final_size = DEFAULT_ROUND_ROBIN_FINAL_SIZE

    def create_final(
        self,
        ctx: PluginContext,
        parent: Tournament,
        qualified: List[int],
        ratings: Dict[int, Optional[int]],
        group_winners: List[int],
    ) -> Tournament:
        return self.create_child(
            ctx,
            parent,
            TYPE_ROUND_ROBIN,
            f"{parent.name} - {self.final_suffix}",
            qualified,
        )
