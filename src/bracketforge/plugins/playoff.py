"""Single-elimination (playoff) format."""

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

from bracketforge.bracket import bracket_rounds, bracket_size, generate_positions, seed
from bracketforge.constants import METHOD_GET, METHOD_PATCH, METHOD_POST, TYPE_PLAYOFF
from bracketforge.exceptions import (
    ByeMatchException,
    InvalidBracketPositionsException,
    NotReadyException,
)
from bracketforge.models.tournament import (
    Match,
    MatchUpdateResult,
    PlayoffConfig,
    ScoreInput,
    Tournament,
)
from bracketforge.type_hints import RequestMethod
from bracketforge.utils import setup_logger
from bracketforge.utils.validation import require_valid_score

from .base import PluginContext, TournamentPlugin

logger = setup_logger(__name__)


class PlayoffPlugin(TournamentPlugin):
    """Bracket format. Match ids seen by callers are bracket slot ids."""

    tournament_type = TYPE_PLAYOFF
    display_name = "Playoff"

    def build_structure(
        self, ctx: PluginContext, tournament: Tournament, participant_ids: List[int]
    ) -> None:
        config = PlayoffConfig.from_dict(tournament.config)
        positions = config.bracket_positions
        if positions is None:
            entries = [
                (p.member_id, p.rating_at_entry)
                for p in ctx.store.list_participants(tournament.id)
            ]
            size = bracket_size(len(entries))
            positions = generate_positions(seed(entries), size, config.num_seeds, ctx.rng)
        ctx.bracket.create_bracket(tournament.id, participant_ids, positions)
        config.bracket_positions = self.first_round_positions(ctx, tournament)
        tournament.config = {**tournament.config, **config.to_dict()}
        ctx.store.update_tournament(tournament)

    def modify_tournament(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        name: Optional[str] = None,
        participant_ids: Optional[List[int]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Tournament:
        if participant_ids is not None and config is None:
            # Stored positions belong to the old entry list
            config = {
                key: value
                for key, value in tournament.config.items()
                if key not in ("bracketPositions", "bracket_positions")
            }
        return super().modify_tournament(ctx, tournament, name, participant_ids, config)

    def first_round_positions(self, ctx: PluginContext, tournament: Tournament) -> List[Optional[int]]:
        slots = ctx.store.list_bracket_matches(tournament.id)
        if not slots:
            return []
        first_round = max(slot.round for slot in slots)
        positions: List[Optional[int]] = []
        for slot in slots:
            if slot.round == first_round:
                positions.extend(
                    member if member else None for member in (slot.member1_id, slot.member2_id)
                )
        return positions

    # ========== State ==========

    def is_complete(self, ctx: PluginContext, tournament: Tournament) -> bool:
        if tournament.is_completed:
            return True
        final = ctx.bracket.final_slot(tournament.id)
        if final is None or final.match_id is None:
            return False
        match = ctx.store.find_match(final.match_id)
        return match is not None and match.is_played

    def matches_remaining(self, ctx: PluginContext, tournament: Tournament) -> int:
        if tournament.is_completed:
            return 0
        return sum(
            1
            for slot in ctx.store.list_bracket_matches(tournament.id)
            if slot.winner_id is None
        )

    # ========== Matches ==========

    def resolve_match_id(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: Optional[ScoreInput] = None,
    ) -> Match:
        """Resolve a bracket slot id to its Match row.

        Raises:
            MatchNotFoundException: If the slot does not exist
            ByeMatchException: If the slot is a BYE
            NotReadyException: If the slot is still waiting for a player
        """
        slot = ctx.bracket.get_slot(tournament.id, match_id)
        if slot.is_bye:
            raise ByeMatchException(f"Bracket match {slot.id} is a BYE and cannot be played")
        if not slot.is_ready:
            raise NotReadyException(f"Bracket match {slot.id} is still waiting for players")
        if slot.match_id is not None:
            match = ctx.store.find_match(slot.match_id)
            if match is not None:
                return match
        match = ctx.store.create_match(
            Match(
                tournament_id=tournament.id,
                member1_id=slot.member1_id,
                member2_id=slot.member2_id,
                bracket_match_id=slot.id,
                created_at=ctx.clock(),
            )
        )
        slot.match_id = match.id
        ctx.store.update_bracket_match(slot)
        return match

    def update_match(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        match_id: int,
        score: ScoreInput,
    ) -> MatchUpdateResult:
        score = require_valid_score(score)
        match = self.resolve_match_id(ctx, tournament, match_id, score)
        match = self.record_score(ctx, match, score)
        ctx.bracket.advance_winner(tournament.id, match.bracket_match_id, match.winner_id)
        return MatchUpdateResult(match=match, bracket_match_id=match.bracket_match_id)

    def on_match_rating_calculation(
        self, ctx: PluginContext, tournament: Tournament, match: Match
    ) -> None:
        ctx.ratings.rescore_match(tournament, match)

    # ========== Display ==========

    def get_schedule(self, ctx: PluginContext, tournament: Tournament) -> List[Dict[str, Any]]:
        bracket = ctx.bracket.get_bracket(tournament.id)
        schedule = []
        for entry in bracket["matches"]:
            entry["player1"] = self.player_name(ctx, entry["member1_id"])
            entry["player2"] = self.player_name(ctx, entry["member2_id"])
            schedule.append(entry)
        return schedule

    def enrich_tournament(self, ctx: PluginContext, tournament: Tournament) -> Dict[str, Any]:
        data = super().enrich_tournament(ctx, tournament)
        data["bracket"] = ctx.bracket.get_bracket(tournament.id)
        return data

    def get_printable_view(self, ctx: PluginContext, tournament: Tournament) -> str:
        bracket = ctx.bracket.get_bracket(tournament.id)
        lines = [f"{tournament.name} (Playoff)", ""]
        current_round = None
        for entry in bracket["matches"]:
            if entry["round"] != current_round:
                current_round = entry["round"]
                lines.append(self.round_label(current_round))
            match = entry["match"]
            score = ""
            if match and (match["player1_forfeit"] or match["player2_forfeit"]):
                score = "forfeit"
            elif match and match["player1_sets"] != match["player2_sets"]:
                score = f"{match['player1_sets']}-{match['player2_sets']}"
            player1 = self.slot_label(ctx, entry["member1_id"])
            player2 = self.slot_label(ctx, entry["member2_id"])
            lines.append(f"  [{entry['id']:>3}] {player1:<24} {score:^7} {player2}")
        return "\n".join(lines)

    def slot_label(self, ctx: PluginContext, member_id: Optional[int]) -> str:
        if member_id is None:
            return "TBD"
        return self.player_name(ctx, member_id)

    @staticmethod
    def round_label(round_number: int) -> str:
        labels = {1: "Final", 2: "Semifinals", 3: "Quarterfinals"}
        return labels.get(round_number, f"Round of {2 ** round_number}")

    # ========== Plugin requests ==========

    def handle_plugin_request(
        self,
        ctx: PluginContext,
        tournament: Tournament,
        method: RequestMethod,
        resource: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Bracket operations.

        Supported requests:
            - ``GET bracket``: the bracket as plain data
            - ``PATCH bracket``: move players, payload ``{"positions": [{round, position, memberId}]}``
              or a full ``{"bracketPositions": [...]}`` list
            - ``POST reseed``: reseed the first round from current ratings
            - ``POST participants-updated``: reseed after the entry list changed
            - ``POST preview``: ``{"participants": [{id, rating}], "numSeeds"}`` to
              ``{"positions", "bracketSize"}`` without writes
        """
        payload = payload or {}
        if method == METHOD_GET and resource == "bracket":
            return ctx.bracket.get_bracket(tournament.id)
        if method == METHOD_PATCH and resource == "bracket":
            return self._patch_bracket(ctx, tournament, payload)
        if method == METHOD_POST and resource in ("reseed", "participants-updated"):
            num_seeds = PlayoffConfig.from_dict(payload).num_seeds
            positions = ctx.bracket.reseed(tournament.id, num_seeds, ctx.rng)
            self._store_positions(ctx, tournament, positions)
            return {"message": "Bracket reseeded successfully", "positions": positions}
        if method == METHOD_POST and resource == "preview":
            entries = [
                (int(p.get("id", p.get("memberId"))), p.get("rating"))
                for p in payload.get("participants", payload.get("players", []))
            ]
            num_seeds = PlayoffConfig.from_dict(payload).num_seeds
            return ctx.bracket.preview(entries, num_seeds, ctx.rng)
        return super().handle_plugin_request(ctx, tournament, method, resource, payload)

    def _patch_bracket(
        self, ctx: PluginContext, tournament: Tournament, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        positions = PlayoffConfig.from_dict(payload).bracket_positions
        if positions is None:
            positions = self.first_round_positions(ctx, tournament)
            first_round = bracket_rounds(len(positions))
            for change in payload.get("positions", []):
                if int(change["round"]) != first_round:
                    raise InvalidBracketPositionsException(
                        "Only first-round bracket positions can be edited"
                    )
                slot_index = int(change["position"]) - 1
                if not 0 <= slot_index < len(positions):
                    raise InvalidBracketPositionsException(
                        f"Bracket position {change['position']} is out of range"
                    )
                member_id = change.get("memberId")
                positions[slot_index] = int(member_id) if member_id else None
        ctx.bracket.update_positions(tournament.id, positions)
        self._store_positions(ctx, tournament, self.first_round_positions(ctx, tournament))
        return ctx.bracket.get_bracket(tournament.id)

    def _store_positions(
        self, ctx: PluginContext, tournament: Tournament, positions: List[Optional[int]]
    ) -> None:
        tournament = ctx.store.get_tournament(tournament.id)
        tournament.config = {**tournament.config, "bracketPositions": list(positions)}
        ctx.store.update_tournament(tournament)
