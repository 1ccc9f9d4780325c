"""Requests and results exchanged between the engine and format plugins."""

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

from .match import Match
from .tournament import Tournament


@dataclass
class TournamentSpec:
    """Request to create a tournament of a given format.

    Attributes
    ----------
    name : str
        Display name.
    participant_ids : list of int
        Member ids entering the tournament.
    config : dict
        Format-specific configuration blob.
    parent_id : int or None
        Owning compound tournament when created as a child.
    group_number : int or None
        Group position when created as a preliminary group.
    """

    name: str
    participant_ids: List[int]
    config: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[int] = None
    group_number: Optional[int] = None


@dataclass
class StateChangeResult:
    """What a plugin wants done after an event."""

    should_mark_complete: bool = False
    message: Optional[str] = None
    created_tournament_id: Optional[int] = None


@dataclass
class MatchUpdateResult:
    """Outcome of a plugin match update."""

    match: Match
    state_change: Optional[StateChangeResult] = None
    bracket_match_id: Optional[int] = None


@dataclass
class MatchCompletedEvent:
    """Notification that a match now has a decided result."""

    tournament: Tournament
    match: Match
    winner_id: Optional[int]
    bracket_match_id: Optional[int] = None


@dataclass
class LifecycleResult:
    """Result of a cancel or delete hook."""

    keep_matches: bool = True
    message: Optional[str] = None


@dataclass
class MatchUpdateOutcome:
    """Everything that happened because of one match update.

    Attributes
    ----------
    match : Match or None
        The match as stored after the update; None for a manual completion.
    state_change : StateChangeResult or None
        What the owning plugin decided.
    completed_tournament_ids : list of int
        Tournaments completed by this update, innermost first.
    propagation_error : str or None
        Set when notifying a parent tournament failed; the match update
        itself is committed regardless.
    """

    match: Optional[Match]
    state_change: Optional[StateChangeResult] = None
    completed_tournament_ids: List[int] = field(default_factory=list)
    propagation_error: Optional[str] = None

    @property
    def tournament_completed(self) -> bool:
        return bool(self.completed_tournament_ids)
