"""Tournament data models."""

from .match import BracketMatch, Match, ScoreInput
from .state_change import (
    LifecycleResult,
    MatchCompletedEvent,
    MatchUpdateOutcome,
    MatchUpdateResult,
    StateChangeResult,
    TournamentSpec,
)
from .swiss_state import SwissState
from .tournament import Participant, Tournament
from .tournament_config import PlayoffConfig, PreliminaryConfig, SwissConfig

__all__ = [
    "BracketMatch",
    "LifecycleResult",
    "Match",
    "MatchCompletedEvent",
    "MatchUpdateOutcome",
    "MatchUpdateResult",
    "Participant",
    "PlayoffConfig",
    "PreliminaryConfig",
    "ScoreInput",
    "StateChangeResult",
    "SwissConfig",
    "SwissState",
    "Tournament",
    "TournamentSpec",
]
