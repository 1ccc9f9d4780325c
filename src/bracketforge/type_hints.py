"""Type hints used in BracketForge."""

from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

# Tournament format literals
TournamentType = Literal[
    "ROUND_ROBIN",
    "PLAYOFF",
    "SWISS",
    "MULTI_ROUND_ROBINS",
    "PRELIMINARY_WITH_FINAL_PLAYOFF",
    "PRELIMINARY_WITH_FINAL_ROUND_ROBIN",
]

TournamentStatus = Literal["ACTIVE", "COMPLETED"]

RequestMethod = Literal["GET", "POST", "PATCH", "DELETE"]

# A member id in a bracket position list; None marks a BYE
BracketPosition = Optional[int]
BracketPositions = List[BracketPosition]

# Pair of member ids scheduled to play
MatchPairing = Tuple[int, int]
# All pairings for one round
RoundSchedule = List[MatchPairing]

# Configuration blob as persisted with a tournament
ConfigBlob = Dict[str, Any]

# Event sink: called with an event name and a payload
EventSink = Callable[[str, Dict[str, Any]], None]

#  LocalWords:  MatchPairing RoundSchedule
