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

# --- Constants ---
SAVE_FILE_EXTENSION = ".json"
LOG_LEVEL_ENV_VAR = "BRACKETFORGE_LOG_LEVEL"

# Tournament formats
TYPE_ROUND_ROBIN = "ROUND_ROBIN"
TYPE_PLAYOFF = "PLAYOFF"
TYPE_SWISS = "SWISS"
TYPE_MULTI_ROUND_ROBINS = "MULTI_ROUND_ROBINS"
TYPE_PRELIMINARY_WITH_FINAL_PLAYOFF = "PRELIMINARY_WITH_FINAL_PLAYOFF"
TYPE_PRELIMINARY_WITH_FINAL_ROUND_ROBIN = "PRELIMINARY_WITH_FINAL_ROUND_ROBIN"

# Tournament status
STATUS_ACTIVE = "ACTIVE"
STATUS_COMPLETED = "COMPLETED"

# Bracket occupant marker for an empty (BYE) slot
BYE = 0

# Rating history reasons
REASON_TOURNAMENT_COMPLETED = "TOURNAMENT_COMPLETED"
REASON_MATCH_COMPLETED = "MATCH_COMPLETED"
REASON_PLAYOFF_MATCH_COMPLETED = "PLAYOFF_MATCH_COMPLETED"

# Rating dampening thresholds (points gained over a tournament)
DAMPEN_FLOOR = 50
DAMPEN_AVERAGE_MIN = 75
SINGLE_OPPONENT_MAX_CHANGE = 100
MIN_RATING = 0

# Default point exchange table: (min_diff, max_diff, expected_points, upset_points)
DEFAULT_POINT_EXCHANGE_TABLE = (
    (0, 12, 8, 8),
    (13, 37, 7, 10),
    (38, 62, 6, 13),
    (63, 87, 5, 16),
    (88, 112, 4, 20),
    (113, 137, 3, 25),
    (138, 162, 2, 30),
    (163, 187, 2, 35),
    (188, 212, 1, 40),
    (213, 237, 1, 45),
    (238, 262, 0, 50),
    (263, 287, 0, 55),
    (288, 312, 0, 60),
    (313, 337, 0, 65),
    (338, 362, 0, 70),
    (363, 387, 0, 75),
    (388, 412, 0, 80),
    (413, 437, 0, 85),
    (438, 462, 0, 90),
    (463, 487, 0, 95),
    (488, 512, 0, 100),
    (513, 99999, 0, 100),
)

# Format configuration defaults
DEFAULT_SWISS_ROUNDS = 3
DEFAULT_PLAYOFF_FINAL_SIZE = 4
DEFAULT_ROUND_ROBIN_FINAL_SIZE = 6

# Ranking score weights
RANKING_WIN_RATE_WEIGHT = 0.7
RANKING_SET_RATIO_WEIGHT = 0.3
RANKING_UNBEATEN_SET_RATIO = 999

# Plugin request methods
METHOD_GET = "GET"
METHOD_POST = "POST"
METHOD_PATCH = "PATCH"
METHOD_DELETE = "DELETE"

# Event names sent to the event sink
EVENT_TOURNAMENT_CREATED = "tournament_created"
EVENT_MATCH_UPDATED = "match_updated"
EVENT_TOURNAMENT_COMPLETED = "tournament_completed"
EVENT_CHILD_TOURNAMENT_COMPLETED = "child_tournament_completed"
EVENT_CACHE_INVALIDATED = "cache_invalidated"

# Compound nesting guard
MAX_PARENT_DEPTH = 4
