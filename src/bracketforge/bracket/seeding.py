"""Bracket sizing, seeding and first-round position generation.

All functions here are pure. Positions are returned as a flat list of length
``bracket_size``; entries ``2k`` and ``2k + 1`` meet in first-round match
``k + 1`` and ``None`` marks a BYE.
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

import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bracketforge.exceptions import InvalidSeedCountException
from bracketforge.type_hints import BracketPositions


def bracket_size(participant_count: int) -> int:
    """Smallest power of two that fits every participant."""
    size = 1
    while size < participant_count:
        size *= 2
    return size


def bracket_rounds(size: int) -> int:
    """Number of rounds in a bracket of ``size`` slots."""
    return max(size.bit_length() - 1, 0)


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def seed(entries: Iterable[Tuple[int, Optional[int]]]) -> List[int]:
    """Order players for seeding.

    Args:
        entries: ``(member_id, rating)`` pairs; unrated players count as 0

    Returns:
        Member ids, highest rating first, ties broken by lower id
    """
    return [
        member_id
        for member_id, _ in sorted(entries, key=lambda e: (-(e[1] or 0), e[0]))
    ]


def seed_pattern(size: int) -> List[int]:
    """Seed number at each bracket position.

    Seeds 1 and 2 end up in opposite halves, 3 and 4 in the remaining
    quarters, and so on. For 8 slots: ``[1, 8, 4, 5, 3, 6, 7, 2]``.
    """
    if size < 2:
        return [1] * size
    pattern = [1, 2]
    while len(pattern) < size:
        new_size = len(pattern) * 2
        expanded: List[int] = []
        for index, seed_number in enumerate(pattern):
            complement = new_size + 1 - seed_number
            if index == len(pattern) - 1:
                expanded.extend((complement, seed_number))
            else:
                expanded.extend((seed_number, complement))
        pattern = expanded
    return pattern


def seed_positions(size: int) -> Dict[int, int]:
    """Map seed number to its 0-based bracket position."""
    return {seed_number: index for index, seed_number in enumerate(seed_pattern(size))}


def max_seeds(participant_count: int) -> int:
    """Largest allowed number of seeds: a power of two of at most a quarter of the field."""
    quarter = participant_count // 4
    if quarter < 2:
        return 0
    seeds = 1
    while seeds * 2 <= quarter:
        seeds *= 2
    return seeds


def validate_num_seeds(participant_count: int, num_seeds: Optional[int]) -> int:
    """Resolve the number of seeds to use.

    Args:
        participant_count: Number of players in the bracket
        num_seeds: Requested seeds, ``None`` for the largest allowed

    Returns:
        The number of seeds

    Raises:
        InvalidSeedCountException: If the count is not 0 or an allowed power of two
    """
    allowed = max_seeds(participant_count)
    if num_seeds is None:
        return allowed
    if num_seeds == 0:
        return 0
    if num_seeds < 2 or not _is_power_of_two(num_seeds) or num_seeds > allowed:
        raise InvalidSeedCountException(
            f"Number of seeds must be 0 or a power of two between 2 and {allowed} "
            f"for {participant_count} players, got {num_seeds}"
        )
    return num_seeds


def generate_positions(
    seeded_players: Sequence[int],
    size: int,
    num_seeds: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> BracketPositions:
    """Place players into first-round bracket positions.

    Seeds go to their fixed anchor positions. The ``size - n`` highest seeded
    players receive the BYEs; every other first-round match gets one random
    anchor and the rest of the field is drawn at random against them. No
    first-round match ever holds two BYEs, and a BYE always sits in slot 2.

    Args:
        seeded_players: Member ids in seed order (see ``seed``)
        size: Bracket size, a power of two
        num_seeds: Seeds to place at anchor positions, ``None`` for the maximum
        rng: Random source for the unseeded draw

    Returns:
        Member ids by position, ``None`` for BYEs
    """
    rng = rng or random.Random()
    players = list(seeded_players)
    count = len(players)
    num_seeds = validate_num_seeds(count, num_seeds)
    match_count = size // 2
    bye_recipients = set(players[: size - count])

    positions: BracketPositions = [None] * size
    anchors: Dict[int, int] = {}
    for seed_number, index in seed_positions(size).items():
        if seed_number <= num_seeds:
            positions[index] = players[seed_number - 1]
            anchors[index // 2] = players[seed_number - 1]

    placed = set(anchors.values())
    open_matches = [m for m in range(match_count) if m not in anchors]
    unseeded_byes = [p for p in players if p in bye_recipients and p not in placed]
    others = [p for p in players if p not in bye_recipients and p not in placed]
    drawn = rng.sample(others, len(open_matches) - len(unseeded_byes))
    open_anchors = unseeded_byes + drawn
    rng.shuffle(open_anchors)
    for match_index, anchor in zip(open_matches, open_anchors):
        positions[2 * match_index] = anchor
        anchors[match_index] = anchor
        placed.add(anchor)

    remaining = [p for p in players if p not in placed]
    rng.shuffle(remaining)
    for match_index in range(match_count):
        anchor = anchors[match_index]
        if anchor in bye_recipients:
            positions[2 * match_index] = anchor
            positions[2 * match_index + 1] = None
            continue
        open_index = 2 * match_index + (1 if positions[2 * match_index] == anchor else 0)
        positions[open_index] = remaining.pop()
    return positions


def fold_positions(ordered_players: Sequence[int]) -> BracketPositions:
    """Pair a power-of-two field first against last: ``[s0, sN-1, s1, sN-2, ...]``."""
    players = list(ordered_players)
    positions: BracketPositions = []
    while players:
        positions.append(players.pop(0))
        positions.append(players.pop())
    return positions
