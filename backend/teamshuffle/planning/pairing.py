"""
Random target pairings.

Players are shuffled with a Durstenfeld (Fisher-Yates) shuffle and then
partnered in consecutive pairs, so every ordering of the input, and
therefore every pairing, is equally likely.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, TypeVar

from teamshuffle.planning.models import TEAM_SIZE, Pairing

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableSequence, Sequence

T = TypeVar("T")

DEFAULT_RESAMPLE_ATTEMPTS = 10


def create_pairing_rng(seed: int | str | None = None) -> random.Random:
    """Seeded generator for reproducible pairings, or the OS source when seed is None."""
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)


def shuffle_in_place(items: MutableSequence[T], rng: random.Random) -> MutableSequence[T]:
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def pair_consecutive(names: Sequence[str]) -> Pairing:
    """Partner names[0] with names[1], names[2] with names[3], and so on.

    An odd final name is left without a partner.
    """
    return Pairing(tuple(tuple(names[i : i + TEAM_SIZE]) for i in range(0, len(names), TEAM_SIZE)))


def generate_pairing(names: Iterable[str], rng: random.Random | None = None) -> Pairing:
    order = list(names)
    shuffle_in_place(order, rng or create_pairing_rng())
    return pair_consecutive(order)


def generate_new_pairing(
    current: Pairing,
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_RESAMPLE_ATTEMPTS,
) -> Pairing:
    """Sample pairings until one differs from ``current``.

    Lobbies with a single possible pairing can never differ, so after
    ``max_attempts`` samples the last one is returned as is.
    """
    rng = rng or create_pairing_rng()
    pairing = generate_pairing(current.names, rng)
    for _ in range(max_attempts - 1):
        if not pairing.matches(current):
            break
        pairing = generate_pairing(current.names, rng)
    return pairing
