"""
Reshuffle planner.

Only the actor (the automation's own account) can move, and every move is a
swap: the actor takes a seat and its occupant takes the actor's old seat.
The planner simulates moves on a private clone of the arena until every
player sits next to their desired partner.

Each step picks one of four moves, based on the actor ``a`` and its current
partner ``c``:

- ``a`` already sits with its desired partner: sit ``a`` opposite the first
  unsettled player ``p``. This gives up ``a``'s own pair for one move, and the
  next move completes ``p``'s pair.
- ``c`` wants a partner ``d``: take ``d``'s seat, which moves ``d`` next to ``c``.
- ``c`` wants no partner (odd lobby): move ``a`` to an empty seat on another
  team, leaving ``c`` alone.
- ``a`` is alone: sit opposite ``a``'s desired partner.

Every move except the first kind strictly increases the number of settled
players, and the first kind is always followed by one that settles two, so
the loop terminates well inside the relocation cap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from teamshuffle.planning.models import ArenaInvariantError

if TYPE_CHECKING:
    from teamshuffle.planning.models import LobbyArena, Pairing, Relocation, Seat

logger = structlog.get_logger()

MAX_RELOCATIONS = 20


class PlanningError(Exception):
    pass


class PlanningExhaustedError(PlanningError):
    def __init__(self, relocations: list[Relocation], unsettled: list[str]) -> None:
        super().__init__(f"Still {len(unsettled)} unsettled players after {len(relocations)} relocations")
        self.relocations = relocations
        self.unsettled = unsettled


@dataclass(frozen=True)
class ReshufflePlan:
    actor: str
    target: Pairing
    relocations: tuple[Relocation, ...]
    # simulated lobby after every relocation has been applied
    result: LobbyArena

    def __len__(self) -> int:
        return len(self.relocations)


def _vacant_seat_off_team(arena: LobbyArena, team: int) -> Seat:
    for seat in arena.empty_seats():
        if seat.team != team:
            return seat
    raise PlanningError(f"No empty seat outside team {team}")


def next_destination(arena: LobbyArena, actor: str) -> Seat:
    """Seat the actor should move into next. The arena must not be settled."""
    me = arena.player(actor)

    if me.is_settled:
        pivot = arena.mismatched()[0]
        return arena.seat_of(pivot).opposite

    partner = me.current_partner
    if partner is None:
        # unsettled and alone means a desired partner exists
        return arena.seat_of(me.desired_partner).opposite  # type: ignore[arg-type]

    wanted = arena.player(partner).desired_partner
    if wanted is None:
        return _vacant_seat_off_team(arena, me.team)
    return arena.seat_of(wanted)


def plan_reshuffle(
    arena: LobbyArena,
    actor: str,
    target: Pairing,
    max_relocations: int = MAX_RELOCATIONS,
) -> ReshufflePlan:
    """Plan the relocations that turn ``arena``'s pairing into ``target``.

    ``arena`` itself is left untouched. Raises PlanningExhaustedError if the
    target is not reached within ``max_relocations`` moves.
    """
    if actor not in arena:
        raise PlanningError(f"Actor {actor!r} is not in the lobby")

    simulation = arena.clone()
    try:
        simulation.assign_pairing(target)
    except ArenaInvariantError as e:
        raise PlanningError(str(e)) from e

    relocations: list[Relocation] = []
    while not simulation.is_settled():
        if len(relocations) >= max_relocations:
            raise PlanningExhaustedError(relocations, simulation.mismatched())
        relocation = simulation.relocate(actor, next_destination(simulation, actor))
        relocations.append(relocation)
        logger.debug(
            "relocation planned",
            team=relocation.team,
            slot=relocation.slot,
            displaced=relocation.displaced,
            unsettled=len(simulation.mismatched()),
        )

    return ReshufflePlan(actor=actor, target=target, relocations=tuple(relocations), result=simulation)
