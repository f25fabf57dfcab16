"""Lobby snapshot: turn a lobby payload into a planning arena."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from teamshuffle.planning.models import TEAM_SIZE, ArenaInvariantError, LobbyArena, Seat, Slot

if TYPE_CHECKING:
    from teamshuffle.lcu.types import GameConfig, Lobby

logger = structlog.get_logger()

ARENA_LOBBY_SIZE = 16
DOUBLE_UP_QUEUES = frozenset({1160})
FIRST_TEAM_INDEX = 1


class SnapshotError(Exception):
    pass


@dataclass(frozen=True)
class EligibilityRules:
    """Lobbies that play in two-player teams.

    A lobby qualifies when either its capacity or its queue is listed.
    """

    lobby_sizes: frozenset[int] = field(default_factory=lambda: frozenset({ARENA_LOBBY_SIZE}))
    queue_ids: frozenset[int] = DOUBLE_UP_QUEUES

    def allows(self, config: GameConfig) -> bool:
        return config.max_lobby_size in self.lobby_sizes or config.queue_id in self.queue_ids


def build_arena(lobby: Lobby, rules: EligibilityRules | None = None) -> LobbyArena | None:
    """Return the arena for an eligible lobby, or None when the lobby is not eligible.

    Player order follows the lobby's member order. Every team index up to
    ``maxLobbySize // 2`` is known to the arena, so empty teams count as
    vacant seats.
    """
    rules = rules or EligibilityRules()
    config = lobby.game_config
    if not rules.allows(config):
        logger.info(
            "not a two-player team lobby, ignoring",
            max_lobby_size=config.max_lobby_size,
            queue_id=config.queue_id,
        )
        return None

    seats: dict[str, Seat] = {}
    for member in lobby.members:
        name = member.summoner_name or member.puuid
        if name in seats:
            raise SnapshotError(f"Duplicate lobby member {name!r}")
        try:
            slot = Slot(member.slot)
        except ValueError as e:
            raise SnapshotError(f"Invalid slot {member.slot} for {name!r}") from e
        seats[name] = Seat(member.team, slot)

    team_count = config.max_lobby_size // TEAM_SIZE
    teams = range(FIRST_TEAM_INDEX, FIRST_TEAM_INDEX + team_count)
    try:
        return LobbyArena(seats, teams)
    except ArenaInvariantError as e:
        raise SnapshotError(str(e)) from e
