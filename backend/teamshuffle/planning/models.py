"""Lobby arena: seats, player records, pairings, and the relocation primitive.

The arena is the planner's private copy of the lobby. It maps each player
identifier to an immutable ``Player`` record and each occupied ``Seat`` to its
occupant. The relocation primitive replaces records instead of mutating them,
so a clone never shares state with the arena it was taken from.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

TEAM_SIZE = 2


class Slot(IntEnum):
    """Position within a team. Encoded as 1/2 to match the lobby service."""

    FIRST = 1
    SECOND = 2

    @property
    def other(self) -> Slot:
        return Slot(3 - self.value)


@dataclass(frozen=True, order=True)
class Seat:
    team: int
    slot: Slot

    @property
    def opposite(self) -> Seat:
        """The seat that pairs with this one on the same team."""
        return Seat(self.team, self.slot.other)


@dataclass(frozen=True)
class Player:
    name: str
    seat: Seat
    current_partner: str | None = None
    desired_partner: str | None = None

    @property
    def team(self) -> int:
        return self.seat.team

    @property
    def slot(self) -> Slot:
        return self.seat.slot

    @property
    def is_settled(self) -> bool:
        return self.current_partner == self.desired_partner


@dataclass(frozen=True)
class Pairing:
    """Who is partnered with whom. Carries no team numbers.

    Each entry of ``teams`` holds two names, or one name for the unpaired
    leftover of an odd-sized lobby.
    """

    teams: tuple[tuple[str, ...], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for team in self.teams:
            if not 1 <= len(team) <= TEAM_SIZE:
                raise ValueError(f"Team must have 1 or {TEAM_SIZE} members, got {team!r}")
            for name in team:
                if name in seen:
                    raise ValueError(f"{name!r} appears in more than one team")
                seen.add(name)

    def partners(self) -> dict[str, str | None]:
        result: dict[str, str | None] = {}
        for team in self.teams:
            if len(team) == TEAM_SIZE:
                first, second = team
                result[first] = second
                result[second] = first
            else:
                result[team[0]] = None
        return result

    def matches(self, other: Pairing) -> bool:
        """True when both pairings partner every player identically."""
        return self.partners() == other.partners()

    @property
    def names(self) -> list[str]:
        return [name for team in self.teams for name in team]


@dataclass(frozen=True)
class Relocation:
    """One relocation command: the actor moves into ``seat``.

    ``displaced`` is the player who occupied ``seat`` and was moved into the
    actor's vacated seat, if any.
    """

    seat: Seat
    displaced: str | None = None

    @property
    def team(self) -> int:
        return self.seat.team

    @property
    def slot(self) -> Slot:
        return self.seat.slot


class ArenaInvariantError(Exception):
    pass


class LobbyArena:
    def __init__(self, seats: Mapping[str, Seat], teams: Iterable[int] = ()) -> None:
        self._occupants: dict[Seat, str] = {}
        for name, seat in seats.items():
            if seat in self._occupants:
                raise ArenaInvariantError(
                    f"{name!r} and {self._occupants[seat]!r} both occupy team {seat.team} slot {seat.slot}",
                )
            self._occupants[seat] = name
        self._teams: tuple[int, ...] = tuple(sorted(set(teams) | {seat.team for seat in seats.values()}))
        self._players: dict[str, Player] = {
            name: Player(name=name, seat=seat, current_partner=self._occupants.get(seat.opposite))
            for name, seat in seats.items()
        }
        self._version = 0

    @property
    def version(self) -> int:
        """Incremented on every committed change."""
        return self._version

    @property
    def teams(self) -> tuple[int, ...]:
        return self._teams

    @property
    def names(self) -> list[str]:
        return list(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, name: object) -> bool:
        return name in self._players

    def __iter__(self) -> Iterator[Player]:
        return iter(self._players.values())

    def player(self, name: str) -> Player:
        return self._players[name]

    def seat_of(self, name: str) -> Seat:
        return self._players[name].seat

    def partner_of(self, name: str) -> str | None:
        return self._players[name].current_partner

    def occupant(self, seat: Seat) -> str | None:
        return self._occupants.get(seat)

    def empty_seats(self) -> list[Seat]:
        return [
            Seat(team, slot)
            for team in self._teams
            for slot in Slot
            if Seat(team, slot) not in self._occupants
        ]

    def current_pairing(self) -> Pairing:
        """Pairing formed by physical occupancy, in team order."""
        teams: list[tuple[str, ...]] = []
        for team in self._teams:
            members = tuple(
                name for slot in Slot if (name := self._occupants.get(Seat(team, slot))) is not None
            )
            if members:
                teams.append(members)
        return Pairing(tuple(teams))

    def mismatched(self) -> list[str]:
        """Players whose current partner differs from their desired one, in snapshot order."""
        return [player.name for player in self._players.values() if not player.is_settled]

    def is_settled(self) -> bool:
        return all(player.is_settled for player in self._players.values())

    def clone(self) -> LobbyArena:
        copy = LobbyArena.__new__(LobbyArena)
        copy._occupants = dict(self._occupants)
        copy._teams = self._teams
        copy._players = dict(self._players)
        copy._version = self._version
        return copy

    def assign_pairing(self, pairing: Pairing) -> None:
        """Record ``pairing`` as every player's desired partner."""
        partners = pairing.partners()
        if set(partners) != set(self._players):
            missing = sorted(set(self._players) - set(partners))
            extra = sorted(set(partners) - set(self._players))
            raise ArenaInvariantError(f"Pairing does not cover the lobby (missing={missing}, unknown={extra})")
        for name, player in self._players.items():
            self._players[name] = replace(player, desired_partner=partners[name])
        self._version += 1

    def relocate(self, actor: str, seat: Seat) -> Relocation:
        """Apply the relocation primitive: ``actor`` moves into ``seat``.

        Whoever occupied ``seat`` takes the actor's vacated seat. Only the
        actor, the displaced occupant, and the two seats' former teammates can
        change partner.
        """
        origin = self.seat_of(actor)
        if seat == origin:
            raise ValueError(f"{actor!r} already occupies team {seat.team} slot {seat.slot}")
        if seat.team not in self._teams:
            raise ValueError(f"Unknown team {seat.team}")

        displaced = self._occupants.get(seat)
        touched = {actor, displaced, self._occupants.get(origin.opposite), self._occupants.get(seat.opposite)}
        touched.discard(None)

        self._occupants[seat] = actor
        if displaced is None:
            del self._occupants[origin]
        else:
            self._occupants[origin] = displaced

        new_seats = {actor: seat}
        if displaced is not None:
            new_seats[displaced] = origin
        for name in touched:
            record = self._players[name]
            new_seat = new_seats.get(name, record.seat)
            self._players[name] = replace(
                record,
                seat=new_seat,
                current_partner=self._occupants.get(new_seat.opposite),
            )

        self._version += 1
        self.check_invariants(touched)
        return Relocation(seat=seat, displaced=displaced)

    def check_invariants(self, names: Iterable[str] | None = None) -> None:
        """Raise ArenaInvariantError if occupancy or partner symmetry is broken."""
        for name in self._players if names is None else names:
            player = self._players[name]
            if self._occupants.get(player.seat) != name:
                raise ArenaInvariantError(f"Seat of {name!r} is occupied by {self._occupants.get(player.seat)!r}")
            partner = player.current_partner
            if partner != self._occupants.get(player.seat.opposite):
                raise ArenaInvariantError(f"Partner of {name!r} does not match occupancy")
            if partner is not None and self._players[partner].current_partner != name:
                raise ArenaInvariantError(f"Partner relation of {name!r} and {partner!r} is not symmetric")
            desired = player.desired_partner
            if desired is not None and self._players[desired].desired_partner != name:
                raise ArenaInvariantError(f"Desired partner of {name!r} and {desired!r} is not symmetric")
