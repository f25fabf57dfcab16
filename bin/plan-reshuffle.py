"""Dry-run a team reshuffle against a saved lobby.

Reads a lobby payload as returned by GET /lol-lobby/v2/lobby, draws a target
pairing, and prints the roster announcement and the relocations the actor
would issue. Nothing is sent to the game client.

Usage:
    uv run python bin/plan-reshuffle.py lobby.json --actor <puuid>
    uv run python bin/plan-reshuffle.py lobby.json --actor <puuid> --seed 42 --new-teams
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from shared.logging import setup_logging
from teamshuffle.lcu.types import Lobby
from teamshuffle.planning.pairing import create_pairing_rng, generate_new_pairing, generate_pairing
from teamshuffle.planning.planner import MAX_RELOCATIONS, PlanningError, plan_reshuffle
from teamshuffle.planning.snapshot import SnapshotError, build_arena
from teamshuffle.plugin.roster import format_roster


def _load_lobby(path: Path) -> Lobby:
    try:
        return Lobby.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as e:
        print(f"Cannot load lobby from {path}: {e}", file=sys.stderr)
        sys.exit(1)


def dry_run(lobby: Lobby, actor: str, seed: str | None, *, new_teams: bool, max_relocations: int) -> int:
    """Print the plan for one reshuffle. Returns the process exit code."""
    try:
        arena = build_arena(lobby)
    except SnapshotError as e:
        print(f"Invalid lobby: {e}", file=sys.stderr)
        return 1
    if arena is None:
        print("Lobby does not play in two-player teams, nothing to do.")
        return 0

    rng = create_pairing_rng(seed)
    target = generate_new_pairing(arena.current_pairing(), rng) if new_teams else generate_pairing(arena.names, rng)

    try:
        plan = plan_reshuffle(arena, actor, target, max_relocations)
    except PlanningError as e:
        print(f"Planning failed: {e}", file=sys.stderr)
        return 1

    print(format_roster(target))
    print()
    print(f"{len(plan)} relocation(s) for {actor}:")
    for step, relocation in enumerate(plan.relocations, start=1):
        swapped = f", swapping with {relocation.displaced}" if relocation.displaced else ""
        print(f"  {step:>2}. team {relocation.team} slot {int(relocation.slot)}{swapped}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Plan a team reshuffle without touching the game client")
    parser.add_argument("lobby", type=Path, help="Path to a saved lobby JSON payload")
    parser.add_argument("--actor", required=True, help="Member name (or puuid) of the account that moves")
    parser.add_argument("--seed", default=None, help="Seed for a reproducible pairing")
    parser.add_argument("--new-teams", action="store_true", help="Never keep the current pairing")
    parser.add_argument("--max-relocations", type=int, default=MAX_RELOCATIONS)
    parser.add_argument("--verbose", action="store_true", help="Log every planned relocation")
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    lobby = _load_lobby(args.lobby)
    sys.exit(
        dry_run(
            lobby,
            args.actor,
            args.seed,
            new_teams=args.new_teams,
            max_relocations=args.max_relocations,
        ),
    )


if __name__ == "__main__":
    main()
