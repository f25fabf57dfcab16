from __future__ import annotations

import asyncio
import re
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from teamshuffle.lcu.client import LcuRequestError
from teamshuffle.planning.executor import RelocationExecutor
from teamshuffle.planning.pairing import generate_new_pairing, generate_pairing
from teamshuffle.planning.planner import MAX_RELOCATIONS, PlanningError, plan_reshuffle
from teamshuffle.planning.snapshot import SnapshotError, build_arena
from teamshuffle.plugin.events import CONVERSATIONS_EVENT, ConversationEvent
from teamshuffle.plugin.roster import format_roster

if TYPE_CHECKING:
    import random

    from teamshuffle.lcu.service import LobbyService
    from teamshuffle.planning.models import Pairing
    from teamshuffle.planning.snapshot import EligibilityRules
    from teamshuffle.plugin.dispatcher import EventDispatcher

logger = structlog.get_logger()

SHUFFLE_COMMAND_PATTERN = r"/rand teams?"
MESSAGE_CREATED = "Create"
GROUP_CHAT = "groupchat"


class ReshuffleOutcome(StrEnum):
    IGNORED = "ignored"
    BUSY = "busy"
    FAILED = "failed"
    PARTIAL = "partial"
    COMPLETED = "completed"


class RandomizeTeamsPlugin:
    """Reshuffles two-player teams when someone types the shuffle command in lobby chat.

    Lifecycle: the host calls ``on_connect`` once with its dispatcher; the
    plugin looks up its own account and subscribes ``on_event`` to chat
    conversation events.
    """

    def __init__(
        self,
        service: LobbyService,
        *,
        rules: EligibilityRules | None = None,
        rng: random.Random | None = None,
        max_relocations: int = MAX_RELOCATIONS,
        always_new_teams: bool = False,
        command_pattern: str = SHUFFLE_COMMAND_PATTERN,
    ) -> None:
        self._service = service
        self._executor = RelocationExecutor(service)
        self._rules = rules
        self._rng = rng
        self._max_relocations = max_relocations
        self._always_new_teams = always_new_teams
        self._command = re.compile(command_pattern, re.IGNORECASE)
        # the account sits in one lobby, so one reshuffle at a time across all conversations
        self._lock = asyncio.Lock()
        self._actor: str | None = None

    @property
    def actor(self) -> str | None:
        return self._actor

    async def on_connect(self, dispatcher: EventDispatcher) -> None:
        self._actor = await self._service.get_current_summoner()
        dispatcher.subscribe(CONVERSATIONS_EVENT, self.on_event)
        logger.info("plugin ready", actor=self._actor)

    async def on_event(self, payload: dict[str, Any]) -> None:
        try:
            event = ConversationEvent.model_validate(payload)
        except ValidationError:
            logger.debug("ignoring unrecognized conversation event")
            return
        if not self.is_trigger(event):
            return
        await self.handle_command(event.messages_url)

    def is_trigger(self, event: ConversationEvent) -> bool:
        if event.event_type != MESSAGE_CREATED or event.data is None:
            return False
        if event.data.type != GROUP_CHAT:
            return False
        return self._command.fullmatch(event.data.body) is not None

    async def handle_command(self, messages_url: str) -> ReshuffleOutcome:
        """Run one reshuffle announced in a conversation, rejecting overlapping triggers."""
        if self._lock.locked():
            logger.info("reshuffle already running, ignoring trigger", conversation=messages_url)
            return ReshuffleOutcome.BUSY

        async with self._lock:
            with structlog.contextvars.bound_contextvars(conversation=messages_url):
                try:
                    return await self.reshuffle(messages_url)
                except (LcuRequestError, SnapshotError, PlanningError):
                    logger.exception("reshuffle aborted")
                    return ReshuffleOutcome.FAILED

    async def reshuffle(self, messages_url: str) -> ReshuffleOutcome:
        if self._actor is None:
            raise RuntimeError("Plugin is not connected")

        lobby = await self._service.get_lobby()
        arena = build_arena(lobby, self._rules)
        if arena is None:
            return ReshuffleOutcome.IGNORED

        if self._always_new_teams:
            target = generate_new_pairing(arena.current_pairing(), self._rng)
        else:
            target = generate_pairing(arena.names, self._rng)

        plan = plan_reshuffle(arena, self._actor, target, self._max_relocations)
        logger.info("reshuffle planned", players=len(arena), relocations=len(plan))

        await self._announce(messages_url, target)

        report = await self._executor.execute(plan.relocations)
        if not report.succeeded:
            logger.warning(
                "reshuffle finished with failed relocations",
                issued=len(report.issued),
                failed=len(report.failed),
            )
            return ReshuffleOutcome.PARTIAL

        logger.info("reshuffle completed", relocations=len(report.issued))
        return ReshuffleOutcome.COMPLETED

    async def _announce(self, messages_url: str, target: Pairing) -> None:
        try:
            await self._service.send_message(messages_url, format_roster(target))
        except LcuRequestError:
            logger.exception("roster announcement failed")
