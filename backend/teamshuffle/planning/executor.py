from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from teamshuffle.lcu.client import LcuRequestError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from teamshuffle.lcu.service import LobbyService
    from teamshuffle.planning.models import Relocation

logger = structlog.get_logger()


@dataclass
class ExecutionReport:
    issued: list[Relocation] = field(default_factory=list)
    failed: list[Relocation] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed


class RelocationExecutor:
    """Issues planned relocations one at a time, in order.

    Each relocation assumes the lobby is in the state the previous one left
    it in, so they are never issued concurrently. A failed relocation is
    logged and skipped, not retried.
    """

    def __init__(self, service: LobbyService) -> None:
        self._service = service

    async def execute(self, relocations: Iterable[Relocation]) -> ExecutionReport:
        report = ExecutionReport()
        for step, relocation in enumerate(relocations, start=1):
            try:
                await self._service.move_to_seat(relocation.team, int(relocation.slot))
            except LcuRequestError as e:
                logger.warning(
                    "relocation failed, continuing",
                    step=step,
                    team=relocation.team,
                    slot=relocation.slot,
                    error=str(e),
                )
                report.failed.append(relocation)
                continue
            report.issued.append(relocation)
        return report
