from __future__ import annotations

import asyncio
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from shared.retry import RetryPolicy
from teamshuffle.lcu.service import LobbyService
from teamshuffle.lcu.types import Lobby, Summoner, SubteamUpdate

if TYPE_CHECKING:
    from types import TracebackType

    from teamshuffle.lcu.credentials import LcuCredentials

logger = structlog.get_logger()

CURRENT_SUMMONER_ENDPOINT = "/lol-summoner/v1/current-summoner"
SUMMONER_ENDPOINT = "/lol-summoner/v2/summoners/puuid/"
LOBBY_ENDPOINT = "/lol-lobby/v2/lobby"
SUBTEAM_UPDATE_ENDPOINT = "/lol-lobby/v2/lobby/subteamData"

# The client answers 404 and refuses connections for a while after launch.
DEFAULT_STARTUP_RETRY = RetryPolicy(max_attempts=21, delay_seconds=1.0)
DEFAULT_QUERY_RETRY = RetryPolicy(max_attempts=3, delay_seconds=0.5)
DEFAULT_MESSAGE_RETRY = RetryPolicy(max_attempts=3, delay_seconds=0.2)


class LcuRequestError(Exception):
    pass


def _is_startup_error(exc: Exception) -> bool:
    """Connection refused or a non-5xx status while the client boots."""
    if isinstance(exc, httpx.ConnectError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code < HTTPStatus.INTERNAL_SERVER_ERROR
    return False


def _is_transient_error(exc: Exception) -> bool:
    if isinstance(exc, httpx.RequestError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR
    return False


class LcuClient(LobbyService):
    def __init__(
        self,
        credentials: LcuCredentials,
        *,
        verify: bool = False,
        timeout: float = 5.0,
        startup_retry: RetryPolicy = DEFAULT_STARTUP_RETRY,
        query_retry: RetryPolicy = DEFAULT_QUERY_RETRY,
        message_retry: RetryPolicy = DEFAULT_MESSAGE_RETRY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=credentials.base_url,
            auth=(credentials.username, credentials.password),
            verify=verify,
            timeout=timeout,
            transport=transport,
        )
        self._startup_retry = startup_retry
        self._query_retry = query_retry
        self._message_retry = message_retry

    async def __aenter__(self) -> LcuClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:  # noqa: ANN401
        response = await self._http.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    async def _get_json(self, url: str) -> Any:  # noqa: ANN401
        response = await self._request("GET", url)
        return response.json()

    async def get_current_summoner(self) -> str:
        try:
            data = await self._startup_retry.run(
                lambda: self._get_json(CURRENT_SUMMONER_ENDPOINT),
                should_retry=_is_startup_error,
                description="get current summoner",
            )
            return Summoner.model_validate(data).display_name
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            raise LcuRequestError(f"Failed to get current summoner: {e}") from e

    async def get_summoner(self, puuid: str) -> Summoner:
        try:
            data = await self._query_retry.run(
                lambda: self._get_json(SUMMONER_ENDPOINT + puuid),
                should_retry=_is_transient_error,
                description="get summoner",
            )
            return Summoner.model_validate(data)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            raise LcuRequestError(f"Failed to get summoner {puuid}: {e}") from e

    async def get_lobby(self) -> Lobby:
        try:
            data = await self._query_retry.run(
                lambda: self._get_json(LOBBY_ENDPOINT),
                should_retry=_is_transient_error,
                description="get lobby",
            )
            lobby = Lobby.model_validate(data)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            raise LcuRequestError(f"Failed to get lobby: {e}") from e

        summoners = await asyncio.gather(*(self.get_summoner(member.puuid) for member in lobby.members))
        for member, summoner in zip(lobby.members, summoners, strict=True):
            member.summoner_name = summoner.display_name
        logger.debug("lobby fetched", members=len(lobby.members), queue_id=lobby.game_config.queue_id)
        return lobby

    async def move_to_seat(self, team: int, slot: int) -> None:
        # not retried: a late duplicate would move the actor twice
        body = SubteamUpdate(team=team, slot=slot).model_dump(by_alias=True)
        try:
            await self._request("PUT", SUBTEAM_UPDATE_ENDPOINT, json=body)
        except httpx.HTTPError as e:
            raise LcuRequestError(f"Failed to move to team {team} slot {slot}: {e}") from e

    async def send_message(self, messages_url: str, body: str) -> None:
        try:
            await self._message_retry.run(
                lambda: self._request("POST", messages_url, json={"body": body}),
                should_retry=_is_transient_error,
                description="send message",
            )
        except httpx.HTTPError as e:
            raise LcuRequestError(f"Failed to send message: {e}") from e
