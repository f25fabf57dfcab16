from abc import ABC, abstractmethod

from teamshuffle.lcu.types import Lobby


class LobbyService(ABC):
    """
    Abstract interface to the game client's lobby and chat endpoints.

    This abstraction allows the reshuffle pipeline to be tested
    without a running game client.
    """

    @abstractmethod
    async def get_current_summoner(self) -> str:
        """
        Return the display name (``gameName#tagLine``) of the logged-in account.
        """
        ...

    @abstractmethod
    async def get_lobby(self) -> Lobby:
        """
        Return the current lobby with every member's display name resolved.
        """
        ...

    @abstractmethod
    async def move_to_seat(self, team: int, slot: int) -> None:
        """
        Move the logged-in account into the given team and slot.

        Whoever occupies that seat is moved into the caller's old seat.
        """
        ...

    @abstractmethod
    async def send_message(self, messages_url: str, body: str) -> None:
        """
        Post a chat message to a conversation's messages endpoint.
        """
        ...
