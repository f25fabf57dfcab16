from pydantic import BaseModel, ConfigDict, Field


class _LcuModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Summoner(_LcuModel):
    puuid: str = ""
    game_name: str = Field(alias="gameName")
    tag_line: str = Field(alias="tagLine")

    @property
    def display_name(self) -> str:
        return f"{self.game_name}#{self.tag_line}"


class LobbyMember(_LcuModel):
    puuid: str
    team: int = Field(alias="subteamIndex")
    slot: int = Field(alias="intraSubteamPosition")
    # filled in from the summoner endpoint after the lobby is fetched
    summoner_name: str | None = None


class GameConfig(_LcuModel):
    max_lobby_size: int = Field(default=0, alias="maxLobbySize")
    queue_id: int = Field(default=-1, alias="queueId")


class Lobby(_LcuModel):
    party_id: str = Field(default="", alias="partyId")
    game_config: GameConfig = Field(default_factory=GameConfig, alias="gameConfig")
    members: list[LobbyMember] = Field(default_factory=list)


class SubteamUpdate(_LcuModel):
    team: int = Field(serialization_alias="subteamIndex")
    slot: int = Field(serialization_alias="intraSubteamPosition")
