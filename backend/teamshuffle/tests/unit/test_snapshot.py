import logging

import pytest

from teamshuffle.lcu.types import GameConfig, Lobby, LobbyMember
from teamshuffle.planning.models import Seat, Slot
from teamshuffle.planning.snapshot import DOUBLE_UP_QUEUES, EligibilityRules, SnapshotError, build_arena
from teamshuffle.tests.mocks import DOUBLE_UP_QUEUE_ID, make_lobby


class TestEligibilityRules:
    def test_arena_lobby_size_is_eligible(self):
        assert EligibilityRules().allows(GameConfig(max_lobby_size=16, queue_id=-1))

    def test_double_up_queue_is_eligible(self):
        assert EligibilityRules().allows(GameConfig(max_lobby_size=8, queue_id=1160))

    def test_other_lobbies_are_not(self):
        assert not EligibilityRules().allows(GameConfig(max_lobby_size=10, queue_id=420))

    def test_mock_lobbies_sit_in_double_up_queue(self):
        lobby = make_lobby({"A": (1, 1)}, max_lobby_size=8)

        assert DOUBLE_UP_QUEUE_ID in DOUBLE_UP_QUEUES
        assert EligibilityRules().allows(lobby.game_config)

    def test_custom_rules(self):
        rules = EligibilityRules(lobby_sizes=frozenset({10}), queue_ids=frozenset())

        assert rules.allows(GameConfig(max_lobby_size=10, queue_id=420))
        assert not rules.allows(GameConfig(max_lobby_size=16, queue_id=1160))


class TestBuildArena:
    def test_ineligible_lobby_returns_none(self, caplog):
        caplog.set_level(logging.INFO)
        lobby = make_lobby({"A": (1, 1)}, max_lobby_size=10, queue_id=420)

        assert build_arena(lobby) is None
        assert "not a two-player team lobby" in caplog.text

    def test_seats_and_partners(self):
        lobby = make_lobby({"A": (1, 1), "B": (1, 2), "C": (3, 2)})

        arena = build_arena(lobby)

        assert arena is not None
        assert arena.seat_of("C") == Seat(3, Slot.SECOND)
        assert arena.partner_of("A") == "B"
        assert arena.partner_of("C") is None

    def test_knows_every_team_of_the_lobby(self):
        arena = build_arena(make_lobby({"A": (1, 1)}))

        assert arena is not None
        assert arena.teams == tuple(range(1, 9))
        assert len(arena.empty_seats()) == 15

    def test_preserves_member_order(self):
        arena = build_arena(make_lobby({"C": (2, 1), "A": (1, 1), "B": (1, 2)}))

        assert arena is not None
        assert arena.names == ["C", "A", "B"]

    def test_falls_back_to_puuid_without_name(self):
        lobby = Lobby(
            game_config=GameConfig(max_lobby_size=16, queue_id=1160),
            members=[LobbyMember(puuid="puuid-1", team=1, slot=1)],
        )

        arena = build_arena(lobby)

        assert arena is not None
        assert arena.names == ["puuid-1"]

    def test_parses_client_payload(self):
        lobby = Lobby.model_validate(
            {
                "partyId": "p",
                "gameConfig": {"maxLobbySize": 16, "queueId": 1700},
                "members": [
                    {"puuid": "x", "subteamIndex": 2, "intraSubteamPosition": 2, "ready": True},
                ],
            },
        )

        arena = build_arena(lobby)

        assert arena is not None
        assert arena.seat_of("x") == Seat(2, Slot.SECOND)

    def test_duplicate_member_raises(self):
        lobby = make_lobby({"A": (1, 1)})
        lobby.members.append(LobbyMember(puuid="A", team=2, slot=1, summoner_name="A"))

        with pytest.raises(SnapshotError, match="Duplicate"):
            build_arena(lobby)

    def test_invalid_slot_raises(self):
        with pytest.raises(SnapshotError, match="Invalid slot"):
            build_arena(make_lobby({"A": (1, 3)}))

    def test_shared_seat_raises(self):
        lobby = make_lobby({"A": (1, 1), "B": (1, 1)})

        with pytest.raises(SnapshotError, match="both occupy"):
            build_arena(lobby)
