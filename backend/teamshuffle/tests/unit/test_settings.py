import pytest
from pydantic import ValidationError

from teamshuffle.lcu.credentials import CredentialsError
from teamshuffle.planning.snapshot import EligibilityRules
from teamshuffle.server.settings import ShufflerSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "SHUFFLER_LOCKFILE_PATH",
        "SHUFFLER_LCU_PORT",
        "SHUFFLER_LCU_PASSWORD",
        "SHUFFLER_ELIGIBLE_LOBBY_SIZES",
        "SHUFFLER_ELIGIBLE_QUEUE_IDS",
        "SHUFFLER_ALWAYS_NEW_TEAMS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestShufflerSettings:
    def test_defaults(self):
        settings = ShufflerSettings()

        assert settings.max_relocations == 20
        assert settings.always_new_teams is False
        assert settings.eligibility_rules() == EligibilityRules()

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("SHUFFLER_ALWAYS_NEW_TEAMS", "true")
        monkeypatch.setenv("SHUFFLER_MAX_RELOCATIONS", "12")

        settings = ShufflerSettings()

        assert settings.always_new_teams is True
        assert settings.max_relocations == 12

    @pytest.mark.parametrize("raw", ["16,10", "[16, 10]", " 16 , 10 "])
    def test_int_lists_from_env(self, monkeypatch, raw):
        monkeypatch.setenv("SHUFFLER_ELIGIBLE_LOBBY_SIZES", raw)

        assert ShufflerSettings().eligible_lobby_sizes == [16, 10]

    def test_invalid_int_list_rejected(self, monkeypatch):
        monkeypatch.setenv("SHUFFLER_ELIGIBLE_QUEUE_IDS", "1160,arena")

        with pytest.raises(ValidationError, match="must be integers"):
            ShufflerSettings()

    def test_invalid_command_pattern_rejected(self):
        with pytest.raises(ValidationError, match="Invalid command pattern"):
            ShufflerSettings(command_pattern="(")

    def test_retry_policies_count_first_attempt(self):
        settings = ShufflerSettings(query_retries=0, message_retries=4, startup_retries=2)

        assert settings.query_retry().max_attempts == 1
        assert settings.message_retry().max_attempts == 5
        assert settings.startup_retry().max_attempts == 3


class TestCredentials:
    def test_prefers_lockfile(self, tmp_path):
        lockfile = tmp_path / "lockfile"
        lockfile.write_text("LeagueClient:1:4444:from-file:https")

        settings = ShufflerSettings(lockfile_path=lockfile, lcu_port=5555, lcu_password="explicit")

        assert settings.credentials().port == 4444

    def test_explicit_port_and_password(self):
        credentials = ShufflerSettings(lcu_port=5555, lcu_password="pw", lcu_protocol="http").credentials()

        assert credentials.base_url == "http://127.0.0.1:5555"
        assert credentials.password == "pw"

    def test_missing_credentials_raise(self):
        with pytest.raises(CredentialsError, match="SHUFFLER_LOCKFILE_PATH"):
            ShufflerSettings().credentials()
