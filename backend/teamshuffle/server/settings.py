"""Shuffler service configuration via environment variables."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.retry import RetryPolicy
from shared.validators import RawListEnvSettingsSource, parse_int_list
from teamshuffle.lcu.credentials import LCU_ADDRESS, CredentialsError, LcuCredentials, read_lockfile
from teamshuffle.planning.planner import MAX_RELOCATIONS
from teamshuffle.planning.snapshot import ARENA_LOBBY_SIZE, DOUBLE_UP_QUEUES, EligibilityRules
from teamshuffle.plugin.plugin import SHUFFLE_COMMAND_PATTERN

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ShufflerSettings(BaseSettings):
    model_config = {"env_prefix": "SHUFFLER_"}

    log_dir: str = Field(default="backend/logs/shuffler", min_length=1)

    # Either a lockfile, or an explicit port and password.
    lockfile_path: Path | None = None
    lcu_port: int | None = Field(default=None, ge=1, le=65535)
    lcu_password: str | None = None
    lcu_protocol: str = Field(default="https", pattern=r"^https?$")
    lcu_address: str = LCU_ADDRESS
    lcu_verify_tls: bool = False
    request_timeout_seconds: float = Field(default=5.0, gt=0)

    startup_retries: int = Field(default=20, ge=0)
    startup_retry_delay_seconds: float = Field(default=1.0, ge=0)
    query_retries: int = Field(default=2, ge=0)
    query_retry_delay_seconds: float = Field(default=0.5, ge=0)
    message_retries: int = Field(default=2, ge=0)
    message_retry_delay_seconds: float = Field(default=0.2, ge=0)

    max_relocations: int = Field(default=MAX_RELOCATIONS, ge=1)
    always_new_teams: bool = False
    command_pattern: str = SHUFFLE_COMMAND_PATTERN
    eligible_lobby_sizes: list[int] = [ARENA_LOBBY_SIZE]
    eligible_queue_ids: list[int] = sorted(DOUBLE_UP_QUEUES)
    pairing_seed: str | None = None

    @field_validator("eligible_lobby_sizes", "eligible_queue_ids", mode="before")
    @classmethod
    def validate_int_lists(cls, v: str | list[int] | list[str]) -> list[int]:
        return parse_int_list(v, allow_empty=True)

    @field_validator("command_pattern")
    @classmethod
    def validate_command_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid command pattern: {e}") from e
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, RawListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings

    def credentials(self) -> LcuCredentials:
        """Resolve client credentials, preferring the lockfile when one is configured."""
        if self.lockfile_path is not None:
            return read_lockfile(self.lockfile_path)
        if self.lcu_port is None or not self.lcu_password:
            raise CredentialsError("Set SHUFFLER_LOCKFILE_PATH or both SHUFFLER_LCU_PORT and SHUFFLER_LCU_PASSWORD")
        return LcuCredentials(
            port=self.lcu_port,
            password=self.lcu_password,
            protocol=self.lcu_protocol,
            address=self.lcu_address,
        )

    def eligibility_rules(self) -> EligibilityRules:
        return EligibilityRules(
            lobby_sizes=frozenset(self.eligible_lobby_sizes),
            queue_ids=frozenset(self.eligible_queue_ids),
        )

    def startup_retry(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.startup_retries + 1, delay_seconds=self.startup_retry_delay_seconds)

    def query_retry(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.query_retries + 1, delay_seconds=self.query_retry_delay_seconds)

    def message_retry(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.message_retries + 1, delay_seconds=self.message_retry_delay_seconds)
