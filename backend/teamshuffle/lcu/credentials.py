"""Connection details for the local game client API.

The client writes a lockfile while it runs, formatted as
``<process name>:<pid>:<port>:<password>:<protocol>``. The API always
authenticates as user ``riot``.
"""

from dataclasses import dataclass
from pathlib import Path

LCU_USERNAME = "riot"
LCU_ADDRESS = "127.0.0.1"
_LOCKFILE_FIELDS = 5


class CredentialsError(Exception):
    pass


@dataclass(frozen=True)
class LcuCredentials:
    port: int
    password: str
    protocol: str = "https"
    address: str = LCU_ADDRESS
    username: str = LCU_USERNAME

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.address}:{self.port}"


def parse_lockfile(content: str) -> LcuCredentials:
    parts = content.strip().split(":")
    if len(parts) != _LOCKFILE_FIELDS:
        raise CredentialsError(f"Expected {_LOCKFILE_FIELDS} ':'-separated fields in lockfile, got {len(parts)}")
    _name, _pid, port, password, protocol = parts
    if not port.isdigit():
        raise CredentialsError(f"Invalid port in lockfile: {port!r}")
    if protocol not in {"http", "https"}:
        raise CredentialsError(f"Invalid protocol in lockfile: {protocol!r}")
    if not password:
        raise CredentialsError("Lockfile has an empty password")
    return LcuCredentials(port=int(port), password=password, protocol=protocol)


def read_lockfile(path: Path | str) -> LcuCredentials:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialsError(f"Cannot read lockfile {path}: {e}") from e
    return parse_lockfile(content)
