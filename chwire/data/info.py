"""Client and server identification exchanged in the hello packets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import BinaryIO
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from chwire.columns.common import read_string, read_uvarint, write_string, write_uvarint
from chwire.protocol import DBMS_MIN_REVISION_WITH_SERVER_TIMEZONE

CLIENT_NAME = "chwire SQLDriver"
CLIENT_REVISION = 54213
CLIENT_VERSION_MAJOR = 1
CLIENT_VERSION_MINOR = 1


class ClientInfo:
    """The client's name and version as sent in its hello packet."""

    def write(self, stream: BinaryIO) -> None:
        """Write the client name, major and minor version and revision."""
        write_string(stream, CLIENT_NAME)
        write_uvarint(stream, CLIENT_VERSION_MAJOR)
        write_uvarint(stream, CLIENT_VERSION_MINOR)
        write_uvarint(stream, CLIENT_REVISION)

    def __str__(self) -> str:
        return f"{CLIENT_NAME} {CLIENT_VERSION_MAJOR}.{CLIENT_VERSION_MINOR}.{CLIENT_REVISION}"


def _load_timezone(name: str) -> tzinfo:
    if name in ("", "UTC"):
        return timezone.utc
    if name == "Local":
        local = datetime.now().astimezone().tzinfo
        return local if local is not None else timezone.utc
    return ZoneInfo(name)


@dataclass
class ServerInfo:
    """The server's name, version and time zone from its hello packet."""

    name: str = ""
    revision: int = 0
    minor_version: int = 0
    major_version: int = 0
    timezone: tzinfo | None = None

    @classmethod
    def read(cls, stream: BinaryIO) -> "ServerInfo":
        """Read a server hello body from ``stream``."""
        info = cls()
        steps = (
            ("name", "server name", read_string),
            ("major_version", "server major version", read_uvarint),
            ("minor_version", "server minor version", read_uvarint),
            ("revision", "server revision", read_uvarint),
        )
        for attribute, label, reader in steps:
            try:
                setattr(info, attribute, reader(stream))
            except (EOFError, OverflowError) as err:
                raise ValueError(f"could not read {label}: {err}") from err
        if info.revision >= DBMS_MIN_REVISION_WITH_SERVER_TIMEZONE:
            try:
                zone_name = read_string(stream)
            except (EOFError, OverflowError) as err:
                raise ValueError(f"could not read server timezone: {err}") from err
            try:
                info.timezone = _load_timezone(zone_name)
            except (ZoneInfoNotFoundError, ValueError) as err:
                raise ValueError(f"could not load time location: {err}") from err
        return info

    def __str__(self) -> str:
        zone = self.timezone
        if zone is None:
            zone_name = "UTC"
        else:
            zone_name = getattr(zone, "key", None) or str(zone)
        return (
            f"{self.name} {self.major_version}.{self.minor_version}."
            f"{self.revision} ({zone_name})"
        )