# minestat.py - A Minecraft server status checker
# Copyright (C) 2016-2023 Lloyd Dilley, Felix Ern (MindSolve)
# http://www.dilley.me/
#
# Secondary optimization and customization are carried out by @molanp.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Literal


class ErrorCode(Enum):
    """
    Classifies why a status query failed.

    - `TIMEOUT`: The server did not answer within the configured timeout.
    - `CONNECTION_REFUSED`: The connection was actively refused (nothing listening on that port?)
    - `INVALID_RESPONSE`: The server answered, but not with a well-formed status packet.
    - `UNSUPPORTED_PROTOCOL`: The server spoke a protocol this library does not understand.
    - `AUTHENTICATION_FAILED`: Reserved, status queries never authenticate.
    - `SERVER_OFFLINE`: The server could not be queried. Default code of every `MinecraftServerError`.
    """

    def __str__(self) -> str:
        return str(self.name)

    TIMEOUT = "TIMEOUT"
    """The server did not answer within the configured timeout."""

    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    """The connection was actively refused."""

    INVALID_RESPONSE = "INVALID_RESPONSE"
    """The server answered with a malformed or unexpected packet."""

    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"
    """The server spoke an unknown/unsupported protocol."""

    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    """Reserved for login flows, never raised by status queries."""

    SERVER_OFFLINE = "SERVER_OFFLINE"
    """The server could not be queried."""


class ProtocolError(Exception):
    """Raised while decoding a packet that does not follow the protocol."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_RESPONSE):
        super().__init__(message)
        self.code = code


class MinecraftServerError(Exception):
    """
    A status query against `host`:`port` failed.

    `code` is always `SERVER_OFFLINE` for errors raised by the query functions,
    `reason` keeps the finer classification of the underlying failure.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_OFFLINE,
        host: str = "",
        port: int = 0,
        reason: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.host = host
        self.port = port
        self.reason = code if reason is None else reason

    def __repr__(self) -> str:
        return (
            f"MinecraftServerError({self.message!r}, code={self.code}, "
            f"host={self.host!r}, port={self.port}, reason={self.reason})"
        )

    @classmethod
    def wrap(cls, exc: BaseException, host: str, port: int) -> "MinecraftServerError":
        """Build the facade error for a transport or protocol failure."""
        message = str(exc) or type(exc).__name__
        return cls(message, ErrorCode.SERVER_OFFLINE, host, port, classify_error(exc))


QUERY_ERRORS = (OSError, asyncio.TimeoutError, ProtocolError, ValueError)
"""Failures of a single query attempt, wrapped into a `MinecraftServerError`"""


def classify_error(exc: BaseException) -> ErrorCode:
    if isinstance(exc, ProtocolError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, ConnectionRefusedError):
        return ErrorCode.CONNECTION_REFUSED
    # json.JSONDecodeError and UnicodeDecodeError
    if isinstance(exc, ValueError):
        return ErrorCode.INVALID_RESPONSE
    return ErrorCode.SERVER_OFFLINE


@dataclass(frozen=True)
class SRVRecord:
    host: str
    port: int
    priority: int
    weight: int


@dataclass(frozen=True)
class Version:
    name: str
    protocol: int


@dataclass(frozen=True)
class Player:
    name: str
    id: str


@dataclass(frozen=True)
class Players:
    online: int
    max: int
    sample: tuple[Player, ...] | None = None
    """Sample of online players, `None` if the server did not send one"""


@dataclass(frozen=True)
class MOTD:
    raw: str
    """message of the day with `§` formatting codes"""
    clean: str
    """message of the day, stripped of all formatting ("human-readable")"""
    html: str
    """message of the day rendered as HTML"""


@dataclass(frozen=True)
class JavaStatusResponse:
    version: Version
    players: Players
    motd: MOTD
    favicon: str | None
    """base64-encoded `data:image/png` favicon, if the server has one"""
    srv_record: SRVRecord | None
    round_trip_latency: int
    """ping/pong round trip time in milliseconds"""


@dataclass(frozen=True)
class BedrockStatusResponse:
    edition: str
    """`MCPE` or `MCEE` (Education Edition)"""
    version: Version
    players: Players
    motd: MOTD
    server_guid: int
    server_id: str
    game_mode: str
    game_mode_id: int
    port_ipv4: int
    port_ipv6: int
    srv_record: SRVRecord | None
    round_trip_latency: int = 0
    """not measured for Bedrock, always 0"""


@dataclass(frozen=True)
class JavaDetection:
    data: JavaStatusResponse
    type: Literal["java"] = "java"


@dataclass(frozen=True)
class BedrockDetection:
    data: BedrockStatusResponse
    type: Literal["bedrock"] = "bedrock"


AutoDetectResponse = JavaDetection | BedrockDetection
