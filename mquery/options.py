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

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_JAVA_PORT = 25565
"""default TCP port for SLP queries"""
DEFAULT_BEDROCK_PORT = 19132
"""default UDP port for Bedrock/MCPE servers"""
DEFAULT_TIMEOUT = 5000
"""default timeout in milliseconds"""
JAVA_PROTOCOL_VERSION = 47
"""protocol version sent in the Java handshake"""


class QueryOptions(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)

    timeout: int = Field(default=DEFAULT_TIMEOUT, ge=0)
    """timeout in milliseconds for one query, auto detection gives each protocol half of it"""
    enable_srv: bool = Field(default=True)
    """resolve `_minecraft._tcp` SRV records before connecting"""
    protocol: int = Field(default=JAVA_PROTOCOL_VERSION)
    """Java only, the handshake always announces protocol 47"""
    try_java_first: bool = Field(default=True)
    """auto detection only, query Java before Bedrock"""
    client_guid: int = Field(default=2, ge=-(2**63), le=2**63 - 1)
    """Bedrock only, client GUID sent in the unconnected ping"""


OptionsLike = QueryOptions | Mapping | None


def parse_options(options: OptionsLike) -> QueryOptions:
    if options is None:
        return QueryOptions()
    if isinstance(options, QueryOptions):
        return options
    if isinstance(options, Mapping):
        return QueryOptions.model_validate(dict(options))
    raise TypeError(
        f"Expected 'options' to be a QueryOptions, a mapping or None, got '{type(options).__name__}'"
    )


def validate_target(
    host: str, port: int, options: OptionsLike = None
) -> tuple[str, int, QueryOptions]:
    """
    Check the arguments of a query before any network I/O happens.

    Invalid arguments raise TypeError or ValueError, they are never wrapped in
    a `MinecraftServerError`.

    :return: The trimmed host, the port and the parsed options.
    """
    if not isinstance(host, str):
        raise TypeError(f"Expected 'host' to be a 'str', got '{type(host).__name__}'")
    host = host.strip()
    if not host:
        raise ValueError("Expected host to have a length greater than 0")

    if isinstance(port, bool) or not isinstance(port, int):
        raise TypeError(f"Expected 'port' to be an 'int', got '{type(port).__name__}'")
    if not 0 <= port <= 65535:
        raise ValueError(f"Expected 'port' to be between 0 and 65535, got '{port}'")

    return host, port, parse_options(options)
