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

"""
mquery - The Minecraft status checker. Supports Minecraft Java edition and Bedrock/Education/PE servers.

    >>> import asyncio, mquery
    >>> result = asyncio.run(mquery.auto_detect("mc.example.com"))
    >>> print(result.type, result.data.players.online, result.data.motd.clean)
"""

import logging

from .bedrock import parse_bedrock_payload, status_bedrock
from .client import TCPClient, UDPClient
from .detect import auto_detect, get_server_type, is_online
from .java import status
from .motd import format_motd, parse_motd, strip_formatting
from .options import (
    DEFAULT_BEDROCK_PORT,
    DEFAULT_JAVA_PORT,
    DEFAULT_TIMEOUT,
    JAVA_PROTOCOL_VERSION,
    QueryOptions,
)
from .protocol import BufferedReader, pack_varint
from .srv import get_all_srv_records, has_srv_records, resolve_srv
from .types import (
    MOTD,
    AutoDetectResponse,
    BedrockDetection,
    BedrockStatusResponse,
    ErrorCode,
    JavaDetection,
    JavaStatusResponse,
    MinecraftServerError,
    Player,
    Players,
    ProtocolError,
    SRVRecord,
    Version,
)

VERSION = "1.0.0"
"""The mquery version"""

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AutoDetectResponse",
    "BedrockDetection",
    "BedrockStatusResponse",
    "BufferedReader",
    "DEFAULT_BEDROCK_PORT",
    "DEFAULT_JAVA_PORT",
    "DEFAULT_TIMEOUT",
    "ErrorCode",
    "JAVA_PROTOCOL_VERSION",
    "JavaDetection",
    "JavaStatusResponse",
    "MOTD",
    "MinecraftServerError",
    "Player",
    "Players",
    "ProtocolError",
    "QueryOptions",
    "SRVRecord",
    "TCPClient",
    "UDPClient",
    "VERSION",
    "Version",
    "auto_detect",
    "format_motd",
    "get_all_srv_records",
    "get_server_type",
    "has_srv_records",
    "is_online",
    "pack_varint",
    "parse_bedrock_payload",
    "parse_motd",
    "resolve_srv",
    "status",
    "status_bedrock",
    "strip_formatting",
]
