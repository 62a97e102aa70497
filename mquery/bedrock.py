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
Bedrock Edition status via the RakNet `Unconnected Ping` packet.

See https://minecraft.wiki/w/RakNet#Unconnected_Ping
"""

import asyncio
import logging
from time import time

from .client import UDPClient
from .motd import format_motd
from .options import DEFAULT_BEDROCK_PORT, OptionsLike, QueryOptions, validate_target
from .srv import resolve_target
from .types import (
    BedrockStatusResponse,
    MinecraftServerError,
    Players,
    ProtocolError,
    QUERY_ERRORS,
    SRVRecord,
    Version,
)

logger = logging.getLogger(__name__)

RAKNET_MAGIC = bytes(
    [
        0x00,
        0xFF,
        0xFF,
        0x00,
        0xFE,
        0xFE,
        0xFE,
        0xFE,
        0xFD,
        0xFD,
        0xFD,
        0xFD,
        0x12,
        0x34,
        0x56,
        0x78,
    ]
)

UNCONNECTED_PING = 0x01
UNCONNECTED_PONG = 0x1C

PAYLOAD_FIELDS = [
    "edition",
    "motd_1",
    "protocol_version",
    "version",
    "current_players",
    "max_players",
    "server_id",
    "motd_2",
    "gamemode",
    "gamemode_numeric",
    "port_ipv4",
    "port_ipv6",
]


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_bedrock_payload(
    payload_str: str, server_guid: int = 0, srv_record: SRVRecord | None = None
) -> BedrockStatusResponse:
    """
    Parse the `;`-separated server ID string of an Unconnected Pong.

    Older Bedrock servers send fewer fields, missing ones default to "" or 0.
    """
    payload = dict.fromkeys(PAYLOAD_FIELDS, "")
    payload.update(zip(PAYLOAD_FIELDS, payload_str.split(";")))

    motd = payload["motd_1"]
    if payload["motd_2"]:
        motd += "\n" + payload["motd_2"]

    return BedrockStatusResponse(
        edition=payload["edition"],
        version=Version(
            name=payload["version"], protocol=_to_int(payload["protocol_version"])
        ),
        players=Players(
            online=_to_int(payload["current_players"]),
            max=_to_int(payload["max_players"]),
        ),
        motd=format_motd(motd),
        server_guid=server_guid,
        server_id=payload["server_id"],
        game_mode=payload["gamemode"],
        game_mode_id=_to_int(payload["gamemode_numeric"]),
        port_ipv4=_to_int(payload["port_ipv4"]),
        port_ipv6=_to_int(payload["port_ipv6"]),
        srv_record=srv_record,
    )


async def _query(client: UDPClient, options: QueryOptions) -> BedrockStatusResponse:
    srv_record, client.host, client.port = await resolve_target(
        client.host, client.port, options
    )
    await client.connect(options.timeout)

    # Unconnected Ping
    client.write_uint8(UNCONNECTED_PING)
    # current unix timestamp in ms
    client.write_int64(int(time() * 1000))
    client.write(RAKNET_MAGIC)
    client.write_int64(options.client_guid)
    await client.flush()

    # Unconnected Pong:
    # byte - 0x1C
    # long - echoed timestamp
    # long - server GUID
    # 16 byte - magic
    # short - server ID string length
    # string - server ID string
    packet_id = await client.read_uint8()
    if packet_id != UNCONNECTED_PONG:
        raise ProtocolError(
            f"Expected server to send packet type 0x1c, received 0x{packet_id:02x}"
        )

    await client.read_bytes(8)
    server_guid = await client.read_uint64()
    await client.read_bytes(16)

    length = await client.read_uint16()
    payload_str = await client.read_string(length)
    logger.debug("Unconnected pong from %s:%d: %r", client.host, client.port, payload_str)

    try:
        return parse_bedrock_payload(payload_str, server_guid, srv_record)
    except RecursionError as e:
        raise ProtocolError(f"Malformed server ID string: {e}") from e


async def status_bedrock(
    host: str, port: int = DEFAULT_BEDROCK_PORT, options: OptionsLike = None
) -> BedrockStatusResponse:
    """
    Query the status of a Minecraft Bedrock/Education Edition server.

    :param host: Hostname or IP address of the Minecraft server.
    :param port: Optional port of the Minecraft server. Defaults to 19132.
    :param options: Optional `QueryOptions` (or a mapping of its fields).
    :raises TypeError, ValueError: The arguments are invalid, nothing was sent.
    :raises MinecraftServerError: The server could not be queried.
    """
    host, port, options = validate_target(host, port, options)

    client = UDPClient(host, port)
    try:
        return await asyncio.wait_for(_query(client, options), options.timeout / 1000)
    except asyncio.TimeoutError as e:
        raise MinecraftServerError.wrap(
            TimeoutError(str(e) or f"Server did not respond within {options.timeout}ms"),
            host,
            port,
        ) from e
    except QUERY_ERRORS as e:
        raise MinecraftServerError.wrap(e, host, port) from e
    finally:
        client.close()
