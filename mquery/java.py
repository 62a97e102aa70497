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
Java Edition Server List Ping (Minecraft 1.7+).

See https://minecraft.wiki/w/Java_Edition_protocol/Server_List_Ping
"""

import asyncio
import json
import logging
import os
import struct
from time import perf_counter

from .client import TCPClient
from .motd import format_motd
from .options import (
    DEFAULT_JAVA_PORT,
    JAVA_PROTOCOL_VERSION,
    OptionsLike,
    QueryOptions,
    validate_target,
)
from .srv import resolve_target
from .types import (
    JavaStatusResponse,
    MinecraftServerError,
    Player,
    Players,
    ProtocolError,
    QUERY_ERRORS,
    SRVRecord,
    Version,
)

logger = logging.getLogger(__name__)

HANDSHAKE_PACKET_ID = 0x00
STATUS_PACKET_ID = 0x00
PING_PACKET_ID = 0x01
NEXT_STATE_STATUS = 1


async def _read_packet_id(client: TCPClient, expected: int) -> None:
    length = await client.read_varint()
    if length < 1:
        raise ProtocolError(f"Invalid packet length {length}")
    await client.ensure_buffered(length)

    packet_id = await client.read_varint()
    if packet_id != expected:
        raise ProtocolError(
            f"Expected server to send packet type 0x{expected:02x}, received 0x{packet_id:02x}"
        )


def _parse_sample(sample) -> tuple[Player, ...] | None:
    if not isinstance(sample, list):
        return None
    return tuple(
        Player(name=str(player.get("name", "")), id=str(player.get("id", "")))
        for player in sample
        if isinstance(player, dict)
    )


def parse_status_payload(
    payload_raw: str, srv_record: SRVRecord | None, latency: int
) -> JavaStatusResponse:
    """
    Build the status response from the JSON payload of the status response packet.

    :param payload_raw: The raw SLP payload, without header and string length
    """
    payload = json.loads(payload_raw)
    if not isinstance(payload, dict):
        raise ProtocolError("Status payload is not a JSON object")

    version = payload.get("version")
    if not isinstance(version, dict):
        raise ProtocolError("Status payload has no version")

    # players is optional on some proxies that hide their player count
    players = payload.get("players") or {}

    return JavaStatusResponse(
        version=Version(
            name=str(version.get("name", "")),
            protocol=int(version.get("protocol", 0)),
        ),
        players=Players(
            online=int(players.get("online", 0)),
            max=int(players.get("max", 0)),
            sample=_parse_sample(players.get("sample")),
        ),
        motd=format_motd(payload.get("description", "")),
        favicon=payload.get("favicon") or None,
        srv_record=srv_record,
        round_trip_latency=latency,
    )


async def _query(client: TCPClient, options: QueryOptions) -> JavaStatusResponse:
    srv_record, client.host, client.port = await resolve_target(
        client.host, client.port, options
    )
    host, port = client.host, client.port
    await client.connect(options.timeout)

    # Handshake
    client.write_varint(HANDSHAKE_PACKET_ID)
    client.write_varint(JAVA_PROTOCOL_VERSION)
    client.write_string_varint(host)
    client.write_uint16(port)
    client.write_varint(NEXT_STATE_STATUS)
    await client.flush()

    # Status request, empty body
    client.write_varint(STATUS_PACKET_ID)
    await client.flush()

    # Status response
    await _read_packet_id(client, STATUS_PACKET_ID)
    payload_raw = await client.read_string_varint()
    logger.debug("Status response from %s:%d is %d chars long", host, port, len(payload_raw))

    # Ping with a random payload the server has to echo back
    payload = struct.unpack(">q", os.urandom(8))[0]
    client.write_varint(PING_PACKET_ID)
    client.write_int64(payload)
    await client.flush()
    start_time = perf_counter()

    # Pong
    await _read_packet_id(client, PING_PACKET_ID)
    received = await client.read_int64()
    if received != payload:
        raise ProtocolError("Ping payload did not match received payload")
    latency = round((perf_counter() - start_time) * 1000)

    try:
        return parse_status_payload(payload_raw, srv_record, latency)
    except (AttributeError, TypeError, RecursionError) as e:
        raise ProtocolError(f"Malformed status payload: {e}") from e


async def status(
    host: str, port: int = DEFAULT_JAVA_PORT, options: OptionsLike = None
) -> JavaStatusResponse:
    """
    Query the status of a Minecraft Java Edition server.

    :param host: Hostname or IP address of the Minecraft server.
    :param port: Optional port of the Minecraft server. Defaults to 25565.
    :param options: Optional `QueryOptions` (or a mapping of its fields).
    :raises TypeError, ValueError: The arguments are invalid, nothing was sent.
    :raises MinecraftServerError: The server could not be queried.
    """
    host, port, options = validate_target(host, port, options)

    client = TCPClient(host, port)
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
