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

import argparse
import asyncio
import logging
import re
import sys

from . import VERSION
from .bedrock import status_bedrock
from .detect import auto_detect
from .java import status
from .options import DEFAULT_BEDROCK_PORT, DEFAULT_JAVA_PORT, DEFAULT_TIMEOUT, QueryOptions
from .types import (
    BedrockDetection,
    BedrockStatusResponse,
    JavaDetection,
    MinecraftServerError,
)


def parse_host(host_name: str) -> tuple[str, int | None]:
    """
    Split `host[:port]`, IPv6 addresses may be given as `[addr]:port`.

    :returns: The address and the port, None if no port was given.
    """
    pattern = r"(?:\[(.+?)\]|(.+?))(?::(\d+))?$"
    if host_name.count(":") > 1 and not host_name.startswith("["):
        # bare IPv6 address
        return host_name, None
    if not (match := re.match(pattern, host_name)):
        return host_name, None

    address = match[1] or match[2]
    port = int(match[3]) if match[3] else None
    return address, port


def print_result(result) -> None:
    data = result.data
    print(f"Server type: {result.type.upper()}")
    print(f"Players: {data.players.online}/{data.players.max}")
    if data.players.sample:
        print(f"Player list: {', '.join(player.name for player in data.players.sample)}")
    print(f"Version: {data.version.name} (protocol {data.version.protocol})")
    print(f"Message of the day: {data.motd.clean}")
    if isinstance(data, BedrockStatusResponse):
        print(f"Edition: {data.edition}")
        print(f"Game mode: {data.game_mode} ({data.game_mode_id})")
        print(f"Server GUID: {data.server_guid}")
    else:
        print(f"Latency: {data.round_trip_latency}ms")
    if data.srv_record is not None:
        print(f"SRV record: {data.srv_record.host}:{data.srv_record.port}")


async def run(args: argparse.Namespace) -> int:
    host, port = parse_host(args.host)
    if args.port is not None:
        port = args.port

    options = QueryOptions(
        timeout=args.timeout,
        enable_srv=not args.no_srv,
        try_java_first=not args.bedrock_first,
    )

    try:
        if args.edition == "java":
            result = JavaDetection(
                await status(host, DEFAULT_JAVA_PORT if port is None else port, options)
            )
        elif args.edition == "bedrock":
            result = BedrockDetection(
                await status_bedrock(
                    host, DEFAULT_BEDROCK_PORT if port is None else port, options
                )
            )
        else:
            result = await auto_detect(host, port, options)
    except MinecraftServerError as e:
        print(f"Server is offline: {e.message} ({e.reason})", file=sys.stderr)
        return 1

    print_result(result)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mquery", description="Check the status of a Minecraft server."
    )
    parser.add_argument("host", help="hostname or IP address, optionally as host:port")
    parser.add_argument("port", nargs="?", type=int, help="server port")
    edition = parser.add_mutually_exclusive_group()
    edition.add_argument(
        "--java", dest="edition", action="store_const", const="java",
        help="only check Java Edition",
    )
    edition.add_argument(
        "--bedrock", dest="edition", action="store_const", const="bedrock",
        help="only check Bedrock Edition",
    )
    edition.add_argument(
        "--auto", dest="edition", action="store_const", const="auto",
        help="auto-detect the edition (default)",
    )
    parser.add_argument(
        "--timeout", type=int, default=DEFAULT_TIMEOUT, help="timeout in milliseconds"
    )
    parser.add_argument("--no-srv", action="store_true", help="skip the SRV lookup")
    parser.add_argument(
        "--bedrock-first", action="store_true", help="auto-detect Bedrock before Java"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except (TypeError, ValueError) as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
