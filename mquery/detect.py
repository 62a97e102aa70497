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

import logging
from typing import Literal

from .bedrock import status_bedrock
from .java import status
from .options import DEFAULT_BEDROCK_PORT, DEFAULT_JAVA_PORT, OptionsLike, validate_target
from .types import (
    AutoDetectResponse,
    BedrockDetection,
    BedrockStatusResponse,
    ErrorCode,
    JavaDetection,
    JavaStatusResponse,
    MinecraftServerError,
)

logger = logging.getLogger(__name__)


async def _attempt(query, host: str, port: int, options):
    """Run one query, returning its failure instead of raising it."""
    try:
        return await query(host, port, options)
    except MinecraftServerError as e:
        return e


async def auto_detect(
    host: str, port: int | None = None, options: OptionsLike = None
) -> AutoDetectResponse:
    """
    Detect whether a server runs Java or Bedrock Edition and return its status.

    Both editions are queried one after the other, each with half of the timeout.

    :param host: Hostname or IP address of the Minecraft server.
    :param port: Optional port. Defaults to 25565 for Java and 19132 for Bedrock.
    :param options: Optional `QueryOptions`, `try_java_first` picks the order.
    :raises MinecraftServerError: Neither edition answered.
    """
    java_port = DEFAULT_JAVA_PORT if port is None else port
    bedrock_port = DEFAULT_BEDROCK_PORT if port is None else port
    host, java_port, options = validate_target(host, java_port, options)

    attempt_options = options.model_copy(update={"timeout": options.timeout // 2})
    attempts = [
        ("java", status, java_port),
        ("bedrock", status_bedrock, bedrock_port),
    ]
    if not options.try_java_first:
        attempts.reverse()

    for edition, query, edition_port in attempts:
        result = await _attempt(query, host, edition_port, attempt_options)

        if isinstance(result, JavaStatusResponse):
            return JavaDetection(result)
        if isinstance(result, BedrockStatusResponse):
            return BedrockDetection(result)

        logger.info(
            "%s query of %s:%d failed (%s): %s",
            edition,
            host,
            edition_port,
            result.reason,
            result.message,
        )

    raise MinecraftServerError(
        "Server is offline or unreachable on both Java and Bedrock protocols",
        ErrorCode.SERVER_OFFLINE,
        host,
        java_port,
    )


async def is_online(
    host: str, port: int | None = None, options: OptionsLike = None
) -> bool:
    """Whether the server answers on either edition. Never raises."""
    try:
        await auto_detect(host, port, options)
    except Exception as e:
        logger.debug("%s is offline: %s", host, e)
        return False
    return True


async def get_server_type(
    host: str, port: int | None = None, options: OptionsLike = None
) -> Literal["java", "bedrock", "offline"]:
    """Edition of the server, "offline" if it does not answer. Never raises."""
    try:
        result = await auto_detect(host, port, options)
    except Exception as e:
        logger.debug("%s is offline: %s", host, e)
        return "offline"
    return result.type
