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

import ipaddress
import logging

import dns.asyncresolver
import dns.exception
import idna

from .options import QueryOptions
from .types import SRVRecord

logger = logging.getLogger(__name__)


def _srv_domain(host: str) -> str | None:
    """Punycode form of `host`, or None if there is nothing to look up."""
    host = host.strip().rstrip(".")
    if not host:
        return None
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        pass
    else:
        return None
    try:
        return idna.encode(host).decode("utf-8")
    except idna.IDNAError:
        return host


async def _query_srv(domain: str) -> list:
    resolver = dns.asyncresolver.Resolver()
    resolver.timeout = 5
    resolver.lifetime = 10
    answer = await resolver.resolve(f"_minecraft._tcp.{domain}", "SRV")
    return list(answer)


async def get_all_srv_records(host: str) -> list[SRVRecord]:
    """
    All `_minecraft._tcp` SRV records of `host`, in answer order.

    Returns an empty list if the lookup fails for any reason.
    """
    domain = _srv_domain(host)
    if domain is None:
        return []

    try:
        answer = await _query_srv(domain)
    except dns.exception.DNSException as e:
        logger.debug("No SRV record for %s: %s", domain, e)
        return []

    return [
        SRVRecord(
            host=str(rdata.target).rstrip("."),
            port=rdata.port,
            priority=rdata.priority,
            weight=rdata.weight,
        )
        for rdata in answer
    ]


async def resolve_srv(host: str) -> SRVRecord | None:
    """
    Resolve the SRV record a Minecraft client would connect to.

    The record with the lowest priority wins, ties are broken by the highest weight.
    Never raises, DNS failures and empty answers return None.
    """
    records = await get_all_srv_records(host)
    if not records:
        return None
    return min(records, key=lambda record: (record.priority, -record.weight))


async def has_srv_records(host: str) -> bool:
    return await resolve_srv(host) is not None


async def resolve_target(
    host: str, port: int, options: QueryOptions
) -> tuple[SRVRecord | None, str, int]:
    """Host and port to connect to, after applying a SRV record if enabled."""
    if not options.enable_srv:
        return None, host, port

    record = await resolve_srv(host)
    if record is None:
        return None, host, port

    logger.debug("SRV record for %s points to %s:%d", host, record.host, record.port)
    return record, record.host, record.port
