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
import logging

from .protocol import BufferedReader, pack_varint

logger = logging.getLogger(__name__)


async def _with_connect_timeout(coro, timeout: int | None):
    if timeout is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout / 1000)
    except asyncio.TimeoutError:
        raise TimeoutError(f"Connection timeout after {timeout}ms") from None


class TCPClient(BufferedReader, asyncio.Protocol):
    """
    Stream transport for the Java Edition protocol.

    `flush()` frames everything written since the last flush as one packet,
    prefixed with its length as varint.
    """

    def __init__(self, host: str, port: int) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self._transport: asyncio.Transport | None = None
        self._paused = False
        self._drain_waiter: asyncio.Future | None = None

    async def connect(self, timeout: int | None = None) -> None:
        """
        Open the TCP connection.

        :param timeout: Optional timeout in milliseconds, on expiry the attempt is torn down
            and a TimeoutError is raised.
        """
        loop = asyncio.get_running_loop()
        await _with_connect_timeout(
            loop.create_connection(lambda: self, self.host, self.port), timeout
        )

    def connection_made(self, transport) -> None:
        self._transport = transport
        logger.debug("Established connection to %s:%d", self.host, self.port)

    def data_received(self, data: bytes) -> None:
        self.feed_data(data)

    def eof_received(self) -> bool:
        self.feed_eof()
        return False

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is None:
            self.feed_eof()
        else:
            self.set_exception(exc)

        self._paused = False
        self._release_drain_waiter(exc)

    def pause_writing(self) -> None:
        self._paused = True

    def resume_writing(self) -> None:
        self._paused = False
        self._release_drain_waiter(None)

    def _release_drain_waiter(self, exc: Exception | None) -> None:
        waiter = self._drain_waiter
        if waiter is None or waiter.done():
            return
        if exc is None:
            waiter.set_result(None)
        else:
            waiter.set_exception(exc)

    async def _drain(self) -> None:
        if not self._paused:
            return
        self._drain_waiter = asyncio.get_running_loop().create_future()
        try:
            await self._drain_waiter
        finally:
            self._drain_waiter = None

    async def flush(self) -> None:
        if self._transport is None or self._transport.is_closing():
            raise ConnectionError("Socket not connected")

        payload = self._take_write_buffer()
        if not payload:
            return

        self._transport.write(pack_varint(len(payload)) + payload)
        await self._drain()

    def close(self) -> None:
        if self._transport is None:
            return
        self._transport.abort()
        self._transport = None
        logger.debug("Closed connection to %s:%d", self.host, self.port)


class UDPClient(BufferedReader, asyncio.DatagramProtocol):
    """
    Datagram transport for the Bedrock Edition protocol.

    Incoming datagrams are appended to the receive buffer in arrival order,
    `flush()` sends everything written since the last flush as one datagram.
    """

    def __init__(self, host: str, port: int) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self._transport: asyncio.DatagramTransport | None = None

    async def connect(self, timeout: int | None = None) -> None:
        """
        Create the UDP endpoint. UDP is connectionless, this only binds a local
        socket and fixes the remote address.
        """
        loop = asyncio.get_running_loop()
        await _with_connect_timeout(
            loop.create_datagram_endpoint(
                lambda: self, remote_addr=(self.host, self.port)
            ),
            timeout,
        )

    def connection_made(self, transport) -> None:
        self._transport = transport
        logger.debug("Opened UDP endpoint for %s:%d", self.host, self.port)

    def datagram_received(self, data: bytes, addr) -> None:
        self.feed_data(data)

    def error_received(self, exc: Exception) -> None:
        # ICMP errors, e.g. ConnectionRefusedError for a closed port
        self.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is None:
            self.feed_eof()
        else:
            self.set_exception(exc)

    async def flush(self, prefix_length: bool = False) -> None:
        if self._transport is None or self._transport.is_closing():
            raise ConnectionError("Socket not connected")

        payload = self._take_write_buffer()
        if not payload:
            return

        if prefix_length:
            payload = len(payload).to_bytes(2, "big") + payload

        self._transport.sendto(payload)

    def close(self) -> None:
        if self._transport is None:
            return
        self._transport.close()
        self._transport = None
        logger.debug("Closed UDP endpoint for %s:%d", self.host, self.port)
