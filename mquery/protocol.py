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
import struct

from .types import ProtocolError


def pack_varint(value: int) -> bytes:
    """Small helper method for packing a varint from an int."""
    value &= 0xFFFFFFFF
    ordinal = b""

    while True:
        byte = value & 0x7F
        value >>= 7
        ordinal += struct.pack("B", byte | (0x80 if value > 0 else 0))

        if value == 0:
            break

    return ordinal


class BufferedReader:
    """
    Exact-size reads over a byte source that delivers data in arbitrary chunks.

    The transport appends to the receive buffer through `feed_data()` (and
    reports the end of the stream through `feed_eof()` / `set_exception()`);
    the protocol code drains it from the front with `read_bytes()` and the
    typed helpers built on top of it.

    Outgoing data is collected with the `write_*` helpers and sent as one unit
    by `flush()`, which, like `close()`, is implemented by the transport.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._write_buffer = bytearray()
        self._waiter: asyncio.Future | None = None
        self._eof = False
        self._exception: BaseException | None = None

    # Receive side, driven by the transport callbacks

    def feed_data(self, data: bytes) -> None:
        if not data:
            return
        self._buffer += data
        self._wakeup()

    def feed_eof(self) -> None:
        self._eof = True
        self._wakeup()

    def set_exception(self, exc: BaseException) -> None:
        self._exception = exc
        self._wakeup()

    def _wakeup(self) -> None:
        waiter = self._waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    async def _wait_for_data(self) -> None:
        self._waiter = asyncio.get_running_loop().create_future()
        try:
            await self._waiter
        finally:
            self._waiter = None

    async def ensure_buffered(self, length: int) -> None:
        """
        Suspend until at least `length` bytes are buffered.

        Throws the transport error if one was reported, or a ConnectionAbortedError
        if the connection was closed while waiting for data.
        """
        while len(self._buffer) < length:
            if self._exception is not None:
                raise self._exception
            if self._eof:
                raise ConnectionAbortedError(
                    f"Connection closed after {len(self._buffer)} of {length} bytes"
                )
            await self._wait_for_data()

    async def read_bytes(self, length: int) -> bytes:
        await self.ensure_buffered(length)

        data = bytes(self._buffer[:length])
        del self._buffer[:length]
        return data

    async def read_varint(self) -> int:
        """Read a varint, at most 5 bytes long, as a signed 32-bit int."""
        result = 0
        for i in range(5):
            byte = (await self.read_bytes(1))[0]
            result |= (byte & 0x7F) << 7 * i

            if not byte & 0x80:
                break
        else:
            raise ProtocolError("VarInt is too big")

        if result & 0x80000000:
            result -= 1 << 32
        return result

    async def read_string_varint(self) -> str:
        """Read a UTF-8 string prefixed with its length as varint."""
        length = await self.read_varint()
        if length < 0:
            raise ProtocolError(f"Invalid string length {length}")
        return await self.read_string(length)

    async def read_string(self, length: int) -> str:
        return (await self.read_bytes(length)).decode("utf8")

    async def read_uint8(self) -> int:
        return (await self.read_bytes(1))[0]

    async def read_int16(self) -> int:
        return struct.unpack(">h", await self.read_bytes(2))[0]

    async def read_uint16(self) -> int:
        return struct.unpack(">H", await self.read_bytes(2))[0]

    async def read_int64(self) -> int:
        return struct.unpack(">q", await self.read_bytes(8))[0]

    async def read_uint64(self) -> int:
        return struct.unpack(">Q", await self.read_bytes(8))[0]

    # Send side

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf8")
        self._write_buffer += data

    def write_varint(self, value: int) -> None:
        self.write(pack_varint(value))

    def write_string_varint(self, value: str) -> None:
        encoded = value.encode("utf8")
        self.write_varint(len(encoded))
        self.write(encoded)

    def write_uint8(self, value: int) -> None:
        self.write(struct.pack("B", value))

    def write_uint16(self, value: int) -> None:
        self.write(struct.pack(">H", value))

    def write_int64(self, value: int) -> None:
        self.write(struct.pack(">q", value))

    def write_uint64(self, value: int) -> None:
        self.write(struct.pack(">Q", value))

    def _take_write_buffer(self) -> bytes:
        data = bytes(self._write_buffer)
        self._write_buffer.clear()
        return data

    async def flush(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError
