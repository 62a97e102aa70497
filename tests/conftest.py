import asyncio
import json
import socket
import struct

import pytest

from mquery import pack_varint
from mquery.bedrock import RAKNET_MAGIC


async def read_varint(reader: asyncio.StreamReader) -> int:
    result = 0
    for i in range(5):
        byte = (await reader.readexactly(1))[0]
        result |= (byte & 0x7F) << 7 * i
        if not byte & 0x80:
            return result
    raise ValueError("VarInt is too big")


async def read_packet(reader: asyncio.StreamReader) -> bytes:
    length = await read_varint(reader)
    return await reader.readexactly(length)


def frame(packet_id: int, body: bytes = b"") -> bytes:
    packet = pack_varint(packet_id) + body
    return pack_varint(len(packet)) + packet


class FakeJavaServer:
    """Answers one Server List Ping per connection."""

    def __init__(
        self,
        payload,
        *,
        status_packet_id: int = 0x00,
        corrupt_pong: bool = False,
        chunk_size: int | None = None,
    ) -> None:
        self.payload = payload
        self.status_packet_id = status_packet_id
        self.corrupt_pong = corrupt_pong
        self.chunk_size = chunk_size
        self.handshakes: list[bytes] = []

    async def send(self, writer: asyncio.StreamWriter, data: bytes) -> None:
        if self.chunk_size is None:
            writer.write(data)
            await writer.drain()
            return
        for i in range(0, len(data), self.chunk_size):
            writer.write(data[i : i + self.chunk_size])
            await writer.drain()
            await asyncio.sleep(0.001)

    async def handle(self, reader, writer) -> None:
        try:
            self.handshakes.append(await read_packet(reader))
            await read_packet(reader)

            body = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
            encoded = body.encode("utf8")
            await self.send(
                writer, frame(self.status_packet_id, pack_varint(len(encoded)) + encoded)
            )

            ping = await read_packet(reader)
            echoed = ping[1:9]
            if self.corrupt_pong:
                echoed = bytes(b ^ 0xFF for b in echoed)
            await self.send(writer, frame(0x01, echoed))
            await reader.read()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


class SilentJavaServer:
    """Accepts connections and never answers."""

    async def handle(self, reader, writer) -> None:
        try:
            await reader.read()
        except ConnectionError:
            pass
        finally:
            writer.close()


class FakeBedrockServer(asyncio.DatagramProtocol):
    def __init__(
        self,
        server_id: str,
        *,
        packet_id: int = 0x1C,
        server_guid: int = 0x0123456789ABCDEF,
        split: bool = False,
        silent: bool = False,
    ) -> None:
        self.server_id = server_id
        self.packet_id = packet_id
        self.server_guid = server_guid
        self.split = split
        self.silent = silent
        self.pings: list[bytes] = []
        self.transport = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        self.pings.append(data)
        if self.silent:
            return

        name = self.server_id.encode("utf8")
        pong = (
            bytes([self.packet_id])
            + data[1:9]
            + struct.pack(">Q", self.server_guid)
            + RAKNET_MAGIC
            + struct.pack(">H", len(name))
            + name
        )
        if self.split:
            self.transport.sendto(pong[:10], addr)
            self.transport.sendto(pong[10:], addr)
        else:
            self.transport.sendto(pong, addr)


@pytest.fixture
async def java_server():
    servers = []

    async def start(fake, port: int = 0) -> int:
        server = await asyncio.start_server(fake.handle, "127.0.0.1", port)
        servers.append(server)
        return server.sockets[0].getsockname()[1]

    yield start

    for server in servers:
        server.close()
        await server.wait_closed()


@pytest.fixture
async def bedrock_server():
    transports = []

    async def start(fake: FakeBedrockServer, port: int = 0) -> int:
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: fake, local_addr=("127.0.0.1", port)
        )
        transports.append(transport)
        return transport.get_extra_info("sockname")[1]

    yield start

    for transport in transports:
        transport.close()


@pytest.fixture
def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def status_payload() -> dict:
    return {
        "version": {"name": "1.20.4", "protocol": 765},
        "players": {
            "max": 100,
            "online": 2,
            "sample": [
                {"name": "Notch", "id": "069a79f4-44e9-4726-a5be-fca90e38aaf5"},
                {"name": "jeb_", "id": "853c80ef-3c37-49fd-aa49-938b674adae6"},
            ],
        },
        "description": {"text": "A ", "extra": [{"text": "Minecraft", "color": "green"}, " Server"]},
        "favicon": "data:image/png;base64,iVBORw0KGgo=",
    }
