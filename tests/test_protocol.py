import asyncio

import pytest

from mquery import BufferedReader, ErrorCode, ProtocolError, pack_varint


def reader_with(data: bytes) -> BufferedReader:
    reader = BufferedReader()
    reader.feed_data(data)
    return reader


@pytest.mark.parametrize(
    "value, encoded",
    [
        (0, b"\x00"),
        (1, b"\x01"),
        (127, b"\x7f"),
        (128, b"\x80\x01"),
        (300, b"\xac\x02"),
        (25565, b"\xdd\xc7\x01"),
        (2147483647, b"\xff\xff\xff\xff\x07"),
        (-1, b"\xff\xff\xff\xff\x0f"),
    ],
)
def test_pack_varint(value, encoded):
    assert pack_varint(value) == encoded


@pytest.mark.parametrize("value", [0, 1, 127, 128, 255, 16384, 25565, 2097151, 2**31 - 1])
async def test_varint_round_trip(value):
    assert await reader_with(pack_varint(value)).read_varint() == value


async def test_read_varint_negative():
    assert await reader_with(b"\xff\xff\xff\xff\x0f").read_varint() == -1


async def test_read_varint_too_big():
    reader = reader_with(b"\xff" * 6)
    with pytest.raises(ProtocolError, match="VarInt is too big") as exc_info:
        await reader.read_varint()
    assert exc_info.value.code is ErrorCode.INVALID_RESPONSE


async def test_read_bytes_consumes_from_front():
    reader = reader_with(b"abcdef")
    assert await reader.read_bytes(2) == b"ab"
    assert await reader.read_bytes(3) == b"cde"
    assert await reader.read_bytes(1) == b"f"


async def test_read_bytes_waits_for_chunks():
    reader = BufferedReader()
    task = asyncio.create_task(reader.read_bytes(4))

    reader.feed_data(b"\x01\x02")
    await asyncio.sleep(0)
    assert not task.done()

    reader.feed_data(b"\x03\x04\x05")
    assert await asyncio.wait_for(task, 1) == b"\x01\x02\x03\x04"
    assert await reader.read_bytes(1) == b"\x05"


async def test_read_varint_split_across_chunks():
    reader = BufferedReader()
    task = asyncio.create_task(reader.read_varint())
    for byte in pack_varint(25565):
        await asyncio.sleep(0)
        reader.feed_data(bytes([byte]))
    assert await asyncio.wait_for(task, 1) == 25565


async def test_read_bytes_after_eof():
    reader = reader_with(b"ab")
    reader.feed_eof()
    with pytest.raises(ConnectionAbortedError):
        await reader.read_bytes(3)


async def test_eof_wakes_suspended_reader():
    reader = BufferedReader()
    task = asyncio.create_task(reader.read_bytes(1))
    await asyncio.sleep(0)
    reader.feed_eof()
    with pytest.raises(ConnectionAbortedError):
        await asyncio.wait_for(task, 1)


async def test_transport_error_is_raised_by_read():
    reader = BufferedReader()
    task = asyncio.create_task(reader.read_bytes(1))
    await asyncio.sleep(0)
    reader.set_exception(ConnectionResetError("reset by peer"))
    with pytest.raises(ConnectionResetError, match="reset by peer"):
        await asyncio.wait_for(task, 1)


async def test_buffered_data_is_read_before_error():
    reader = reader_with(b"\x2a")
    reader.set_exception(ConnectionRefusedError())
    assert await reader.read_uint8() == 42


async def test_typed_reads():
    reader = reader_with(
        b"\x05hello"
        b"\xff\xfe"
        b"\xff\xfe"
        b"\xff\xff\xff\xff\xff\xff\xff\xfe"
        b"\xff\xff\xff\xff\xff\xff\xff\xfe"
    )
    assert await reader.read_string_varint() == "hello"
    assert await reader.read_int16() == -2
    assert await reader.read_uint16() == 0xFFFE
    assert await reader.read_int64() == -2
    assert await reader.read_uint64() == 0xFFFFFFFFFFFFFFFE


async def test_read_string_invalid_utf8():
    reader = reader_with(b"\x02\xc3\x28")
    with pytest.raises(UnicodeDecodeError):
        await reader.read_string_varint()


def test_write_helpers():
    writer = BufferedReader()
    writer.write_varint(0)
    writer.write_varint(47)
    writer.write_string_varint("localhost")
    writer.write_uint16(25565)
    writer.write_uint8(1)
    writer.write_int64(-1)
    writer.write("é")
    assert writer._take_write_buffer() == (
        b"\x00\x2f\x09localhost\x63\xdd\x01" + b"\xff" * 8 + "é".encode("utf8")
    )
    assert writer._take_write_buffer() == b""
