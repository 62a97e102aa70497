import pytest

import mquery.__main__ as cli
from mquery import (
    MOTD,
    ErrorCode,
    JavaDetection,
    JavaStatusResponse,
    MinecraftServerError,
    Players,
    Version,
)


@pytest.mark.parametrize(
    "host, expected",
    [
        ("mc.example.com", ("mc.example.com", None)),
        ("mc.example.com:25570", ("mc.example.com", 25570)),
        ("127.0.0.1:19132", ("127.0.0.1", 19132)),
        ("[::1]:25565", ("::1", 25565)),
        ("[::1]", ("::1", None)),
        ("2001:db8::1", ("2001:db8::1", None)),
    ],
)
def test_parse_host(host, expected):
    assert cli.parse_host(host) == expected


def java_result() -> JavaDetection:
    return JavaDetection(
        JavaStatusResponse(
            version=Version("1.20.4", 765),
            players=Players(1, 20),
            motd=MOTD("§aHi", "Hi", '<span style="color:#55FF55;">Hi</span>'),
            favicon=None,
            srv_record=None,
            round_trip_latency=12,
        )
    )


def test_main_auto_detect(monkeypatch, capsys):
    calls = []

    async def fake_auto_detect(host, port, options):
        calls.append((host, port, options.timeout, options.enable_srv))
        return java_result()

    monkeypatch.setattr(cli, "auto_detect", fake_auto_detect)

    assert cli.main(["mc.example.com:25570", "--timeout", "100", "--no-srv"]) == 0

    assert calls == [("mc.example.com", 25570, 100, False)]
    out = capsys.readouterr().out
    assert "Server type: JAVA" in out
    assert "Players: 1/20" in out
    assert "Latency: 12ms" in out


def test_main_offline(monkeypatch, capsys):
    async def offline(host, port, options):
        raise MinecraftServerError("refused", ErrorCode.SERVER_OFFLINE, host, port)

    monkeypatch.setattr(cli, "status", offline)

    assert cli.main(["mc.example.com", "--java"]) == 1
    assert "Server is offline: refused" in capsys.readouterr().err


def test_main_invalid_port():
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["mc.example.com", "70000"])
    assert exc_info.value.code == 2
