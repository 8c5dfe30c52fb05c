"""Option negotiation of SGA, ECHO and NAWS, rfc-1073_."""
# std imports
import struct

# 3rd party
import pytest

# local
from blinken import negotiate
from blinken.negotiate import NegotiationError, NegotiationResult, negotiate_telnet
from blinken.telopt import DO, DONT, ECHO, IAC, NAWS, SB, SE, SGA, WILL, WONT
from blinken.tests.accessories import FakeStreamWriter, PayloadReader


def naws_reply(cols, rows):
    return IAC + WILL + NAWS + IAC + SB + NAWS + struct.pack('!HH', cols, rows) + IAC + SE


@pytest.mark.asyncio
async def test_negotiate_telnet_window_size():
    """Complete handshake returns window size given by client."""
    reader = PayloadReader([IAC + DO + SGA, IAC + DO + ECHO, naws_reply(132, 43)])
    writer = FakeStreamWriter()

    result = await negotiate_telnet(reader, writer)

    assert result == NegotiationResult(width=132, height=43)
    assert writer.buffer == [IAC + WILL + SGA, IAC + WILL + ECHO, IAC + DO + NAWS]


@pytest.mark.asyncio
async def test_negotiate_telnet_large_window_size():
    reader = PayloadReader([IAC + DO + SGA, IAC + DO + ECHO, naws_reply(65535, 256)])
    assert await negotiate_telnet(reader, FakeStreamWriter()) == (65535, 256)


@pytest.mark.parametrize("reply", [
    # truncated
    naws_reply(132, 43)[:-1],
    # trailing byte
    naws_reply(132, 43) + b'x',
    # refused
    IAC + WONT + NAWS,
    # wrong leading command
    IAC + WONT + NAWS + IAC + SB + NAWS + b'\x00\x84\x00\x2b' + IAC + SE,
    # wrong subnegotiation option
    IAC + WILL + NAWS + IAC + SB + SGA + b'\x00\x84\x00\x2b' + IAC + SE,
    # missing SE
    IAC + WILL + NAWS + IAC + SB + NAWS + b'\x00\x84\x00\x2b' + IAC + IAC,
    # connection closed
    b'',
    ConnectionResetError('reset'),
])
@pytest.mark.asyncio
async def test_negotiate_window_size_falls_back(reply):
    """Any malformed NAWS reply gives 80x24 without raising."""
    reader = PayloadReader([IAC + DO + SGA, IAC + DO + ECHO, reply])
    result = await negotiate_telnet(reader, FakeStreamWriter())
    assert result == (negotiate.DEFAULT_COLS, negotiate.DEFAULT_ROWS) == (80, 24)


@pytest.mark.parametrize("replies", [
    [IAC + DONT + SGA],
    [IAC + DO + SGA + IAC + DO + ECHO],
    [IAC + DO + SGA, IAC + DONT + ECHO],
    [IAC + DO + ECHO],
    [b'hello'],
])
@pytest.mark.asyncio
async def test_negotiate_keystrokes_mismatch(replies):
    """Unexpected reply to WILL SGA or WILL ECHO is fatal."""
    reader = PayloadReader(replies)
    writer = FakeStreamWriter()
    with pytest.raises(NegotiationError, match='expected IAC DO'):
        await negotiate_telnet(reader, writer)
    assert IAC + DO + NAWS not in writer.buffer


@pytest.mark.asyncio
async def test_negotiate_keystrokes_eof():
    """Connection closed during handshake is a NegotiationError."""
    reader = PayloadReader([IAC + DO + SGA])
    with pytest.raises(NegotiationError, match='connection closed'):
        await negotiate_telnet(reader, FakeStreamWriter())


@pytest.mark.asyncio
async def test_negotiate_keystrokes_write_failure():
    reader = PayloadReader([])
    writer = FakeStreamWriter(exc=BrokenPipeError('pipe'))
    with pytest.raises(NegotiationError) as exc_info:
        await negotiate_telnet(reader, writer)
    assert isinstance(exc_info.value.__cause__, BrokenPipeError)


def test_parse_naws():
    assert negotiate.parse_naws(naws_reply(80, 25)) == (80, 25)
    with pytest.raises(NegotiationError, match='unexpected response'):
        negotiate.parse_naws(naws_reply(80, 25)[1:])
