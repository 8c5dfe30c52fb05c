"""
Telnet option negotiation for the stream server.

The server requests a character-at-a-time session (WILL-SGA, WILL-ECHO),
then asks the client to report its window size (DO-NAWS).  Each exchange is
a single write of a fixed command followed by a single read of the client's
reply, which must match byte-for-byte.
"""
# std imports
import collections
import logging
import struct

# local imports
from .telopt import DO, ECHO, IAC, NAWS, SB, SE, SGA, WILL, name_commands

__all__ = ('NegotiationResult', 'NegotiationError', 'negotiate_telnet',
           'negotiate_unbuffered_keystrokes', 'negotiate_window_size')

logger = logging.getLogger('blinken.negotiate')

#: Maximum bytes read for any one reply.
READ_SIZE = 256

#: Window size assumed when the client does not report one.
DEFAULT_COLS, DEFAULT_ROWS = 80, 24

NegotiationResult = collections.namedtuple('NegotiationResult', ['width', 'height'])


class NegotiationError(ValueError):
    """Client reply did not match the expected option negotiation."""


def expect(expected, actual):
    """Raise :class:`NegotiationError` when ``actual`` differs from ``expected``."""
    if bytes(actual) != bytes(expected):
        raise NegotiationError('expected {0} but was {1}'.format(
            name_commands(expected), name_commands(actual)))


async def command(reader, writer, send, handle):
    """
    Write ``send`` to ``writer``, read one reply and pass it to ``handle``.

    :param asyncio.StreamReader reader: connection input stream.
    :param asyncio.StreamWriter writer: connection output stream, unescaped.
    :param bytes send: telnet command sequence.
    :param Callable handle: receives the reply bytes, raising on mismatch.
    :raises EOFError: connection closed before any reply.
    """
    writer.write(send)
    await writer.drain()
    resp = await reader.read(READ_SIZE)
    if not resp:
        raise EOFError('connection closed awaiting reply to {0}'.format(
            name_commands(send)))
    return handle(resp)


async def assert_reply(reader, writer, send, reply):
    """Send command ``send``, raising :class:`NegotiationError` unless ``reply`` is received."""
    try:
        await command(reader, writer, send, lambda resp: expect(reply, resp))
    except (EOFError, ConnectionError, OSError) as err:
        raise NegotiationError('{0}: {1}'.format(name_commands(send), err)) from err


async def negotiate_unbuffered_keystrokes(reader, writer):
    """Negotiate suppress go-ahead and server echo, so keystrokes arrive unbuffered."""
    await assert_reply(reader, writer, IAC + WILL + SGA, IAC + DO + SGA)
    await assert_reply(reader, writer, IAC + WILL + ECHO, IAC + DO + ECHO)


def parse_naws(resp):
    """
    Parse reply to DO-NAWS, returning (width, height).

    The reply must be exactly ``IAC WILL NAWS IAC SB NAWS <16-bit width>
    <16-bit height> IAC SE``.

    :raises NegotiationError: on any length or content mismatch.
    """
    if len(resp) != 12:
        raise NegotiationError('unexpected response: {0!r}'.format(bytes(resp)))
    expect(IAC + WILL + NAWS, resp[:3])
    expect(IAC + SB + NAWS, resp[3:6])
    expect(IAC + SE, resp[-2:])
    return struct.unpack('!HH', resp[6:10])


async def negotiate_window_size(reader, writer):
    """
    Request window size of client by DO-NAWS, :rfc:`1073`.

    Any failure is logged and the default of 80 columns by 24 rows is
    returned instead.

    :rtype: NegotiationResult
    """
    try:
        width, height = await command(reader, writer, IAC + DO + NAWS, parse_naws)
    except (NegotiationError, EOFError, ConnectionError, OSError) as err:
        logger.info('window size negotiation failed: {0}'.format(err))
        width, height = DEFAULT_COLS, DEFAULT_ROWS
    logger.info('window size: {0} {1}'.format(width, height))
    return NegotiationResult(width, height)


async def negotiate_telnet(reader, writer):
    """
    Perform option negotiation of a newly connected client.

    :raises NegotiationError: when SGA or ECHO is refused or misunderstood.
    :rtype: NegotiationResult
    """
    await negotiate_unbuffered_keystrokes(reader, writer)
    return await negotiate_window_size(reader, writer)
