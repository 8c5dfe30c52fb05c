"""Module provides :class:`IACEscapingWriter`."""
# std imports
import logging

# local imports
from .telopt import IAC

__all__ = ('IACEscapingWriter', 'WriteError', 'hide_cursor', 'show_cursor')

logger = logging.getLogger('blinken.stream_writer')

#: Hide cursor, then paint white on black.
HIDE_CURSOR = b'\x1b[?25l' + b'\x1b[40m\x1b[37m'

#: Stop blinking, show cursor and reset attributes.
SHOW_CURSOR = b'\x1b[?12l\x1b[?25h' + b'\x1b[0m'


class WriteError(ConnectionError):
    """
    Raised when the client-bound transport fails.

    :attr:`written` holds the number of payload bytes known to be sent,
    not counting any ``IAC`` byte inserted by escaping.
    """

    def __init__(self, msg, written=0):
        super().__init__(msg)
        self.written = written


def semantic_count(sent, num_special):
    """
    Return payload byte count for ``sent`` bytes of escaped output.

    :param int sent: number of escaped bytes accepted by the transport.
    :param int num_special: number of ``IAC`` bytes inserted by escaping.
    :rtype: int
    """
    return max(0, sent - num_special)


class IACEscapingWriter:
    """
    Client-bound byte stream that doubles every ``IAC``.

    Binary image data or rendered glyphs written through this wrapper may
    never be parsed as a telnet command by the client.  Telnet commands
    themselves must be written to the wrapped stream directly.
    """

    def __init__(self, writer):
        """
        Class initializer.

        :param asyncio.StreamWriter writer: connection output stream.
        """
        self._writer = writer

    def __repr__(self):
        return '<IACEscapingWriter peer={0}>'.format(self.get_extra_info('peername'))

    @staticmethod
    def _escape_iac(buf):
        r"""Replace bytes in buf ``IAC`` (``b'\xff'``) by ``IAC IAC``."""
        return buf.replace(IAC, IAC + IAC)

    async def write(self, data):
        """
        Write ``data``, escaping ``IAC``, and wait for transport to drain.

        :param bytes data: payload.
        :raises WriteError: the transport is closed or failed.
        :returns: number of payload bytes written, excluding escapes.
        :rtype: int
        """
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data expected bytes, got {0}".format(type(data)))

        buf = self._escape_iac(data)
        num_special = len(buf) - len(data)
        if self._writer.is_closing():
            raise WriteError('transport closing', semantic_count(0, num_special))
        try:
            self._writer.write(buf)
            await self._writer.drain()
        except (ConnectionError, OSError) as err:
            raise WriteError(str(err) or err.__class__.__name__,
                             semantic_count(0, num_special)) from err
        return semantic_count(len(buf), num_special)

    def get_extra_info(self, name, default=None):
        return self._writer.get_extra_info(name, default)

    def is_closing(self):
        return self._writer.is_closing()

    def close(self):
        self._writer.close()


async def hide_cursor(writer):
    """Hide cursor and set colors of ``writer``'s terminal."""
    return await writer.write(HIDE_CURSOR)


async def show_cursor(writer):
    """Restore cursor and colors of ``writer``'s terminal, when still open."""
    if writer.is_closing():
        return 0
    try:
        return await writer.write(SHOW_CURSOR)
    except WriteError as err:
        logger.debug('show cursor: {0}'.format(err))
        return 0
