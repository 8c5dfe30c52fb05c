"""Watch client input for ^C, ending the session."""
# std imports
import logging

# local imports
from .telopt import CTRL_C

__all__ = ('watch_ctrl_c',)

logger = logging.getLogger('blinken.watcher')


async def watch_ctrl_c(reader, halt):
    """
    Read client input a byte at a time, set ``halt`` on ^C.

    ``halt`` is also set when the client closes the connection or the
    read fails.  Other input is discarded.

    :param asyncio.StreamReader reader: connection input stream.
    :param asyncio.Event halt: cancellation signal of the connection.
    :returns: ``True`` when ^C was received.
    """
    try:
        while True:
            inp = await reader.read(1)
            if not inp:
                logger.info('EOF from client')
                return False
            if inp == CTRL_C:
                logger.info('^C from client')
                return True
    except (ConnectionError, OSError) as err:
        logger.info('read from client failed: {0}'.format(err))
        return False
    finally:
        halt.set()
