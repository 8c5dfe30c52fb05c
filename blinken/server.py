"""
The ``main`` function here is wired to the command line tool by name
blinken-server.  If this server's PID receives the SIGTERM signal, it
attempts to shutdown gracefully.

Every client connecting is negotiated into a character-at-a-time session
of known window size, then shown the motion-JPEG source file from its
start offset as braille art, until the client sends ^C or disconnects, or
the source ends.  All clients share a single open file of the source.
"""

# std imports
import collections
import functools
import argparse
import asyncio
import logging
import signal
import sys

# local
from . import accessories
from .mjpeg import FRAME_RATE, FrameSplitter, PositionedFrameSource
from .negotiate import NegotiationError, negotiate_telnet
from .playback import PlaybackScheduler
from .render import BraillePrinter, Filter
from .stream_writer import IACEscapingWriter
from .watcher import watch_ctrl_c

__all__ = ("Connection", "handle_connection", "create_server", "run_server",
           "parse_server_args")

CONFIG = collections.namedtuple(
    "CONFIG",
    [
        "host",
        "port",
        "input",
        "ss",
        "fps",
        "gamma",
        "brightness",
        "sharpen",
        "contrast",
        "mirror",
        "invert",
        "loglevel",
        "logfile",
        "logfmt",
    ],
)(
    host="",
    port=3000,
    input=None,
    ss=120,
    fps=12,
    gamma=0.0,
    brightness=0.0,
    sharpen=0.0,
    contrast=0.0,
    mirror=False,
    invert=True,
    loglevel="info",
    logfile=None,
    logfmt=accessories._DEFAULT_LOGFMT,
)
logger = logging.getLogger("blinken.server")


class Connection:
    """
    Playback session of one negotiated client.

    The session owns a cancellation event, :attr:`halt`, shared by the ^C
    watcher and the playback scheduler it runs.
    """

    def __init__(self, reader, writer, fileobj, window, start_seconds=CONFIG.ss,
                 **filter_kwds):
        """
        Class initializer.

        :param asyncio.StreamReader reader: connection input stream.
        :param asyncio.StreamWriter writer: connection output stream.
        :param fileobj: shared source file, opened for binary reading.
        :param negotiate.NegotiationResult window: client window size.
        :param int start_seconds: seconds of source to skip.
        :param filter_kwds: keyword arguments of :class:`~.render.Filter`.
        """
        self.reader = reader
        self.writer = IACEscapingWriter(writer)
        self.window = window
        self.halt = asyncio.Event()
        self.scheduler = PlaybackScheduler(
            splitter=FrameSplitter(PositionedFrameSource(fileobj)),
            printer=BraillePrinter(Filter(width=window.width, height=window.height,
                                          **filter_kwds)),
            writer=self.writer,
            halt=self.halt,
            start_seconds=start_seconds,
        )

    def __repr__(self):
        return "<Connection peer={0} window={1}x{2} {3!r}>".format(
            self.writer.get_extra_info("peername"), self.window.width,
            self.window.height, self.scheduler)

    async def run(self):
        """Play until ^C, disconnect, or end of source."""
        watcher = asyncio.ensure_future(watch_ctrl_c(self.reader, self.halt))
        try:
            await self.scheduler.run()
        finally:
            self.halt.set()
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass


async def handle_connection(reader, writer, fileobj, **kwds):
    """
    Serve one client connection, closing it on return.

    A client failing negotiation is disconnected.  Any fault of the
    session is logged and ends only this connection.

    :param kwds: keyword arguments of :class:`Connection`.
    """
    peer = writer.get_extra_info("peername")
    logger.info("New connection: {0}".format(peer))
    try:
        try:
            window = await negotiate_telnet(reader, writer)
        except NegotiationError as err:
            logger.warning("telnet negotiation failed for {0}: {1}".format(peer, err))
            return
        conn = Connection(reader, writer, fileobj, window, **kwds)
        await conn.run()
        logger.debug("Session complete: {0!r}".format(conn))
    except Exception:
        logger.exception("Session failed for {0}".format(peer))
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass
        logger.info("Connection closed for {0}".format(peer))


async def create_server(host=None, port=3000, fileobj=None, **kwds):
    """
    Create a TCP server streaming ``fileobj`` to its clients.

    :param str host: bind address, all interfaces when empty.
    :param int port: listen port for TCP Server.
    :param fileobj: source file, opened for binary reading, shared by all
        connections.
    :param int start_seconds: seconds of source skipped of each connection.
    :param kwds: remaining keyword arguments of :class:`~.render.Filter`,
        such as ``gamma``, ``brightness``, ``sharpen``, ``contrast``,
        ``mirror`` and ``invert``.
    :return asyncio.Server: An object which can be used to stop the
        service.
    """
    return await asyncio.start_server(
        functools.partial(handle_connection, fileobj=fileobj, **kwds),
        host or None, port)


def _sigterm_handler(server):
    logger.info("SIGTERM received, closing server.")

    # This signals the completion of the server.wait_closed() Future,
    # allowing the main() function to complete.
    server.close()


def parse_server_args():
    parser = argparse.ArgumentParser(
        description="Motion-JPEG braille art telnet server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", nargs="?", default=CONFIG.host, help="bind address")
    parser.add_argument(
        "port", nargs="?", type=int, default=CONFIG.port, help="bind port"
    )
    parser.add_argument("--input", required=True, help="MJPEG source file")
    parser.add_argument(
        "--ss", type=int, default=CONFIG.ss, help="start offset, seconds"
    )
    parser.add_argument(
        "--fps", type=int, default=CONFIG.fps,
        help="frames per second (not applied, reads are fixed at 25/s)",
    )
    parser.add_argument("--gamma", type=float, default=CONFIG.gamma,
                        help="less than 0 darkens, greater than 0 lightens")
    parser.add_argument("--brightness", type=float, default=CONFIG.brightness,
                        help="-100 to 100")
    parser.add_argument("--sharpen", type=float, default=CONFIG.sharpen,
                        help="greater than 0 sharpens")
    parser.add_argument("--contrast", type=float, default=CONFIG.contrast,
                        help="-100 to 100 (not applied)")
    parser.add_argument("--mirror", action="store_true", default=CONFIG.mirror,
                        help="flip on vertical axis")
    parser.add_argument("--no-invert", dest="invert", action="store_false",
                        default=CONFIG.invert, help="do not invert pixels")
    parser.add_argument("--loglevel", default=CONFIG.loglevel, help="level name")
    parser.add_argument("--logfile", default=CONFIG.logfile, help="filepath")
    parser.add_argument("--logfmt", default=CONFIG.logfmt, help="log format")
    return vars(parser.parse_args())


async def run_server(
    host=CONFIG.host,
    port=CONFIG.port,
    input=CONFIG.input,
    ss=CONFIG.ss,
    fps=CONFIG.fps,
    gamma=CONFIG.gamma,
    brightness=CONFIG.brightness,
    sharpen=CONFIG.sharpen,
    contrast=CONFIG.contrast,
    mirror=CONFIG.mirror,
    invert=CONFIG.invert,
    loglevel=CONFIG.loglevel,
    logfile=CONFIG.logfile,
    logfmt=CONFIG.logfmt,
):
    """
    Program entry point for server daemon.

    This function configures a logger, opens the source file and creates
    a server for the given keyword arguments, serving forever, completing
    only upon receipt of SIGTERM.
    """
    accessories.make_logger(
        name="blinken.server", loglevel=loglevel, logfile=logfile, logfmt=logfmt
    )

    # log all function arguments.
    _locals = locals()
    logger.debug("Server configuration: {}".format(accessories.repr_mapping(
        {field: _locals[field] for field in CONFIG._fields})))
    logger.debug("frame reads fixed at {0}/s, --fps={1} not applied".format(FRAME_RATE, fps))

    try:
        fileobj = open(input, "rb")
    except (OSError, TypeError) as err:
        logger.error("Cannot open input {0!r}: {1}".format(input, err))
        sys.exit(1)

    with fileobj:
        loop = asyncio.get_event_loop()

        # bind
        server = await create_server(
            host,
            port,
            fileobj=fileobj,
            start_seconds=ss,
            gamma=gamma,
            brightness=brightness,
            sharpen=sharpen,
            contrast=contrast,
            mirror=mirror,
            invert=invert,
        )

        # SIGTERM cases server to gracefully stop
        loop.add_signal_handler(signal.SIGTERM, _sigterm_handler, server)

        logger.info("Server ready on {0}:{1}".format(host, port))

        # await completion of server stop
        try:
            await server.wait_closed()
        finally:
            # remove signal handler on stop
            loop.remove_signal_handler(signal.SIGTERM)

    logger.info("Server stop.")


def main():
    asyncio.run(run_server(**parse_server_args()))


if __name__ == "__main__":
    main()
