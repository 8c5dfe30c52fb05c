"""
Paced playback of one connection.

:class:`PlaybackScheduler` reads frames on a fixed timer, decodes every
other one, and hands the image to a print task through a :class:`HandOff`.
The hand-off completes only once the print task has taken the image, so a
slow client throttles reading of the source rather than buffering frames.

Frame reads, decoding and printing are blocking work, run in the default
executor by :func:`asyncio.to_thread` so that connections proceed
independently of one another.
"""
# std imports
import asyncio
import enum
import logging

# local imports
from .mjpeg import FRAME_RATE, EndOfStream, StreamError
from .render import DecodeError, decode_frame
from .stream_writer import WriteError, hide_cursor, show_cursor

__all__ = ('HandOff', 'PlaybackScheduler', 'State', 'wait_or_halt')

logger = logging.getLogger('blinken.playback')


class State(enum.Enum):
    INITIAL = 'initial'
    STREAMING = 'streaming'
    STOPPED = 'stopped'


class HandOff:
    """
    Synchronous channel of a single slot.

    :meth:`put` returns only after a consumer has received the item by
    :meth:`get`, at most one item is ever in flight.
    """

    def __init__(self):
        self._queue = asyncio.Queue(maxsize=1)

    def __repr__(self):
        return '<HandOff pending={0}>'.format(self._queue.qsize())

    async def put(self, item):
        await self._queue.put(item)
        await self._queue.join()

    async def get(self):
        item = await self._queue.get()
        self._queue.task_done()
        return item


async def wait_or_halt(aw, halt):
    """
    Await ``aw`` until complete, or until event ``halt`` is set.

    :param aw: awaitable.
    :param asyncio.Event halt: cancellation signal of the connection.
    :returns: tuple ``(completed, result)``, ``completed`` is ``False``
        when ``halt`` was set first, and ``aw`` is then cancelled.
    """
    task = asyncio.ensure_future(aw)
    halt_task = asyncio.ensure_future(halt.wait())
    try:
        done, pending = await asyncio.wait(
            {task, halt_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for pending_task in (task, halt_task):
            if not pending_task.done():
                pending_task.cancel()
                try:
                    await pending_task
                except asyncio.CancelledError:
                    pass
    if task in done:
        return True, task.result()
    return False, None


class PlaybackScheduler:
    """Frame reading, decimation and printing of one connection."""

    #: Seconds between frame reads.
    period = 1.0 / FRAME_RATE

    #: Every n-th frame read is shown, others are dropped.
    decimation = 2

    def __init__(self, splitter, printer, writer, halt, start_seconds=0,
                 decoder=decode_frame):
        """
        Class initializer.

        :param mjpeg.FrameSplitter splitter: frame reader of this connection.
        :param render.BraillePrinter printer: image printer of this connection.
        :param stream_writer.IACEscapingWriter writer: client output.
        :param asyncio.Event halt: cancellation signal of the connection,
            set by this scheduler when it stops.
        :param int start_seconds: seconds of source to skip, at the nominal
            :data:`~.mjpeg.FRAME_RATE`.
        :param Callable decoder: returns an image for frame bytes.
        """
        self.splitter = splitter
        self.printer = printer
        self.writer = writer
        self.halt = halt
        self.start_seconds = start_seconds
        self.decoder = decoder
        self.state = State.INITIAL
        #: Number of frames read since start of streaming.
        self.frame_count = 0
        #: Number of images handed to the print task.
        self.frames_sent = 0
        self.stop_reason = None
        self._handoff = HandOff()

    def __repr__(self):
        return '<PlaybackScheduler state={0} frames={1} sent={2}>'.format(
            self.state.name, self.frame_count, self.frames_sent)

    def stop(self, reason):
        """Enter state STOPPED, the first ``reason`` given is kept."""
        if self.stop_reason is None:
            self.stop_reason = reason
            logger.info('playback stopped: {0}'.format(reason))
        self.state = State.STOPPED
        self.halt.set()

    async def run(self):
        """Stream until end of source, failure, or cancellation."""
        print_task = asyncio.ensure_future(self._print_loop())
        try:
            await hide_cursor(self.writer)
            if self.start_seconds > 0:
                completed, _ = await wait_or_halt(asyncio.to_thread(
                    self.splitter.skip, self.start_seconds * FRAME_RATE), self.halt)
                if not completed:
                    return
            self.state = State.STREAMING
            await self._stream()
        except EndOfStream:
            await self._finish_printing()
            self.stop('end of stream')
        except (StreamError, DecodeError, WriteError) as err:
            self.stop('{0}: {1}'.format(err.__class__.__name__, err))
        finally:
            self.stop('cancelled')
            print_task.cancel()
            try:
                await print_task
            except asyncio.CancelledError:
                pass
            await show_cursor(self.writer)

    async def _stream(self):
        loop = asyncio.get_event_loop()
        deadline = loop.time()
        while not self.halt.is_set():
            completed, _ = await wait_or_halt(
                asyncio.sleep(max(0, deadline - loop.time())), self.halt)
            if not completed:
                break
            deadline = loop.time() + self.period

            completed, frame = await wait_or_halt(
                asyncio.to_thread(self.splitter.read_frame), self.halt)
            if not completed:
                break
            self.frame_count += 1
            if self.frame_count % self.decimation == 0:
                continue

            completed, img = await wait_or_halt(
                asyncio.to_thread(self.decoder, frame), self.halt)
            if not completed:
                break
            completed, _ = await wait_or_halt(self._handoff.put(img), self.halt)
            if not completed:
                break
            self.frames_sent += 1

    async def _finish_printing(self):
        # None marks the end, taken only once the last image is written
        await wait_or_halt(self._handoff.put(None), self.halt)

    async def _print_loop(self):
        try:
            while not self.halt.is_set():
                completed, img = await wait_or_halt(self._handoff.get(), self.halt)
                if not completed or img is None:
                    return
                completed, data = await wait_or_halt(
                    asyncio.to_thread(self.printer.render, img), self.halt)
                if not completed:
                    return
                await self.writer.write(data)
        except WriteError as err:
            self.stop('WriteError: {0}'.format(err))
        finally:
            # producer may be awaiting hand-off to this task
            self.halt.set()
