"""
Frame access of a motion-JPEG file.

The file is a bare concatenation of JPEG images.  Each connection reads it
through its own :class:`PositionedFrameSource`, all sharing one open file
descriptor, and delimits images with a :class:`FrameSplitter`.
"""
# std imports
import logging
import os

__all__ = ('PositionedFrameSource', 'FrameSplitter', 'StreamError', 'EndOfStream',
           'EOI', 'FRAME_RATE')

logger = logging.getLogger('blinken.mjpeg')

#: JPEG End-Of-Image marker.
EOI = b'\xff\xd9'

#: Nominal frame rate of the source file, frames per second.
FRAME_RATE = 25


class StreamError(IOError):
    """The source ended or failed before a complete frame was read."""


class EndOfStream(StreamError):
    """No more frames are available."""


class PositionedFrameSource:
    """
    Reader of a shared file with a private read cursor.

    Every read is made at an explicit offset by :func:`os.pread`, so any
    number of instances may share one file descriptor without a lock.  The
    cursor, :attr:`at`, only increases.
    """

    def __init__(self, fileobj, at=0):
        """
        Class initializer.

        :param fileobj: open file object or integer file descriptor,
            opened for binary reading.
        :param int at: initial byte offset.
        """
        self._fd = fileobj if isinstance(fileobj, int) else fileobj.fileno()
        self.at = at

    def __repr__(self):
        return '<PositionedFrameSource fd={0} at={1}>'.format(self._fd, self.at)

    def read(self, size):
        """
        Read up to ``size`` bytes at the current offset.

        :returns: bytes read, empty at end of file.
        :rtype: bytes
        """
        data = os.pread(self._fd, size, self.at)
        self.at += len(data)
        return data


class FrameSplitter:
    """Split a motion-JPEG byte stream into frames ending by :data:`EOI`."""

    #: Bytes requested of the source at a time.
    chunk_size = 2**14

    def __init__(self, source, chunk_size=None):
        """
        Class initializer.

        :param source: object with method ``read(size)`` returning bytes,
            empty at end of stream, such as :class:`PositionedFrameSource`.
        :param int chunk_size: read size, default :attr:`chunk_size`.
        """
        self._source = source
        self._buf = bytearray()
        if chunk_size is not None:
            self.chunk_size = chunk_size

    def read_token(self):
        """
        Return bytes up to and including the next ``0xD9`` byte.

        :raises EndOfStream: end of stream reached, the returned exception
            holds any remaining partial bytes in attribute ``partial``.
        """
        searched = 0
        while True:
            idx = self._buf.find(EOI[-1:], searched)
            if idx != -1:
                token = bytes(self._buf[:idx + 1])
                del self._buf[:idx + 1]
                return token
            searched = len(self._buf)
            chunk = self._source.read(self.chunk_size)
            if not chunk:
                err = EndOfStream('end of stream')
                err.partial = bytes(self._buf)
                self._buf.clear()
                raise err
            self._buf.extend(chunk)

    def read_frame(self):
        """
        Return the next complete frame, ending with the End-Of-Image marker.

        :raises EndOfStream: no bytes remain.
        :raises StreamError: the stream ends within a frame.
        :rtype: bytes
        """
        frame = bytearray()
        while True:
            try:
                token = self.read_token()
            except EndOfStream as err:
                frame.extend(err.partial)
                if frame:
                    raise StreamError('truncated frame: {0} bytes without end-of-image marker'
                                      .format(len(frame))) from err
                raise
            frame.extend(token)
            if frame.endswith(EOI):
                return bytes(frame)

    def skip(self, count):
        """Discard ``count`` frames."""
        for _ in range(count):
            self.read_frame()

    def __iter__(self):
        while True:
            try:
                yield self.read_frame()
            except EndOfStream:
                return
