"""
Render pipeline: JPEG frame to braille terminal art.

A frame buffer is decoded by :func:`decode_frame`, adjusted and scaled to
the client's window by :class:`Filter`, and printed as braille glyphs by
:class:`BraillePrinter`.  Each glyph covers a block of 2x4 pixels.
"""
# std imports
import io
import logging
import math

# 3rd party
import drawille
from PIL import Image, ImageFilter, ImageOps

__all__ = ('DecodeError', 'decode_frame', 'Filter', 'BraillePrinter',
           'luminance', 'scalar', 'cursor_up')

logger = logging.getLogger('blinken.render')

#: Contrast adjustment applied to every frame, percent.
CONTRAST = 25

#: Braille pattern with no dots raised.
BLANK = chr(0x2800)

#: Pixels per braille glyph, horizontally and vertically.
DOT_COLS, DOT_ROWS = 2, 4


class DecodeError(ValueError):
    """Frame buffer is not a decodable image."""


def decode_frame(buf):
    """
    Decode JPEG bytes ``buf`` to a grayscale image.

    :raises DecodeError: when ``buf`` is not a valid image.
    :rtype: PIL.Image.Image
    """
    try:
        img = Image.open(io.BytesIO(buf))
        img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as err:
        raise DecodeError('{0} bytes: {1}'.format(len(buf), err)) from err
    return img.convert('L')


def _lut(fn):
    return [min(255, max(0, int(fn(value) + 0.5))) for value in range(256)]


def adjust_gamma(img, gamma):
    """Gamma less than 1.0 darkens ``img``, greater than 1.0 lightens it."""
    exp = 1.0 / max(gamma, 0.0001)
    return img.point(_lut(lambda value: 255.0 * math.pow(value / 255.0, exp)))


def adjust_brightness(img, percentage):
    """Brightness of -100 gives solid black, 100 gives solid white."""
    shift = 255.0 * percentage / 100.0
    return img.point(_lut(lambda value: value + shift))


def adjust_contrast(img, percentage):
    """
    Contrast of -100 gives solid grey, 100 gives black and white.

    Values are stretched or compressed about mid-grey, not the image mean.
    """
    factor = (100.0 + min(max(percentage, -100.0), 100.0)) / 100.0
    if factor <= 1.0:
        slope = factor
    elif factor < 2.0:
        slope = 1.0 / (2.0 - factor)
    else:
        return img.point([0 if value < 128 else 255 for value in range(256)])
    return img.point(_lut(lambda value: (0.5 + (value / 255.0 - 0.5) * slope) * 255.0))


def luminance(img):
    """
    Return luminance heuristic of ``img`` from its histogram peak.

    The result is ``1 - (256 / index * share)``, where ``index`` is the
    first bucket of greatest count and ``share`` its fraction of all
    pixels.  A peak at bucket 0, black, returns 0.0.
    """
    hist = img.convert('L').histogram()
    total = float(sum(hist)) or 1.0
    peak, index = 0.0, 0
    for bucket, count in enumerate(hist):
        share = count / total
        if peak < share:
            peak, index = share, bucket
    if index == 0:
        return 0.0
    return 1 - (256 / index * peak)


def scalar(dx, dy, cols, rows):
    """
    Return scale fitting an image of ``dx`` by ``dy`` pixels to a window.

    Example::

        >>> scalar(1600, 1200, 80, 24)
        0.08
    """
    scale = 1.0
    scale_x = float(cols * DOT_COLS) / float(dx)
    scale_y = float(rows * DOT_ROWS) / float(dy)
    if scale_x < scale:
        scale = scale_x
    if scale_y < scale:
        scale = scale_y
    return scale


def cursor_up(rows):
    """Return sequence moving the cursor to column 1, ``rows`` rows up."""
    return '\x1b[999D\x1b[{0}A'.format(rows).encode('ascii')


class Filter:
    """
    Image adjustments and scaling for one connection.

    The scale is computed from the first image filtered and reused for
    every image after, source frames are assumed to be of constant size.
    """

    def __init__(self, width=80, height=24, gamma=0, brightness=0,
                 sharpen=0, contrast=0, mirror=False, invert=True):
        """
        Class initializer.

        :param int width: terminal columns.
        :param int height: terminal rows.
        :param float gamma: less than 0 darkens, greater than 0 lightens.
        :param float brightness: -100 to 100.
        :param float sharpen: greater than 0 sharpens.
        :param float contrast: -100 to 100.  Accepted but not applied, the
            fixed :data:`CONTRAST` is applied instead.
        :param bool mirror: flip on vertical axis.
        :param bool invert: invert pixel values.
        """
        self.width = width
        self.height = height
        self.gamma = gamma
        self.brightness = brightness
        self.sharpen = sharpen
        self.contrast = contrast
        self.mirror = mirror
        self.invert = invert
        self.scale = None

    def filter(self, img):
        """Return ``img`` adjusted and scaled to the terminal."""
        if self.gamma:
            img = adjust_gamma(img, self.gamma + 1.0)
        if self.brightness:
            img = adjust_brightness(img, self.brightness)
        if self.sharpen:
            img = img.filter(ImageFilter.UnsharpMask(radius=self.sharpen, percent=100,
                                                     threshold=0))
        if self.mirror:
            img = ImageOps.mirror(img)
        if self.invert:
            img = ImageOps.invert(img)

        lum = luminance(img)
        logger.debug('luminance: {0} contrast: {1} brightness: {2}'.format(
            lum, lum * 50 + 10, (1 - lum) + 1))
        img = adjust_contrast(img, CONTRAST)

        if self.scale is None:
            self.scale = scalar(img.width, img.height, self.width, self.height)

        size = (max(1, int(self.scale * img.width)),
                max(1, int(self.scale * img.height)))
        return img.resize(size, Image.Resampling.NEAREST)


class BraillePrinter:
    """Print images as rows of braille glyphs, overdrawing the last print."""

    #: Row separator.
    newline = '\r\n'

    def __init__(self, image_filter):
        self.filter = image_filter

    def render(self, img):
        """
        Return terminal bytes of filtered ``img``.

        Dark pixels of the dithered image raise a dot.  Output ends by a
        cursor movement to the first row printed, so that the next image
        printed replaces this one.

        :rtype: bytes
        """
        img = self.filter.filter(img).convert('1')
        width, height = img.size
        pixels = img.load()
        canvas = drawille.Canvas()
        for y in range(height):
            for x in range(width):
                if not pixels[x, y]:
                    canvas.set(x, y)

        cols = -(-width // DOT_COLS)
        rows = -(-height // DOT_ROWS)
        lines = canvas.rows(0, 0, width, height)
        lines += [''] * (rows - len(lines))
        text = ''.join(line.ljust(cols, BLANK) + self.newline for line in lines)
        return text.encode('utf8') + cursor_up(rows)
