# std imports
import math

# 3rd party
import pytest
from PIL import Image

# local
from blinken import render
from blinken.render import (BraillePrinter, DecodeError, Filter, cursor_up,
                            decode_frame, luminance, scalar)
from blinken.tests.accessories import make_jpeg


def test_scalar_fits_smaller_dimension():
    """Each cell holds 2x4 pixels, the tighter axis decides."""
    assert scalar(1600, 1200, 80, 24) == pytest.approx(0.08)
    assert scalar(1600, 400, 80, 24) == pytest.approx(0.1)


def test_scalar_never_enlarges():
    assert scalar(64, 48, 80, 24) == 1.0


def test_decode_frame():
    img = decode_frame(make_jpeg(64, 48))
    assert img.size == (64, 48)
    assert img.mode == 'L'


@pytest.mark.parametrize("buf", [b'', b'\xff\xd8\xff\xd9', b'not an image'])
def test_decode_frame_error(buf):
    with pytest.raises(DecodeError):
        decode_frame(buf)


def test_decode_frame_truncated():
    jpeg = make_jpeg(64, 48)
    with pytest.raises(DecodeError):
        decode_frame(jpeg[:len(jpeg) // 2])


def test_luminance_peak_at_zero():
    """Histogram peak at bucket 0 is guarded, not divided by."""
    assert luminance(Image.new('L', (8, 8), 0)) == 0.0


def test_luminance_formula():
    # uniform image: whole histogram at one bucket, share 1.0
    assert luminance(Image.new('L', (8, 8), 128)) == pytest.approx(1 - 256 / 128)
    assert luminance(Image.new('L', (8, 8), 255)) == pytest.approx(1 - 256 / 255)


def test_luminance_first_peak_wins():
    img = Image.new('L', (2, 2), 64)
    img.putpixel((0, 0), 32)
    img.putpixel((1, 0), 32)
    # two buckets of equal share 0.5, the lowest is taken
    assert luminance(img) == pytest.approx(1 - (256 / 32 * 0.5))


def test_filter_scale_computed_once():
    """Scale of the first image is reused for every image after."""
    image_filter = Filter(width=80, height=24)
    first = image_filter.filter(Image.new('L', (1600, 1200), 100))
    assert image_filter.scale == pytest.approx(0.08)
    assert first.size == (128, 96)

    second = image_filter.filter(Image.new('L', (800, 600), 100))
    assert image_filter.scale == pytest.approx(0.08)
    assert second.size == (64, 48)


def test_filter_invert_and_mirror():
    img = Image.new('L', (2, 1))
    img.putpixel((0, 0), 0)
    img.putpixel((1, 0), 255)
    plain = Filter(invert=False).filter(img)
    assert plain.getpixel((0, 0)) < plain.getpixel((1, 0))
    inverted = Filter(invert=True).filter(img)
    assert inverted.getpixel((0, 0)) > inverted.getpixel((1, 0))
    mirrored = Filter(invert=False, mirror=True).filter(img)
    assert mirrored.getpixel((0, 0)) > mirrored.getpixel((1, 0))


def test_filter_adjustments():
    img = Image.new('L', (4, 4), 100)
    brighter = Filter(invert=False, brightness=50).filter(img)
    lighter = Filter(invert=False, gamma=1.0).filter(img)
    base = Filter(invert=False).filter(img)
    assert brighter.getpixel((0, 0)) >= base.getpixel((0, 0))
    assert lighter.getpixel((0, 0)) >= base.getpixel((0, 0))
    sharpened = Filter(invert=False, sharpen=1.0).filter(img)
    assert sharpened.size == (4, 4)


def test_filter_contrast_parameter_not_applied():
    img = make_jpeg(32, 16)
    base = Filter().filter(decode_frame(img))
    contrasted = Filter(contrast=90).filter(decode_frame(img))
    assert list(base.getdata()) == list(contrasted.getdata())


def test_adjust_gamma_identity():
    img = Image.linear_gradient('L')
    assert list(render.adjust_gamma(img, 1.0).getdata()) == list(img.getdata())


def test_cursor_up():
    assert cursor_up(12) == b'\x1b[999D\x1b[12A'


def test_print_overdraws():
    """Output is one row per 4 pixels of height, then moves the cursor back up."""
    printer = BraillePrinter(Filter(width=40, height=12))
    out = printer.render(decode_frame(make_jpeg(64, 48)))

    text, _, _ = out.partition(b'\x1b[999D')
    lines = text.decode('utf8').split('\r\n')
    assert lines[-1] == ''
    lines = lines[:-1]
    assert len(lines) == 12
    assert all(len(line) == 32 for line in lines)
    assert all(0x2800 <= ord(char) <= 0x28ff for line in lines for char in line)
    assert out.endswith(cursor_up(math.ceil(48 / 4)))


def test_print_black_and_white():
    """Dark pixels raise every dot, light pixels none."""
    full, blank = chr(0x28ff), chr(0x2800)

    printer = BraillePrinter(Filter(invert=False))
    dark = printer.render(Image.new('L', (4, 4), 0))
    assert dark == (full * 2 + '\r\n').encode('utf8') + cursor_up(1)

    printer = BraillePrinter(Filter(invert=False))
    light = printer.render(Image.new('L', (4, 4), 255))
    assert light == (blank * 2 + '\r\n').encode('utf8') + cursor_up(1)


def test_print_odd_size_rounds_up():
    """A partial block of 2x4 pixels still takes a whole glyph."""
    printer = BraillePrinter(Filter(invert=False))
    out = printer.render(Image.new('L', (3, 5), 0))
    assert out == ''.join((
        chr(0x28ff), chr(0x2847), '\r\n',
        chr(0x2809), chr(0x2801), '\r\n',
    )).encode('utf8') + cursor_up(2)


@pytest.mark.parametrize("gamma", [-1.0, -2.0, -100.0])
def test_filter_gamma_darkest(gamma):
    """Gamma at or below -1 renders as the darkest adjustment."""
    printer = BraillePrinter(Filter(width=40, height=12, gamma=gamma))
    out = printer.render(decode_frame(make_jpeg(64, 48)))
    assert out.endswith(cursor_up(12))

    img = Image.new('L', (2, 2), 200)
    assert render.adjust_gamma(img, gamma + 1.0).getextrema() == (0, 0)


@pytest.mark.parametrize("value,percentage,expected", [
    (64, 25, 43),
    (128, 25, 128),
    (160, 25, 171),
    (127, 100, 0),
    (128, 100, 255),
    (10, -100, 128),
])
def test_adjust_contrast_about_mid_grey(value, percentage, expected):
    """Contrast is adjusted about mid-grey, a flat dark image is darkened."""
    img = Image.new('L', (2, 2), value)
    assert render.adjust_contrast(img, percentage).getextrema() == (expected, expected)
