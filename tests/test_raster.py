import io

import numpy as np
import pytest
from PIL import Image

from docforensics.errors import DecodeError, EmptyImageError
from docforensics.raster import RasterImage, bounded_size, load_raster


def _encode(img: Image.Image, fmt: str = "PNG", **kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, fmt, **kwargs)
    return buf.getvalue()


def test_downscale_preserves_aspect_and_source_size():
    data = _encode(Image.new("RGB", (1024, 768), (128, 128, 128)))
    raster = load_raster(data, max_dimension=512)
    assert (raster.width, raster.height) == (512, 384)
    assert raster.source_size == (1024, 768)


def test_small_image_is_never_upscaled():
    data = _encode(Image.new("RGB", (100, 50), (10, 20, 30)))
    raster = load_raster(data, max_dimension=512)
    assert (raster.width, raster.height) == (100, 50)


def test_transparent_pixels_become_white():
    img = Image.new("RGBA", (20, 10), (0, 0, 0, 0))
    img.putpixel((0, 0), (10, 20, 30, 255))
    raster = load_raster(_encode(img))
    assert tuple(raster.rgb[5, 5]) == (255, 255, 255)
    assert tuple(raster.rgb[0, 0]) == (10, 20, 30)


def test_grayscale_input_is_expanded_to_rgb():
    raster = load_raster(_encode(Image.new("L", (16, 16), 77)))
    assert raster.rgb.shape == (16, 16, 3)
    assert np.all(raster.rgb == 77)


def test_exif_orientation_is_applied():
    exif = Image.Exif()
    exif[0x0112] = 6
    data = _encode(Image.new("RGB", (40, 20), (200, 200, 200)), "JPEG", exif=exif)
    raster = load_raster(data)
    assert (raster.width, raster.height) == (20, 40)


def test_luma_uses_bt601_weights():
    rgb = np.zeros((2, 2, 3), dtype=np.uint8)
    rgb[0, 0] = (255, 0, 0)
    rgb[0, 1] = (0, 255, 0)
    rgb[1, 0] = (0, 0, 255)
    raster = RasterImage.from_rgb(rgb)
    assert raster.luma[0, 0] == pytest.approx(76.245)
    assert raster.luma[0, 1] == pytest.approx(149.685)
    assert raster.luma[1, 0] == pytest.approx(29.07)
    assert raster.luma[1, 1] == 0.0


def test_raster_arrays_are_read_only():
    raster = RasterImage.from_rgb(np.zeros((4, 4, 3), dtype=np.uint8))
    assert not raster.rgb.flags.writeable
    assert not raster.luma.flags.writeable
    with pytest.raises(ValueError):
        raster.rgb[0, 0, 0] = 1


def test_from_rgb_copies_input():
    arr = np.zeros((4, 4, 3), dtype=np.uint8)
    raster = RasterImage.from_rgb(arr)
    arr[0, 0, 0] = 255
    assert raster.rgb[0, 0, 0] == 0


def test_from_rgb_rejects_wrong_shape():
    with pytest.raises(ValueError):
        RasterImage.from_rgb(np.zeros((4, 4), dtype=np.uint8))


def test_garbage_bytes_raise_decode_error():
    with pytest.raises(DecodeError):
        load_raster(b"definitely not an image")


def test_empty_bytes_raise_decode_error():
    with pytest.raises(DecodeError):
        load_raster(b"")


def test_thin_image_collapsing_to_zero_raises_empty_image():
    data = _encode(Image.new("RGB", (2000, 3), (255, 255, 255)))
    with pytest.raises(EmptyImageError):
        load_raster(data, max_dimension=512)


def test_bounded_size_floors():
    assert bounded_size(1000, 333, 500) == (500, 166)
    assert bounded_size(300, 200, 512) == (300, 200)
    assert bounded_size(2000, 3, 512) == (512, 0)
